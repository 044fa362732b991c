"""
Models package. The DBStorage instance is created by the app factory
(api.create_app) and kept in app.extensions; use get_storage() from request
code instead of a module-level singleton.
"""
from flask import current_app


def get_storage():
    return current_app.extensions["storage"]
