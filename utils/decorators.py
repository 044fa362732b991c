from __future__ import annotations
from functools import wraps
from flask import current_app, request, g
from utils.exceptions import Forbidden, Unauthorized
from utils.gate import FORBIDDEN, Reject


def get_auth_service():
    return current_app.extensions["auth"]


def _run_gate(required_roles=None):
    result = get_auth_service().gate(request.headers, required_roles)
    if isinstance(result, Reject):
        if result.kind == FORBIDDEN:
            raise Forbidden(result.reason)
        raise Unauthorized(result.reason)
    g.current_identity = result.identity


def jwt_required():
    """Require a valid access token; binds g.current_identity (user_id, role)."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            _run_gate()
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[str]):
    """
    Allow access if the token's role is one of required_roles.
    401 without a valid token, 403 with a valid token but the wrong role.
    """
    req = set(required_roles or [])
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            _run_gate(req)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
