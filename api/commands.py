"""
Maintenance CLI commands, run with `flask --app api purge-sessions`.
"""
import click
from flask import Flask

from utils.decorators import get_auth_service


def register_commands(app: Flask) -> None:
    @app.cli.command("purge-sessions")
    def purge_sessions():
        """Delete refresh sessions whose expiry has passed."""
        purged = get_auth_service().purge_expired_sessions()
        click.echo(f"Purged {purged} expired refresh session(s).")
