"""Auth commands -- log in, log out and inspect the session.

Typical workflow::

    fwcli login --email analyst@example.com   # prompts for the password
    fwcli status                              # state and token expiry
    fwcli logout
"""

from __future__ import annotations

from typing import Optional

import typer

from fwcli.commands import error_boundary, open_session
from fwcli.output import format_response, info, success, suggest


def login_command(
    ctx: typer.Context,
    email: Optional[str] = typer.Option(
        None, "--email", "-e", help="Account email (prompted when omitted)."
    ),
    password_source: str = typer.Option(
        "prompt",
        "--password-source",
        "-s",
        help="Password source: env:VAR, file:/path, prompt.",
    ),
) -> None:
    """Log in with email and password.

    The password is read from *password_source* and never stored; only the
    resulting session token is persisted, readable by the owner only.

    Example::

        fwcli login --email analyst@example.com
        fwcli login --email ci@example.com --password-source env:FWCLI_PASSWORD
    """
    from fwcli.config import resolve_credential

    with error_boundary():
        if not email:
            email = typer.prompt("Email")
        password = resolve_credential(password_source)
        with open_session(ctx) as (session, client):
            token = session.login(email, password)
            success(f"Logged in to {client.config.base_url} as {email}.")
            info(f"Session valid until {token.expires_at.isoformat()}.")


def logout_command(ctx: typer.Context) -> None:
    """Log out and delete the stored credential. Safe to repeat."""
    with error_boundary():
        with open_session(ctx) as (session, _client):
            was_active = session.credential is not None
            session.logout()
        if was_active:
            success("Logged out.")
        else:
            info("Not logged in.")


def status_command(ctx: typer.Context) -> None:
    """Show the session state and the kind of credential in use.

    Secrets are never printed; for a session token only its expiry is
    shown, for an API key only its id.
    """
    with error_boundary():
        with open_session(ctx) as (session, _client):
            summary = session.describe()
        format_response(summary)
        if summary["credential"] is None:
            suggest("Log in: fwcli login")
