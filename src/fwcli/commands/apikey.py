"""API key commands -- manage long-lived keys for automation.

An API key replaces the interactive login in CI jobs. Its secret is shown
exactly once, when the key is created::

    fwcli apikey create --label ci          # prints the secret once
    fwcli apikey create --label ci --use    # also make it the active credential
    fwcli apikey list
    fwcli apikey delete <KEY_ID>
"""

from __future__ import annotations

from typing import Optional

import typer

from fwcli.commands import error_boundary, open_session
from fwcli.output import format_response, info, print_table, success, suggest, warning

apikey_app = typer.Typer(no_args_is_help=True)


@apikey_app.command("create")
def apikey_create(
    ctx: typer.Context,
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Label for the key."),
    use: bool = typer.Option(
        False, "--use", help="Make the new key the active credential."
    ),
) -> None:
    """Create an API key and print its secret.

    The secret cannot be retrieved again; store it somewhere safe.
    """
    with error_boundary():
        with open_session(ctx) as (session, _client):
            created = session.create_api_key(label, activate=use)

    format_response(
        {
            "key_id": created.key_id,
            "label": created.label,
            "secret": created.secret,
        }
    )
    warning("This secret is shown only once.")
    if use:
        success(f"API key {created.key_id} is now the active credential.")
    else:
        suggest("Pass --use to make a new key the active credential of this CLI.")


@apikey_app.command("list")
def apikey_list(ctx: typer.Context) -> None:
    """List API keys. Secrets are never shown."""
    with error_boundary():
        with open_session(ctx) as (session, _client):
            keys = session.list_api_keys()

    if not keys:
        info("No API keys.")
        return

    rows = [
        [
            key.key_id,
            key.label or "",
            key.created_at.isoformat() if key.created_at else "",
        ]
        for key in keys
    ]
    print_table(["ID", "Label", "Created"], rows, title="API keys")


@apikey_app.command("delete")
def apikey_delete(
    ctx: typer.Context,
    key_id: str = typer.Argument(help="Id of the key to delete."),
) -> None:
    """Delete an API key.

    Deleting the key currently used by this CLI also logs out.
    """
    with error_boundary():
        with open_session(ctx) as (session, _client):
            session.delete_api_key(key_id)
            logged_out = session.credential is None
    success(f"API key {key_id} deleted.")
    if logged_out:
        suggest("That was the active credential. Log in again: fwcli login")
