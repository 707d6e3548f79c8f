"""Built-in CLI sub-commands for fwcli.

This package groups the Typer command modules that form the CLI's
command tree:

* :mod:`~fwcli.commands.auth` -- ``login``, ``logout`` and ``status``.
* :mod:`~fwcli.commands.projects` -- project upload, listing, analyses,
  reports and the update check.
* :mod:`~fwcli.commands.apikey` -- create, list and delete API keys.
* :mod:`~fwcli.commands.config` -- view and modify global settings.

Every command talking to the service runs inside :func:`error_boundary`
and obtains its client and session from :func:`open_session`.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import typer

from fwcli.exceptions import (
    FwcliError,
    InsecureCredentialStoreError,
    RateLimitedError,
    SessionExpiredError,
    UnauthenticatedError,
    UploadFailedError,
)
from fwcli.output import error, success, suggest, warning

if TYPE_CHECKING:
    from fwcli.auth import SessionManager
    from fwcli.client import ApiClient


@contextmanager
def error_boundary() -> Iterator[None]:
    """Turn a :class:`~fwcli.exceptions.FwcliError` into a message and exit code.

    The error is printed to stderr together with a next-step hint, then
    the command exits with the error's ``exit_code``.

    Raises:
        typer.Exit: With the error's exit code.
    """
    try:
        yield
    except FwcliError as exc:
        error(str(exc))
        hint = _suggestion(exc)
        if hint:
            suggest(hint)
        raise typer.Exit(code=exc.exit_code) from None


def _suggestion(exc: FwcliError) -> str | None:
    if isinstance(exc, (SessionExpiredError, UnauthenticatedError)):
        return "Log in again: fwcli login"
    if isinstance(exc, RateLimitedError):
        if exc.retry_after is not None:
            return f"The server asks to wait {exc.retry_after:g}s before retrying."
        return "Wait a moment before retrying."
    if isinstance(exc, UploadFailedError):
        sent = f" after {exc.offset} bytes" if exc.offset is not None else ""
        return f"The upload stopped{sent}; run the same create command again to restart it."
    if isinstance(exc, InsecureCredentialStoreError):
        return "Restrict the file to its owner (chmod 600) or run fwcli logout."
    return None


@contextmanager
def open_session(ctx: typer.Context) -> Iterator[tuple[SessionManager, ApiClient]]:
    """Yield ``(session, client)`` for one command invocation.

    Builds an :class:`~fwcli.client.ApiClient` from the configuration
    resolved by the root callback and a
    :class:`~fwcli.auth.SessionManager` loaded from the credential store.
    An ``httpx`` transport stored under ``ctx.obj["transport"]`` is
    passed to the client.

    When the session expires and cannot be renewed, an interactive user is
    offered a fresh login; the command then exits with the session-expired
    code.
    """
    from fwcli.auth import CredentialStore, SessionManager
    from fwcli.client import ApiClient
    from fwcli.config import resolve_config

    obj = ctx.obj or {}
    config = obj.get("config") or resolve_config()
    with ApiClient(config, transport=obj.get("transport")) as client:
        session = SessionManager(CredentialStore(), client)
        try:
            yield session, client
        except SessionExpiredError:
            if not _login_again(session, forced=bool(obj.get("force"))):
                raise
            raise typer.Exit(code=SessionExpiredError.exit_code) from None


def _stdin_is_tty() -> bool:
    return sys.stdin.isatty()


def _login_again(session: SessionManager, forced: bool = False) -> bool:
    """Offer an interactive login after the session could not be renewed.

    Returns ``True`` if a new session was stored. The interrupted command
    is not replayed.
    """
    if not _stdin_is_tty():
        return False
    warning("The session expired and could not be renewed.")
    if not forced and not typer.confirm("Log in again now?", default=True):
        return False
    email = typer.prompt("Email")
    password = typer.prompt("Password", hide_input=True)
    session.login(email, password)
    success("Logged in again. Run the command again to continue.")
    return True


def is_forced(ctx: typer.Context) -> bool:
    """``True`` when the global ``--force`` flag was given."""
    return bool(ctx.obj.get("force", False)) if ctx.obj else False
