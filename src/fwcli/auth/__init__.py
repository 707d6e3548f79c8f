"""Credential persistence and session lifecycle for fwcli.

The main entry points are:

- :class:`CredentialStore` -- the single active credential on disk,
  written atomically with owner-only permissions.
- :class:`SessionManager` -- login, logout, token refresh and API-key
  management; the only writer of the store.
- :class:`SessionState` -- the manager's lifecycle states.

Typical usage::

    from fwcli.auth import CredentialStore, SessionManager

    with ApiClient(config) as client:
        session = SessionManager(CredentialStore(), client)
        session.login(email, password)
"""

from fwcli.auth.credential_store import CredentialStore
from fwcli.auth.session import SessionManager, SessionState

__all__ = ["CredentialStore", "SessionManager", "SessionState"]
