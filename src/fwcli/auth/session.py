"""Session manager -- owner of the active credential and its lifecycle.

The :class:`SessionManager` is the central coordinator of the
authentication subsystem. It is the only component that mutates the
:class:`~fwcli.auth.credential_store.CredentialStore`: it logs in and out,
renews session tokens, and creates or deletes API keys. On construction it
binds itself to an :class:`~fwcli.client.api_client.ApiClient`, which then
asks it for the current credential on every request and calls
:meth:`SessionManager.refresh` when a session token needs renewing.

There is no process-wide session: each CLI command builds its own manager
from the store.

See Also:
    :class:`~fwcli.client.api_client.ApiClient` -- consumes the credential
    held here.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from fwcli.auth.credential_store import CredentialStore
from fwcli.client.api_client import ApiClient
from fwcli.client.response import parse_model, parse_model_list
from fwcli.exceptions import (
    ApiError,
    BadRequestError,
    ConflictError,
    InvalidUsageError,
    NotFoundError,
    ServerError,
    SessionExpiredError,
    UnauthenticatedError,
)
from fwcli.models import ApiKey, ApiKeyRecord, ApiKeySecret, Credential, SessionToken, TokenGrant
from fwcli.output import debug, warning

LOGIN_PATH = "/api/v1/auth/login"
REFRESH_PATH = "/api/v1/auth/refresh"
LOGOUT_PATH = "/api/v1/auth/logout"
API_KEY_PATH = "/api/v1/api_key"

# 4xx answers that mean the refresh token itself was refused.
_REFRESH_REJECTIONS = (BadRequestError, UnauthenticatedError, NotFoundError, ConflictError)


class SessionState(str, Enum):
    """Lifecycle state of a :class:`SessionManager`."""

    LOGGED_OUT = "logged_out"
    AUTHENTICATING = "authenticating"
    ACTIVE = "active"
    REFRESHING = "refreshing"


class SessionManager:
    """Log in, log out, refresh and manage API keys.

    The stored credential is loaded once, at construction: ``ACTIVE`` if
    there is one, ``LOGGED_OUT`` otherwise (a corrupt file counts as
    absent).

    Args:
        store: Where the active credential is persisted.
        client: The API client to authenticate. The manager registers
            itself as the client's credential source.

    Example::

        with ApiClient(config) as client:
            session = SessionManager(CredentialStore(), client)
            session.login("analyst@example.com", password)
    """

    def __init__(self, store: CredentialStore, client: ApiClient) -> None:
        self._store = store
        self._client = client
        self._credential: Optional[Credential] = store.load()
        self._state = SessionState.ACTIVE if self._credential else SessionState.LOGGED_OUT
        client.bind_session(self)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def credential(self) -> Optional[Credential]:
        """The active credential, or ``None`` when logged out."""
        return self._credential

    # ------------------------------------------------------------------ #
    # Login / logout / refresh
    # ------------------------------------------------------------------ #

    def login(self, email: str, password: str) -> SessionToken:
        """Exchange email and password for a session token and persist it.

        A successful login replaces any credential already active. On
        failure the previous state and credential are kept.

        Returns:
            The new :class:`~fwcli.models.SessionToken`.

        Raises:
            UnauthenticatedError: If the service refuses the credentials.
            NetworkError: If the service cannot be reached.
            LocalStorageError: If the token cannot be persisted.
        """
        previous = self._state
        self._state = SessionState.AUTHENTICATING
        try:
            response = self._client.request(
                "POST",
                LOGIN_PATH,
                json_body={"email": email, "password": password},
                requires_auth=False,
            )
            token = self._session_token(parse_model(response, TokenGrant))
            self._store.save(token)
        except BaseException:
            self._state = previous
            raise
        self._credential = token
        self._state = SessionState.ACTIVE
        debug(f"Logged in, token valid until {token.expires_at.isoformat()}")
        return token

    def refresh(self) -> SessionToken:
        """Renew the active session token with its refresh token.

        Returns:
            The renewed :class:`~fwcli.models.SessionToken`.

        Raises:
            UnauthenticatedError: If there is no active session.
            InvalidUsageError: If the active credential is an API key.
            SessionExpiredError: If the service rejects the refresh token;
                the stored credential is cleared.
            NetworkError: If the service cannot be reached; the credential
                is kept.
            ServerError: On a 5xx answer; the credential is kept.
        """
        if self._state != SessionState.ACTIVE or self._credential is None:
            raise UnauthenticatedError("Not logged in")
        current = self._credential
        if not isinstance(current, SessionToken):
            raise InvalidUsageError("API keys cannot be refreshed")

        self._state = SessionState.REFRESHING
        try:
            response = self._client.request(
                "POST",
                REFRESH_PATH,
                json_body={"refresh_token": current.refresh_token},
                requires_auth=False,
            )
        except _REFRESH_REJECTIONS as exc:
            self._drop_credential()
            raise SessionExpiredError(
                f"Session expired: the service rejected the refresh ({exc})"
            ) from exc
        except BaseException:
            self._state = SessionState.ACTIVE
            raise

        try:
            token = self._session_token(
                parse_model(response, TokenGrant), previous_refresh_token=current.refresh_token
            )
            self._store.save(token)
        except BaseException:
            self._state = SessionState.ACTIVE
            raise
        self._credential = token
        self._state = SessionState.ACTIVE
        debug(f"Session refreshed, token valid until {token.expires_at.isoformat()}")
        return token

    def logout(self) -> None:
        """Forget the active credential. Safe to call when logged out.

        A session token is revoked on the service first; if that fails
        the local logout still happens and a warning is printed.

        Raises:
            LocalStorageError: If the credential file cannot be removed.
        """
        credential = self._credential
        if isinstance(credential, SessionToken):
            try:
                self._client.request("POST", LOGOUT_PATH)
            except ApiError as exc:
                warning(f"Could not revoke the session on the server: {exc}")
        self._drop_credential()

    # ------------------------------------------------------------------ #
    # API keys
    # ------------------------------------------------------------------ #

    def create_api_key(self, label: Optional[str] = None, activate: bool = False) -> ApiKeySecret:
        """Create a new API key.

        Args:
            label: Free-form label shown by ``apikey list``.
            activate: Replace the active credential with the new key.

        Returns:
            The new key, secret included. The secret cannot be retrieved
            again later.
        """
        body: dict[str, Any] = {}
        if label is not None:
            body["label"] = label
        response = self._client.request("POST", API_KEY_PATH, json_body=body)
        created = parse_model(response, ApiKeySecret, label=label)
        if activate:
            key = ApiKey(key_id=created.key_id, secret=created.secret)
            self._store.save(key)
            self._credential = key
            self._state = SessionState.ACTIVE
            debug(f"API key {created.key_id} is now the active credential")
        return created

    def list_api_keys(self) -> list[ApiKeyRecord]:
        """Return metadata for every API key of the account (``204`` means none)."""
        response = self._client.request("GET", API_KEY_PATH)
        if response.status_code == 204 or not response.content:
            return []
        return parse_model_list(response, ApiKeyRecord)

    def delete_api_key(self, key_id: str) -> None:
        """Delete an API key on the service.

        Deleting the key that is the active credential also logs out
        locally.
        """
        self._client.request("DELETE", f"{API_KEY_PATH}/{key_id}")
        active = self._credential
        if isinstance(active, ApiKey) and active.key_id == key_id:
            debug(f"Deleted the active API key {key_id}, logging out")
            self._drop_credential()

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def describe(self) -> dict[str, Any]:
        """Non-secret summary of the session for ``fwcli status``."""
        credential = self._credential
        summary: dict[str, Any] = {
            "state": self._state.value,
            "server": self._client.config.base_url,
            "credential": credential.kind if credential else None,
        }
        if isinstance(credential, SessionToken):
            summary["expires_at"] = credential.expires_at.isoformat()
            summary["expired"] = credential.expires_within(0)
        elif isinstance(credential, ApiKey):
            summary["key_id"] = credential.key_id
        return summary

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _drop_credential(self) -> None:
        self._store.clear()
        self._credential = None
        self._state = SessionState.LOGGED_OUT

    @staticmethod
    def _session_token(
        grant: TokenGrant, previous_refresh_token: Optional[str] = None
    ) -> SessionToken:
        try:
            return grant.to_session_token(previous_refresh_token)
        except ValueError as exc:
            raise ServerError(f"Unexpected token response: {exc}") from exc
