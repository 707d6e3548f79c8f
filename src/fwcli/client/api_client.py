"""Synchronous HTTP client with credential injection, refresh, retry and error mapping.

This module provides :class:`ApiClient`, the single gateway between fwcli
and the analysis service. It wraps :class:`httpx.Client` and layers on:

- **Credential injection** -- the active credential, read per request from
  the bound :class:`~fwcli.auth.session.SessionManager`, becomes either an
  ``Authorization: Bearer`` header (session token) or an API-key header.
- **Lazy token renewal** -- an expiring session token is refreshed before
  the request; a ``401`` on a session-token request triggers one refresh
  and one replay. Never more than one refresh per request.
- **Bounded retry** -- network failures are retried with exponential delay
  (1 s, 2 s, 4 s, ...) for idempotent methods only. A ``POST`` is sent
  exactly once so a project is never created twice behind the user's back.
- **Error mapping** -- HTTP failures become the closed
  :class:`~fwcli.exceptions.ApiError` taxonomy.
- **Streamed uploads** -- multipart bodies built from
  :class:`~fwcli.client.upload.UploadReader` are streamed, and a broken
  upload reports its byte offset.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Optional

import httpx

from fwcli import __version__
from fwcli.client.response import error_detail, extract_response_data, parse_retry_after
from fwcli.client.upload import UploadReader
from fwcli.exceptions import (
    BadRequestError,
    ConflictError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    UnauthenticatedError,
    UploadFailedError,
)
from fwcli.models import ApiKey, Credential, GlobalConfig, SessionToken
from fwcli.output import debug

if TYPE_CHECKING:
    from fwcli.auth.session import SessionManager

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})
"""Methods that may be replayed after a network failure."""

USER_AGENT = f"fwcli/{__version__}"

# The request never reached the server; no upload bytes were delivered.
_NOT_CONNECTED = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)


class ApiClient:
    """Blocking client for the analysis service.

    Must be used as a context manager so the underlying transport is
    opened and closed. Authenticated requests need a session bound through
    :meth:`bind_session`; :class:`~fwcli.auth.session.SessionManager` does
    this on construction.

    Args:
        config: Effective configuration (base URL, request and auth
            settings).
        transport: Optional :class:`httpx.BaseTransport`, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        with ApiClient(config) as client:
            session = SessionManager(CredentialStore(), client)
            response = client.request("GET", "/api/v1/projects")
    """

    def __init__(
        self,
        config: GlobalConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._session: Optional[SessionManager] = None
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ApiClient:
        request = self._config.request
        self._client = httpx.Client(
            base_url=self._config.base_url,
            timeout=request.timeout,
            verify=request.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
            headers={"User-Agent": USER_AGENT},
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    @property
    def config(self) -> GlobalConfig:
        return self._config

    def bind_session(self, session: SessionManager) -> None:
        """Use *session* as the source of credentials and token refreshes."""
        self._session = session

    # ------------------------------------------------------------------ #
    # Public request method
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        data: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, Any]] = None,
        requires_auth: bool = True,
        accept: str = "application/json",
    ) -> httpx.Response:
        """Send a request and return the successful response.

        Args:
            method: HTTP method (GET, POST, DELETE, ...).
            path: URL path appended to the configured base URL.
            params: Query parameters.
            headers: Extra headers; they override injected ones.
            json_body: JSON-serialisable body.
            data: Form fields (combined with *files* into a multipart body).
            files: Multipart file fields; values wrapping an
                :class:`~fwcli.client.upload.UploadReader` are streamed.
            requires_auth: Attach the active credential.
            accept: Value of the ``Accept`` header.

        Returns:
            The :class:`httpx.Response` (status < 400).

        Raises:
            UnauthenticatedError: No credential, or 401/403.
            SessionExpiredError: The token refresh was rejected.
            BadRequestError: On 400 / 422 and unclassified 4xx.
            NotFoundError: On 404.
            ConflictError: On 409.
            RateLimitedError: On 429.
            ServerError: On 5xx.
            UploadFailedError: A streamed upload broke off mid-body.
            NetworkError: Transport failure after all allowed attempts.
        """
        method = method.upper()
        send_kwargs: dict[str, Any] = {
            "params": params,
            "headers": headers,
            "json_body": json_body,
            "data": data,
            "files": files,
            "requires_auth": requires_auth,
            "accept": accept,
        }

        refreshed = False
        if requires_auth:
            credential = self._require_credential()
            leeway = self._config.auth.expiry_leeway_seconds
            if isinstance(credential, SessionToken) and credential.expires_within(leeway):
                debug("Session token expired, refreshing before the request")
                self._refresh()
                refreshed = True

        response = self._send(method, path, **send_kwargs)

        if (
            response.status_code == 401
            and requires_auth
            and not refreshed
            and isinstance(self._current_credential(), SessionToken)
        ):
            debug("Service rejected the session token, refreshing once")
            self._refresh()
            response = self._send(method, path, **send_kwargs)

        self._map_response_error(response, path)
        return response

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _current_credential(self) -> Optional[Credential]:
        if self._session is None:
            return None
        return self._session.credential

    def _require_credential(self) -> Credential:
        credential = self._current_credential()
        if credential is None:
            raise UnauthenticatedError("Not logged in")
        return credential

    def _refresh(self) -> None:
        if self._session is None:
            raise UnauthenticatedError("Not logged in")
        self._session.refresh()

    def _auth_headers(self) -> dict[str, str]:
        """Authorization material for the credential active right now."""
        credential = self._require_credential()
        if isinstance(credential, ApiKey):
            return {self._config.auth.api_key_header: credential.secret}
        return {"Authorization": f"Bearer {credential.access_token}"}

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]],
        headers: Optional[dict[str, str]],
        json_body: Optional[Any],
        data: Optional[dict[str, Any]],
        files: Optional[dict[str, Any]],
        requires_auth: bool,
        accept: str,
    ) -> httpx.Response:
        """Execute the request, retrying network failures for idempotent methods.

        The delay doubles each attempt: 1 s, 2 s, 4 s, ... Non-idempotent
        methods get exactly one attempt.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        attempts = self._config.request.max_attempts if method in IDEMPOTENT_METHODS else 1
        upload = _find_upload(files)

        for attempt in range(1, attempts + 1):
            merged_headers: dict[str, str] = {"Accept": accept}
            if requires_auth:
                merged_headers.update(self._auth_headers())
            merged_headers.update(headers or {})

            debug(f"{method} {path} (attempt {attempt}/{attempts})")
            try:
                return self._client.request(
                    method,
                    path,
                    params=params,
                    headers=merged_headers,
                    json=json_body,
                    data=data,
                    files=files,
                )
            except httpx.RequestError as exc:
                if upload is not None and not isinstance(exc, _NOT_CONNECTED):
                    raise UploadFailedError(
                        f"Upload of {upload.name} failed after {upload.offset} bytes: {exc}",
                        offset=upload.offset,
                    ) from exc
                if attempt < attempts:
                    delay = 2 ** (attempt - 1)
                    debug(
                        f"Network error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt}/{attempts})"
                    )
                    time.sleep(delay)
                    continue
                suffix = f" after {attempts} attempts" if attempts > 1 else ""
                raise NetworkError(
                    f"{method} {path} failed{suffix}: {exc or type(exc).__name__}",
                    cause=exc,
                ) from exc

        raise AssertionError("retry loop exited without a result")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response, path: str) -> None:
        """Raise the taxonomy error matching an HTTP failure status."""
        status = response.status_code
        if status < 400:
            return

        detail = error_detail(response)
        message = f"HTTP {status}: {detail}" if detail else f"HTTP {status}"

        if status in (400, 422):
            raise BadRequestError(message, details=extract_response_data(response))
        if status in (401, 403):
            raise UnauthenticatedError(message)
        if status == 404:
            raise NotFoundError(f"Not found: {path}", resource=path)
        if status == 409:
            raise ConflictError(message)
        if status == 429:
            raise RateLimitedError(message, retry_after=parse_retry_after(response))
        if status >= 500:
            raise ServerError(message)
        raise BadRequestError(message, details=extract_response_data(response))


def _find_upload(files: Optional[dict[str, Any]]) -> Optional[UploadReader]:
    """Return the streamed reader inside a multipart ``files`` mapping, if any."""
    if not files:
        return None
    for value in files.values():
        candidates = value if isinstance(value, tuple) else (value,)
        for item in candidates:
            if isinstance(item, UploadReader):
                return item
    return None
