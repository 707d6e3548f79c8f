"""Canonical Pydantic models shared across all fwcli modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Credentials** -- persisted by :class:`~fwcli.auth.CredentialStore`:
    :class:`SessionToken` and :class:`ApiKey`, joined into the
    :data:`Credential` discriminated union, plus :class:`TokenGrant`, the
    login/refresh response that becomes a :class:`SessionToken`.

**Service resources** -- ephemeral views returned by the remote service:
    :class:`Project`, :class:`ProjectId`, :class:`Analysis`,
    :class:`ApiKeyRecord`, :class:`ApiKeySecret` and :class:`LatestVersion`.
    They are frozen: a fresh server response replaces them, nothing edits
    them in place.

**Configuration** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`AuthSettings`, :class:`OutputConfig`
    and :class:`GlobalConfig`.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

DEFAULT_TOKEN_LIFETIME = 3600
"""Lifetime in seconds assumed for a token grant that states no expiry."""


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# --- Credentials ---


class SessionToken(BaseModel):
    """Access/refresh token pair obtained through a password login.

    The access token is short-lived; before ``expires_at`` it has to be
    renewed with the refresh token (see :meth:`~fwcli.auth.SessionManager.refresh`).
    """

    kind: Literal["session"] = "session"
    access_token: str = Field(repr=False)
    refresh_token: str = Field(repr=False)
    expires_at: datetime

    def expires_within(self, seconds: float, now: Optional[datetime] = None) -> bool:
        """Return ``True`` if the token is expired or expires within *seconds*."""
        now = _as_utc(now or datetime.now(timezone.utc))
        return _as_utc(self.expires_at) - timedelta(seconds=seconds) <= now


class ApiKey(BaseModel):
    """Long-lived API key. Never expires client-side and is never refreshed."""

    kind: Literal["api_key"] = "api_key"
    key_id: str
    secret: str = Field(repr=False)


Credential = Annotated[Union[SessionToken, ApiKey], Field(discriminator="kind")]
"""The single active credential: either a :class:`SessionToken` or an :class:`ApiKey`."""


class TokenGrant(BaseModel):
    """Token response of the login and refresh endpoints."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(repr=False)
    refresh_token: Optional[str] = Field(default=None, repr=False)
    expires_in: Optional[int] = None
    expires_at: Optional[datetime] = None

    def to_session_token(
        self,
        previous_refresh_token: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SessionToken:
        """Build the :class:`SessionToken` to persist from this grant.

        Refresh responses may omit the refresh token, in which case the
        previous one stays valid.

        Raises:
            ValueError: If neither the grant nor the caller supplies a
                refresh token.
        """
        refresh_token = self.refresh_token or previous_refresh_token
        if not refresh_token:
            raise ValueError("token response carries no refresh token")
        if self.expires_at is not None:
            expires_at = _as_utc(self.expires_at)
        else:
            lifetime = self.expires_in if self.expires_in is not None else DEFAULT_TOKEN_LIFETIME
            expires_at = _as_utc(now or datetime.now(timezone.utc)) + timedelta(seconds=lifetime)
        return SessionToken(
            access_token=self.access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )


# --- Service resources ---


class Project(BaseModel):
    """A firmware image submitted for analysis."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: UUID
    name: str
    firmware_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("firmware_type", "type")
    )
    firmware_subtype: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("firmware_subtype", "subtype")
    )
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    status: Optional[str] = None


class ProjectId(BaseModel):
    """Response of the project creation endpoint."""

    id: UUID


class Analysis(BaseModel):
    """Output of one analyzer (e.g. ``PeimDxe``) for one project."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: Optional[str] = None
    project_id: UUID
    analyzer_name: str = Field(
        validation_alias=AliasChoices("analyzer_name", "analyzer")
    )
    status: Optional[str] = None
    result_payload: Any = Field(
        default=None, validation_alias=AliasChoices("result_payload", "result", "results")
    )


class ApiKeyRecord(BaseModel):
    """API key metadata. Never carries the secret."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    key_id: str = Field(validation_alias=AliasChoices("key_id", "id"))
    label: Optional[str] = None
    created_at: Optional[datetime] = None


class ApiKeySecret(ApiKeyRecord):
    """A freshly created API key, including the secret shown exactly once."""

    secret: str = Field(repr=False, validation_alias=AliasChoices("secret", "api_key"))

    def record(self) -> ApiKeyRecord:
        """Return the metadata-only view of this key."""
        return ApiKeyRecord(key_id=self.key_id, label=self.label, created_at=self.created_at)


class LatestVersion(BaseModel):
    """Response of the update-check endpoint."""

    version: str = Field(validation_alias=AliasChoices("version", "latest_version"))


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every call to the service."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    max_attempts: int = Field(
        default=3, ge=1, description="Attempts for idempotent requests on network failure"
    )


class AuthSettings(BaseModel):
    """How credentials are presented and when session tokens are renewed."""

    api_key_header: str = Field(
        default="X-API-Key", description="Header carrying the API key secret"
    )
    expiry_leeway_seconds: int = Field(
        default=30, ge=0, description="Refresh a session token this long before it expires"
    )


class OutputConfig(BaseModel):
    """Default output format preference."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/fwcli/config.json``.

    Loaded and saved by :func:`~fwcli.config.load_global_config` and
    :func:`~fwcli.config.save_global_config`. See
    :func:`~fwcli.config.resolve_config` for the precedence chain.
    """

    base_url: str = Field(
        default="https://localhost", description="Root URL of the analysis service"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    output: OutputConfig = Field(default_factory=OutputConfig)
    reports_dir: Optional[str] = Field(
        default=None, description="Directory for downloaded PDF reports (default: cwd)"
    )
