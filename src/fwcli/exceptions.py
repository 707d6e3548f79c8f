"""Exception hierarchy for fwcli.

All exceptions inherit from :class:`FwcliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`fwcli.exit_codes`.
Commands run inside :func:`fwcli.commands.error_boundary`, which prints the
message and exits with that code. Unexpected exceptions reaching
:func:`fwcli.app.main` produce a crash log and exit with
:data:`EXIT_GENERIC_FAILURE`.

Remote failures are expressed through the closed :class:`ApiError`
taxonomy; nothing else escapes :class:`~fwcli.client.ApiClient`.

Subclass hierarchy::

    FwcliError (exit 1)
    +-- InvalidUsageError              (exit 2)
    +-- ConfigError                    (exit 1)
    +-- LocalStorageError              (exit 12)
    +-- InsecureCredentialStoreError   (exit 13)
    +-- ApiError
        +-- UnauthenticatedError       (exit 3)
        +-- SessionExpiredError        (exit 7)
        +-- BadRequestError            (exit 8)
        +-- NotFoundError              (exit 4)
        +-- ConflictError              (exit 9)
        +-- RateLimitedError           (exit 10)
        +-- ServerError                (exit 5)
        +-- UploadFailedError          (exit 11)
        +-- NetworkError               (exit 6)
"""

from __future__ import annotations

from typing import Optional

from fwcli.exit_codes import (
    EXIT_BAD_REQUEST,
    EXIT_CONFLICT,
    EXIT_GENERIC_FAILURE,
    EXIT_INSECURE_STORAGE,
    EXIT_INVALID_USAGE,
    EXIT_LOCAL_STORAGE,
    EXIT_NETWORK_ERROR,
    EXIT_NOT_FOUND,
    EXIT_RATE_LIMITED,
    EXIT_SERVER_ERROR,
    EXIT_SESSION_EXPIRED,
    EXIT_UNAUTHENTICATED,
    EXIT_UPLOAD_FAILED,
)


class FwcliError(Exception):
    """Base exception for all fwcli errors.

    Every subclass sets a class-level ``exit_code`` and a short ``kind``
    identifier. Both are stable across releases so that scripts can rely
    on them.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    kind: str = "error"

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(FwcliError):
    """Raised for invalid CLI arguments or operations invalid in the current state."""

    exit_code = EXIT_INVALID_USAGE
    kind = "invalid_usage"


class ConfigError(FwcliError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
    kind = "config"


class LocalStorageError(FwcliError):
    """Raised when the credential file cannot be read, written or removed."""

    exit_code = EXIT_LOCAL_STORAGE
    kind = "local_storage"


class InsecureCredentialStoreError(FwcliError):
    """Raised when the credential file is accessible to other users.

    Unlike every other error this one is fatal: the CLI refuses to run any
    command until the permissions are fixed.
    """

    exit_code = EXIT_INSECURE_STORAGE
    kind = "insecure_storage"


class ApiError(FwcliError):
    """Base class of the closed taxonomy of remote-call failures."""

    kind = "api"


class UnauthenticatedError(ApiError):
    """No credential is stored, or the service rejected the one presented."""

    exit_code = EXIT_UNAUTHENTICATED
    kind = "unauthenticated"


class SessionExpiredError(ApiError):
    """The session token expired and the refresh was rejected."""

    exit_code = EXIT_SESSION_EXPIRED
    kind = "session_expired"


class BadRequestError(ApiError):
    """The service rejected the request as malformed (HTTP 400/422).

    Args:
        message: Human-readable description.
        details: Error payload returned by the service, when any.
    """

    exit_code = EXIT_BAD_REQUEST
    kind = "bad_request"

    def __init__(self, message: str, details: object = None):
        super().__init__(message)
        self.details = details


class NotFoundError(ApiError):
    """The requested resource does not exist (HTTP 404).

    Args:
        message: Human-readable description.
        resource: The path or identifier that was not found.
    """

    exit_code = EXIT_NOT_FOUND
    kind = "not_found"

    def __init__(self, message: str, resource: Optional[str] = None):
        super().__init__(message)
        self.resource = resource


class ConflictError(ApiError):
    """The request conflicts with existing server state (HTTP 409)."""

    exit_code = EXIT_CONFLICT
    kind = "conflict"


class RateLimitedError(ApiError):
    """The service throttled the request (HTTP 429).

    Args:
        message: Human-readable description.
        retry_after: Seconds the service asked us to wait, when provided.
    """

    exit_code = EXIT_RATE_LIMITED
    kind = "rate_limited"

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ServerError(ApiError):
    """The service failed (HTTP 5xx) or answered with an unreadable body."""

    exit_code = EXIT_SERVER_ERROR
    kind = "server_error"


class UploadFailedError(ApiError):
    """A multipart firmware upload broke off after the connection was made.

    There is no resume protocol; the caller has to restart the creation
    call from scratch.

    Args:
        message: Human-readable description.
        offset: Number of file bytes handed to the transport before the
            failure, or ``None`` if unknown.
    """

    exit_code = EXIT_UPLOAD_FAILED
    kind = "upload_failed"

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.offset = offset


class NetworkError(ApiError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Args:
        message: Human-readable description.
        cause: The underlying transport exception, when available.
    """

    exit_code = EXIT_NETWORK_ERROR
    kind = "network"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
