"""Numeric process exit codes, one per error category.

Each constant is referenced by the matching
:class:`~fwcli.exceptions.FwcliError` subclass, so a given error kind always
exits with the same code. Shell scripts and CI jobs can branch on the code
without parsing stderr.

Example::

    $ fwcli overview 3f0c...
    $ echo $?
    7   # EXIT_SESSION_EXPIRED -- run `fwcli login` again
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (also used for configuration problems)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_UNAUTHENTICATED = 3
"""No credential is available, or the service rejected it."""

EXIT_NOT_FOUND = 4
"""The requested project, analysis or key does not exist (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The service returned an HTTP 5xx error or an unreadable response."""

EXIT_NETWORK_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_SESSION_EXPIRED = 7
"""The session expired and could not be refreshed."""

EXIT_BAD_REQUEST = 8
"""The service rejected the request as invalid (HTTP 400/422)."""

EXIT_CONFLICT = 9
"""The request conflicts with existing server state (HTTP 409)."""

EXIT_RATE_LIMITED = 10
"""The service is throttling this client (HTTP 429)."""

EXIT_UPLOAD_FAILED = 11
"""A firmware upload was interrupted mid-stream."""

EXIT_LOCAL_STORAGE = 12
"""The local credential file could not be read or written."""

EXIT_INSECURE_STORAGE = 13
"""The local credential file is readable by other users."""

EXIT_CANCELLED = 130
"""The command was interrupted with Ctrl-C."""
