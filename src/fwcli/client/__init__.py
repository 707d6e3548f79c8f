"""HTTP client module for fwcli.

Provides the blocking client that wraps :mod:`httpx` with credential
injection, lazy token refresh, retry with exponential backoff for
idempotent requests, and streamed multipart uploads.

Classes:
    :class:`ApiClient` -- client backed by :class:`httpx.Client`.
    :class:`UploadReader` -- byte-counting file wrapper for uploads.

Example::

    from fwcli.client import ApiClient

    with ApiClient(config) as client:
        resp = client.request("GET", "/api/v1/projects")
"""

from fwcli.client.api_client import ApiClient
from fwcli.client.upload import UploadReader

__all__ = ["ApiClient", "UploadReader"]
