"""Decoding helpers between :class:`httpx.Response` and fwcli models.

Everything that turns a response body into Python data lives here so that
a malformed body is reported the same way everywhere: as a
:class:`~fwcli.exceptions.ServerError`, never as a raw ``ValueError`` or
Pydantic ``ValidationError``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from fwcli.exceptions import ServerError

ModelT = TypeVar("ModelT", bound=BaseModel)


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts JSON first and falls back to text. Returns ``None`` for an
    empty body.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def error_detail(response: httpx.Response) -> str:
    """Best-effort human-readable message from an error response body."""
    data = extract_response_data(response)
    if isinstance(data, dict):
        for key in ("message", "error", "detail"):
            value = data.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
        return ""
    if data is None:
        return ""
    return str(data)[:200]


def parse_retry_after(response: httpx.Response, now: Optional[datetime] = None) -> Optional[float]:
    """Return the wait suggested by a 429 response, in seconds.

    Reads the ``Retry-After`` header (delta-seconds or HTTP date) and falls
    back to a ``retry_after`` field in a JSON body.
    """
    header = response.headers.get("retry-after")
    if header:
        header = header.strip()
        try:
            return max(float(header), 0.0)
        except ValueError:
            pass
        try:
            when = parsedate_to_datetime(header)
        except (TypeError, ValueError):
            when = None
        if when is not None:
            if when.tzinfo is None:
                when = when.replace(tzinfo=timezone.utc)
            now = now or datetime.now(timezone.utc)
            return max((when - now).total_seconds(), 0.0)

    data = extract_response_data(response)
    if isinstance(data, dict) and data.get("retry_after") is not None:
        try:
            return max(float(data["retry_after"]), 0.0)
        except (TypeError, ValueError):
            return None
    return None


def parse_json(response: httpx.Response) -> Any:
    """Decode a JSON success body.

    Raises:
        ServerError: If the body is not valid JSON.
    """
    try:
        return response.json()
    except ValueError as exc:
        raise ServerError(
            f"Unreadable response from {response.request.url.path}: not valid JSON"
        ) from exc


def parse_model(response: httpx.Response, model: type[ModelT], **extra: Any) -> ModelT:
    """Decode a JSON object body into *model*.

    Args:
        response: A successful response.
        model: Target Pydantic model.
        **extra: Fields merged into the payload when the service omits them.

    Raises:
        ServerError: If the body is not JSON or does not match *model*.
    """
    data = parse_json(response)
    if isinstance(data, dict) and extra:
        data = {**extra, **data}
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ServerError(
            f"Unexpected response from {response.request.url.path}: "
            f"{exc.error_count()} field error(s) for {model.__name__}"
        ) from exc


def parse_model_list(response: httpx.Response, model: type[ModelT]) -> list[ModelT]:
    """Decode a JSON array body into a list of *model*.

    Raises:
        ServerError: If the body is not a JSON array of *model* objects.
    """
    data = parse_json(response)
    try:
        return TypeAdapter(list[model]).validate_python(data)  # type: ignore[valid-type]
    except ValidationError as exc:
        raise ServerError(
            f"Unexpected response from {response.request.url.path}: "
            f"{exc.error_count()} field error(s) for list of {model.__name__}"
        ) from exc
