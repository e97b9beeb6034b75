"""Request encoding and response decoding for the WebDriver wire protocol."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Sequence
from functools import lru_cache
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from ..errors import (
    ConnectionFailure,
    DriverTextError,
    HTTPStatusFailure,
    MalformedResponse,
    ProtocolError,
    SulfurError,
)
from .models import ErrorValue, LegacyErrorValue

LOGGER = logging.getLogger(__name__)

# RFC 3986 sub-delims plus ":" and "@"; "/" and "%" are always escaped.
_SEGMENT_SAFE = "!$&'()*+,;=:@"

# Numeric statuses used by drivers that predate the W3C error codes.
LEGACY_STATUS_CODES: dict[int, str] = {
    6: "invalid session id",
    7: "no such element",
    8: "no such frame",
    9: "unknown command",
    10: "stale element reference",
    11: "element not interactable",
    12: "invalid element state",
    13: "unknown error",
    15: "element not selectable",
    17: "javascript error",
    19: "invalid selector",
    21: "timeout",
    23: "no such window",
    24: "invalid cookie domain",
    25: "unable to set cookie",
    26: "unexpected alert open",
    27: "no such alert",
    28: "script timeout",
    29: "invalid coordinates",
    32: "invalid selector",
    33: "session not created",
    34: "move target out of bounds",
}


def encode_segment(segment: str) -> str:
    """Percent-encode a single path segment."""

    return quote(segment, safe=_SEGMENT_SAFE)


def join_url(base_url: str, segments: Sequence[str]) -> str:
    """Append encoded ``segments`` to ``base_url``."""

    path = "/".join(encode_segment(segment) for segment in segments)
    return f"{base_url.rstrip('/')}/{path}"


def build_request(
    http: httpx.Client,
    method: str,
    base_url: str,
    segments: Sequence[str],
    body: Optional[Any] = None,
) -> httpx.Request:
    if body is None and method == "POST":
        # Drivers reject POST commands without a JSON object body.
        body = {}
    return http.build_request(method, join_url(base_url, segments), json=body)


def execute(
    http: httpx.Client,
    method: str,
    base_url: str,
    segments: Sequence[str],
    target: Any = None,
    body: Optional[Any] = None,
) -> Any:
    """Send a command and return its decoded ``value``.

    ``target`` is any type accepted by :class:`pydantic.TypeAdapter`; ``None``
    returns the raw JSON value.
    """

    return decode(send(http, method, base_url, segments, body), target)


def send(
    http: httpx.Client,
    method: str,
    base_url: str,
    segments: Sequence[str],
    body: Optional[Any] = None,
) -> httpx.Response:
    request = build_request(http, method, base_url, segments, body)
    LOGGER.debug("%s %s body=%s", method, request.url, body)
    try:
        response = http.send(request)
    except httpx.HTTPError as exc:
        raise ConnectionFailure(f"{method} {request.url} failed: {exc}") from exc
    LOGGER.debug("%s %s -> %s", method, request.url, response.status_code)
    return response


def decode(response: httpx.Response, target: Any = None) -> Any:
    envelope = decode_envelope(response)
    return validate(envelope["value"], target)


def decode_envelope(response: httpx.Response) -> dict[str, Any]:
    """Return the JSON envelope of a successful response.

    Raises the classified error when the response, or the envelope it
    carries, reports a failure.
    """

    if not response.is_success:
        raise classify_error(response)
    try:
        payload = response.json()
    except ValueError as exc:
        raise MalformedResponse(
            f"Expected a JSON body, got {response.text[:200]!r}"
        ) from exc
    if not isinstance(payload, dict) or "value" not in payload:
        raise MalformedResponse(f"Response envelope has no value: {payload!r}")
    status = payload.get("status")
    if isinstance(status, int) and not isinstance(status, bool) and status != 0:
        raise _legacy_error(status, payload["value"])
    value = payload["value"]
    if isinstance(value, dict) and isinstance(value.get("error"), str):
        raise _w3c_error(value)
    return payload


def validate(value: Any, target: Any) -> Any:
    if target is None:
        return value
    try:
        return _adapter(target).validate_python(value)
    except ValidationError as exc:
        raise MalformedResponse(f"Unexpected response value {value!r}: {exc}") from exc


def classify_error(response: httpx.Response) -> SulfurError:
    """Turn a non-success response into an exception, keyed on its content type."""

    content_type = response.headers.get("content-type", "")
    mime = content_type.split(";", 1)[0].strip().lower()
    if mime == "application/json":
        try:
            payload = response.json()
        except ValueError as exc:
            error = MalformedResponse(
                f"HTTP {response.status_code} with invalid JSON body: {response.text[:200]!r}"
            )
            error.__cause__ = exc
            return error
        return protocol_error_from_json(payload)
    if mime.startswith("text/"):
        return DriverTextError(response.status_code, response.text)
    return HTTPStatusFailure(response.status_code)


def protocol_error_from_json(payload: Any) -> ProtocolError:
    """Build a :class:`ProtocolError` from any JSON error body.

    Bodies that match neither the W3C nor the legacy shape still produce an
    ``unknown error`` carrying the raw JSON.
    """

    if isinstance(payload, dict):
        value = payload.get("value")
        if isinstance(value, dict) and isinstance(value.get("error"), str):
            return _w3c_error(value)
        status = payload.get("status")
        if isinstance(status, int) and not isinstance(status, bool) and status != 0:
            return _legacy_error(status, value)
        if isinstance(payload.get("error"), str):
            return _w3c_error(payload)
    return ProtocolError("unknown error", json.dumps(payload))


def decode_base64(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedResponse("Driver returned invalid base64 data") from exc


def _w3c_error(value: dict[str, Any]) -> ProtocolError:
    try:
        parsed = ErrorValue.model_validate(value)
    except ValidationError:
        return ProtocolError("unknown error", json.dumps(value))
    return ProtocolError.from_code(parsed.error, parsed.message, stacktrace=parsed.stacktrace)


def _legacy_error(status: int, value: Any) -> ProtocolError:
    code = LEGACY_STATUS_CODES.get(status, "unknown error")
    message = ""
    if isinstance(value, dict):
        try:
            message = LegacyErrorValue.model_validate(value).message
        except ValidationError:
            message = json.dumps(value)
    elif value is not None:
        message = str(value)
    return ProtocolError.from_code(code, message)


@lru_cache(maxsize=None)
def _adapter(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)
