"""Request construction for the Teapot client.

This module turns a base URL, a relative path and the per-call options
into a ``RequestDescriptor``. It handles:
- Appending the path to the base URL
- Keeping an already percent-encoded query string byte for byte
- Setting ``Content-Type: application/json`` for structured bodies

This is an internal module and should not be imported directly by users.
"""

import re
from typing import Any, Mapping

import httpx

from teapot.exceptions import InvalidPayloadError, InvalidRequestPathError
from teapot.models import RequestDescriptor, Verb
from teapot.payload import Payload

JSON_CONTENT_TYPE = "application/json"

DEFAULT_TIMEOUT = 5.0  # seconds

# A "%" that does not start a two-digit hex escape
_BAD_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# Characters that can never appear in a URL, even percent-encoded input
_FORBIDDEN_URL_CHARS = re.compile(r"[\s<>\"{}|\\^`]")


def _check_url_text(text: str, original: str) -> None:
    if _BAD_PERCENT_ESCAPE.search(text) or _FORBIDDEN_URL_CHARS.search(text):
        raise InvalidRequestPathError(original)


def resolve_url(base_url: str, path: str) -> str:
    """Append a relative path to a base URL.

    The path may carry a query string. That query is appended verbatim,
    so a caller can pass ``?q=a%26b`` and the server receives ``a%26b``
    as a single value rather than two parameters.

    Args:
        base_url: Absolute http(s) URL the path is relative to.
        path: Relative path, optionally with a ``?query`` suffix.

    Returns:
        The resolved URL as a string.

    Raises:
        InvalidRequestPathError: If either part cannot form a valid URL.
    """
    _check_url_text(base_url, base_url)
    _check_url_text(path, path)

    try:
        base = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        raise InvalidRequestPathError(base_url) from e
    if base.scheme not in ("http", "https") or not base.host:
        raise InvalidRequestPathError(base_url)

    path_part, separator, query = path.partition("?")
    path_part, _, _fragment = path_part.partition("#")

    # A query or fragment on the base URL is dropped.
    base_text = base_url.split("#", 1)[0].split("?", 1)[0].rstrip("/")
    resolved = base_text
    if path_part.strip("/"):
        resolved = f"{base_text}/{path_part.lstrip('/')}"
    if separator:
        resolved = f"{resolved}?{query}"

    try:
        httpx.URL(resolved)
    except httpx.InvalidURL as e:
        raise InvalidRequestPathError(path) from e
    return resolved


def _fold_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Apply header fields in order, one entry per case-insensitive name.

    A later field replaces an earlier one with the same name in any case;
    the later spelling of the name is kept.
    """
    fields: dict[str, str] = {}
    spelling: dict[str, str] = {}
    for key, value in headers.items():
        name = str(key)
        previous = spelling.pop(name.lower(), None)
        if previous is not None:
            del fields[previous]
        spelling[name.lower()] = name
        fields[name] = str(value)
    return fields


def _has_header(headers: Mapping[str, str], name: str) -> bool:
    lowered = name.lower()
    return any(key.lower() == lowered for key in headers)


def build_request(
    base_url: str,
    verb: Verb | str,
    path: str,
    body: Payload | Mapping[str, Any] | list[Mapping[str, Any]] | bytes | None = None,
    headers: Mapping[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    allow_cellular: bool = True,
) -> RequestDescriptor:
    """Build the descriptor for one request.

    Args:
        base_url: Absolute URL the path is relative to.
        verb: HTTP method.
        path: Relative path, optionally with a query string.
        body: Request body. Plain dicts, lists of dicts and bytes are
            wrapped in a ``Payload``.
        headers: Header fields. Names are case-insensitive and fields are
            applied in order, so the last value for a name wins.
        timeout: Seconds before the transport gives up.
        allow_cellular: Whether the request may use a metered network.

    Returns:
        An immutable ``RequestDescriptor``.

    Raises:
        InvalidRequestPathError: If the URL cannot be built.
        InvalidPayloadError: If the body cannot be encoded as JSON.
    """
    url = resolve_url(base_url, path)

    payload: Payload | None
    try:
        payload = body if body is None or isinstance(body, Payload) else Payload(body)
        if payload is not None:
            # Encode now so an unserializable body fails before dispatch.
            payload.data
    except (TypeError, ValueError) as e:
        raise InvalidPayloadError(underlying=e) from e

    header_fields = _fold_headers(headers or {})

    if payload is not None and payload.is_json and not _has_header(header_fields, "Content-Type"):
        header_fields["Content-Type"] = JSON_CONTENT_TYPE

    return RequestDescriptor(
        verb=Verb(verb),
        url=url,
        headers=header_fields,
        body=payload,
        timeout=timeout,
        allow_cellular=allow_cellular,
    )
