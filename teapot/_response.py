"""Response classification for the Teapot client.

Turns a transport ``Outcome`` into the ``Result`` the caller sees. The
same rules apply whether the outcome came from the network or from the
fixture transport:

1. No status: a cancellation is suppressed (no result at all); anything
   else becomes ``NoResponseError`` with a synthetic 400.
2. The body is decoded as JSON on a best-effort basis. An empty or
   non-JSON body is valid and just leaves the payload absent.
3. A status outside [200, 300) is a ``Failure``. A transport error takes
   precedence over the status error.
4. Anything else is a ``Success``.

This is an internal module and should not be imported directly by users.
"""

import asyncio
from typing import Any, Callable

import httpx

from teapot.exceptions import (
    DataTaskError,
    InvalidResponseStatusError,
    MissingImageError,
    NoResponseError,
    TeapotError,
)
from teapot.models import (
    Failure,
    ImageFailure,
    ImageResult,
    ImageSuccess,
    Outcome,
    Result,
    Success,
    is_success_status,
)
from teapot.payload import Payload, decode_json

# Status reported for failures that never reached a server
SYNTHETIC_FAILURE_STATUS = 400


class RequestCancelled(Exception):
    """Transport-level signal that the request was cancelled by the caller."""


def is_cancellation(error: BaseException | None) -> bool:
    """Whether a transport error means the caller cancelled the request."""
    if error is None:
        return False
    if isinstance(error, (asyncio.CancelledError, RequestCancelled)):
        return True
    cause = error.__cause__ or error.__context__
    return isinstance(cause, (asyncio.CancelledError, RequestCancelled))


def _decode_payload(body: bytes | None) -> Payload | None:
    decoded = decode_json(body)
    return Payload(decoded) if decoded is not None else None


def _failure_from_error(
    error: BaseException,
    status: int,
    headers: dict[str, str],
    payload: Payload | None = None,
) -> Failure:
    teapot_error = error if isinstance(error, TeapotError) else DataTaskError(error, status=status)
    return Failure(payload=payload, status=status, headers=headers, error=teapot_error)


def classify(outcome: Outcome) -> Result | None:
    """Classify a transport outcome.

    Args:
        outcome: What the transport reported.

    Returns:
        A ``Success`` or ``Failure``, or None when the outcome reports a
        cancellation and must not be delivered to the caller.
    """
    if outcome.status is None:
        if is_cancellation(outcome.error):
            return None
        if isinstance(outcome.error, TeapotError):
            error = outcome.error
        else:
            error = NoResponseError(outcome.error)
        return Failure(
            payload=None,
            status=SYNTHETIC_FAILURE_STATUS,
            headers=dict(outcome.headers),
            error=error,
        )

    payload = _decode_payload(outcome.body)
    headers = dict(outcome.headers)

    # Errors synthesized by the fixture transport pass through untouched.
    if isinstance(outcome.error, TeapotError):
        return _failure_from_error(outcome.error, outcome.status, headers, payload)

    if not is_success_status(outcome.status):
        if outcome.error is not None:
            if is_cancellation(outcome.error):
                return None
            return _failure_from_error(outcome.error, outcome.status, headers, payload)
        return Failure(
            payload=payload,
            status=outcome.status,
            headers=headers,
            error=InvalidResponseStatusError(outcome.status),
        )

    return Success(payload=payload, status=outcome.status, headers=headers)


def raw_image(data: bytes) -> bytes | None:
    """Default image decoder: the raw bytes, or None when there are none."""
    return data or None


def classify_image(
    outcome: Outcome,
    decoder: Callable[[bytes], Any] = raw_image,
) -> ImageResult | None:
    """Classify the outcome of an image download.

    Follows ``classify`` for status and transport errors. A 2xx response
    whose body is empty, or that the decoder cannot turn into an image,
    fails with ``MissingImageError``.
    """
    result = classify(outcome)
    if result is None:
        return None
    if isinstance(result, Failure):
        return ImageFailure(status=result.status, headers=result.headers, error=result.error)

    image = decoder(outcome.body) if outcome.body else None
    if image is None:
        return ImageFailure(
            status=result.status,
            headers=result.headers,
            error=MissingImageError(status=result.status),
        )
    return ImageSuccess(image=image, status=result.status, headers=result.headers)


def outcome_from_response(response: httpx.Response) -> Outcome:
    """Convert an httpx response into an ``Outcome``."""
    return Outcome(
        status=response.status_code,
        headers=dict(response.headers),
        body=response.content or None,
    )
