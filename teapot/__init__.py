"""Teapot: a small asynchronous JSON HTTP client with a fixture-backed mock.

Example:
    Live usage::

        from teapot import Teapot, Success, Failure

        async with Teapot("https://httpbin.org") as client:
            result = await client.send("GET", "/get?query=a%26b")

    Test usage::

        from teapot import MockTeapot

        mock = MockTeapot(Path("tests/fixtures/mocks"), "get")
        mock.get("/get", on_result)

Exports:
    Teapot: Client for live requests.
    MockTeapot: Client answered from JSON fixture files.
    TeapotConfig: Client settings, optionally read from the environment.

    Results:
        Success, Failure: Request results.
        ImageSuccess, ImageFailure: Image download results.

    Exceptions:
        TeapotError: Base class of every error carried in a ``Failure``.
"""

from teapot._http import HTTPXTransport, Transport
from teapot.auth import BASIC_AUTH_HEADER_KEY, basic_auth_header, basic_auth_value
from teapot.client import Teapot
from teapot.config import TeapotConfig
from teapot.delivery import DeliveryContext, ExecutorDelivery, LoopDelivery, RequestHandle
from teapot.exceptions import (
    DataTaskError,
    ErrorKind,
    HeaderExpectation,
    IncorrectHeadersError,
    InvalidMockFileError,
    InvalidPayloadError,
    InvalidRequestPathError,
    InvalidResponseStatusError,
    MissingImageError,
    MissingMockFileError,
    NoResponseError,
    TeapotError,
)
from teapot.mock import FixtureRegistry, FixtureTransport, MockTeapot
from teapot.models import (
    Failure,
    ImageFailure,
    ImageResult,
    ImageSuccess,
    Outcome,
    RequestDescriptor,
    Result,
    Success,
    Verb,
)
from teapot.multipart import multipart_content_type, multipart_data
from teapot.payload import JSONKind, JSONValue, Payload, PayloadKind
from teapot.wire_log import LogLevel, WireLogger

__all__ = [
    # Clients
    "Teapot",
    "MockTeapot",
    "TeapotConfig",
    # Transports
    "Transport",
    "HTTPXTransport",
    "FixtureTransport",
    "FixtureRegistry",
    # Delivery
    "DeliveryContext",
    "LoopDelivery",
    "ExecutorDelivery",
    "RequestHandle",
    # Models
    "Verb",
    "RequestDescriptor",
    "Outcome",
    "Result",
    "Success",
    "Failure",
    "ImageResult",
    "ImageSuccess",
    "ImageFailure",
    "Payload",
    "PayloadKind",
    "JSONValue",
    "JSONKind",
    # Exceptions
    "TeapotError",
    "ErrorKind",
    "HeaderExpectation",
    "InvalidRequestPathError",
    "InvalidResponseStatusError",
    "DataTaskError",
    "NoResponseError",
    "InvalidPayloadError",
    "MissingImageError",
    "MissingMockFileError",
    "InvalidMockFileError",
    "IncorrectHeadersError",
    # Helpers
    "BASIC_AUTH_HEADER_KEY",
    "basic_auth_value",
    "basic_auth_header",
    "multipart_data",
    "multipart_content_type",
    "LogLevel",
    "WireLogger",
]
