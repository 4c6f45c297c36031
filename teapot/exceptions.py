"""Error taxonomy for the Teapot HTTP client.

Every failure a request can run into is described by a ``TeapotError``.
Errors are not raised across the public boundary of the client; they are
delivered inside a ``Failure`` result so callers branch on one result type
regardless of where the failure originated (URL parsing, the transport,
the server's status code, or the fixture engine used in tests).

Exception Hierarchy:
    TeapotError (base)
    ├── InvalidRequestPathError - base URL or path could not be parsed
    ├── InvalidResponseStatusError - status outside [200, 300)
    ├── DataTaskError - transport error alongside a response
    ├── NoResponseError - no response was received at all
    ├── InvalidPayloadError - request body could not be encoded
    ├── MissingImageError - image download produced no image
    ├── MissingMockFileError - fixture file does not exist
    ├── InvalidMockFileError - fixture file is not a JSON object
    └── IncorrectHeadersError - request headers miss expected values

Example:
    Branching on a result::

        match result:
            case Success(payload=payload):
                print(payload.object)
            case Failure(error=InvalidResponseStatusError(status=status)):
                print(f"Server said {status}")
            case Failure(error=error):
                print(f"Request failed: {error}")
"""

from enum import Enum
from typing import Any, NamedTuple


class ErrorKind(str, Enum):
    """The closed set of error kinds a request can fail with."""

    INVALID_REQUEST_PATH = "invalid_request_path"
    INVALID_RESPONSE_STATUS = "invalid_response_status"
    DATA_TASK_ERROR = "data_task_error"
    NO_RESPONSE = "no_response"
    INVALID_PAYLOAD = "invalid_payload"
    MISSING_IMAGE = "missing_image"
    MISSING_MOCK_FILE = "missing_mock_file"
    INVALID_MOCK_FILE = "invalid_mock_file"
    INCORRECT_HEADERS = "incorrect_headers"


class HeaderExpectation(NamedTuple):
    """Headers a mocked request was expected to carry versus what it sent."""

    expected: dict[str, str]
    received: dict[str, str] | None


class TeapotError(Exception):
    """Base exception for all Teapot request failures.

    Attributes:
        kind: Which entry of the taxonomy this error is.
        message: Human-readable error description.
        status: HTTP status associated with the failure, if any.
        file_name: Fixture name for mock-engine errors.
        underlying: The transport exception that caused the failure.
        header_expectation: Expected/received headers for header mismatches.
    """

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        status: int | None = None,
        file_name: str | None = None,
        underlying: BaseException | None = None,
        header_expectation: HeaderExpectation | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            status: HTTP status associated with the failure.
            file_name: Fixture name for mock-engine errors.
            underlying: The transport exception that caused the failure.
            header_expectation: Expected/received headers for header mismatches.
        """
        self.message = message
        self.status = status
        self.file_name = file_name
        self.underlying = underlying
        self.header_expectation = header_expectation
        super().__init__(message)

    def __str__(self) -> str:
        """Return the message, prefixed with the status when one is known."""
        if self.status is not None:
            return f"[HTTP {self.status}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"

    def _identity(self) -> tuple[Any, ...]:
        # Underlying transport errors rarely compare equal, so match on type.
        underlying_type = type(self.underlying) if self.underlying is not None else None
        return (
            self.kind,
            self.status,
            self.file_name,
            underlying_type,
            self.header_expectation,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TeapotError):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash((self.kind, self.status, self.file_name))


class InvalidRequestPathError(TeapotError):
    """The base URL and path could not be combined into a valid URL."""

    kind = ErrorKind.INVALID_REQUEST_PATH

    def __init__(self, path: str | None = None, status: int | None = 400) -> None:
        self.path = path
        message = "An error occurred: request URL path was invalid"
        if path is not None:
            message = f"{message}: {path!r}"
        super().__init__(message, status=status)


class InvalidResponseStatusError(TeapotError):
    """The server answered with a status outside the 2xx range."""

    kind = ErrorKind.INVALID_RESPONSE_STATUS

    def __init__(self, status: int) -> None:
        super().__init__(
            f"An error occurred: request failed with status {status}",
            status=status,
        )


class DataTaskError(TeapotError):
    """The transport reported an error even though a response arrived."""

    kind = ErrorKind.DATA_TASK_ERROR

    def __init__(self, underlying: BaseException, status: int | None = None) -> None:
        super().__init__(
            f"An error occurred: {underlying}",
            status=status,
            underlying=underlying,
        )


class NoResponseError(TeapotError):
    """No response was received from the server."""

    kind = ErrorKind.NO_RESPONSE

    def __init__(self, underlying: BaseException | None = None, status: int | None = 400) -> None:
        message = "An error occurred: no response was received"
        if underlying is not None:
            message = f"{message} ({underlying})"
        super().__init__(message, status=status, underlying=underlying)


class InvalidPayloadError(TeapotError):
    """The request body could not be serialized."""

    kind = ErrorKind.INVALID_PAYLOAD

    def __init__(self, underlying: BaseException | None = None, status: int | None = 400) -> None:
        super().__init__(
            "An error occurred: request payload could not be encoded",
            status=status,
            underlying=underlying,
        )


class MissingImageError(TeapotError):
    """An image download finished without producing an image."""

    kind = ErrorKind.MISSING_IMAGE

    def __init__(self, status: int | None = None) -> None:
        super().__init__("An error occurred: image data was missing", status=status)


class MissingMockFileError(TeapotError):
    """No fixture file exists for the resolved fixture name."""

    kind = ErrorKind.MISSING_MOCK_FILE

    def __init__(self, file_name: str, status: int | None = 400) -> None:
        super().__init__(
            f"An error occurred: expected mockfile with name: {file_name}.json",
            status=status,
            file_name=file_name,
        )


class InvalidMockFileError(TeapotError):
    """A fixture file exists but does not hold a single JSON object."""

    kind = ErrorKind.INVALID_MOCK_FILE

    def __init__(
        self,
        file_name: str,
        status: int | None = 400,
        underlying: BaseException | None = None,
    ) -> None:
        super().__init__(
            f"An error occurred: invalid mockfile with name: {file_name}.json",
            status=status,
            file_name=file_name,
            underlying=underlying,
        )


class IncorrectHeadersError(TeapotError):
    """A mocked request did not carry the headers the test expected.

    Attributes:
        expected: The headers the test required.
        received: The headers the request actually carried, or None if it
            carried none at all.
    """

    kind = ErrorKind.INCORRECT_HEADERS

    def __init__(
        self,
        expected: dict[str, str],
        received: dict[str, str] | None,
        status: int | None = 400,
    ) -> None:
        self.expected = dict(expected)
        self.received = dict(received) if received is not None else None
        super().__init__(
            "An error occurred: incorrect headers. "
            f"Expected: {self.expected}, received: {self.received}",
            status=status,
            header_expectation=HeaderExpectation(self.expected, self.received),
        )
