"""Request, outcome and result models for the Teapot client.

A request flows through three shapes:

- ``RequestDescriptor``: what to send. Built once per call and immutable.
- ``Outcome``: what a transport got back, before any interpretation.
- ``Result``: the classified outcome handed to the caller, either a
  ``Success`` or a ``Failure``.

Both the live transport and the fixture transport produce ``Outcome``
values so the same classification applies to each.
"""

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from teapot.exceptions import TeapotError
from teapot.payload import Payload


class Verb(str, Enum):
    """HTTP methods supported by the client.

    Lookup by value is case-insensitive, so ``Verb("get") is Verb.GET``.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def _missing_(cls, value: object) -> "Verb | None":
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


def is_success_status(status: int) -> bool:
    return 200 <= status < 300


class RequestDescriptor(BaseModel):
    """Everything a transport needs to perform one request.

    Attributes:
        verb: The HTTP method.
        url: The fully resolved URL, query string included verbatim.
        headers: Header fields to send (last write wins per name).
        body: Optional request body.
        timeout: Seconds before the transport gives up.
        allow_cellular: Whether the request may run over a metered link.
            Kept for transports that can honour it; httpx cannot.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    verb: Verb = Field(..., description="HTTP method")
    url: str = Field(..., description="Resolved request URL")
    headers: dict[str, str] = Field(default_factory=dict, description="Request headers")
    body: Payload | None = Field(None, description="Request body")
    timeout: float = Field(5.0, gt=0, description="Timeout in seconds")
    allow_cellular: bool = Field(True, description="Allow metered networks")

    @property
    def path(self) -> str:
        """The URL path without the query string."""
        without_query = self.url.split("?", 1)[0].split("#", 1)[0]
        scheme_split = without_query.split("://", 1)
        remainder = scheme_split[1] if len(scheme_split) == 2 else scheme_split[0]
        slash = remainder.find("/")
        return remainder[slash:] if slash >= 0 else "/"

    @property
    def endpoint_name(self) -> str:
        """The last path segment, used to route mocked requests."""
        segments = [segment for segment in self.path.split("/") if segment]
        return segments[-1] if segments else ""

    @property
    def content(self) -> bytes | None:
        return self.body.data if self.body is not None else None


class Outcome(BaseModel):
    """The raw result of a transport attempt, before classification.

    Attributes:
        status: HTTP status code, absent when no response was received.
        headers: Response headers.
        body: Raw response body.
        error: Transport error, or a ``TeapotError`` synthesized by the
            fixture transport.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: int | None = Field(None, description="HTTP status code")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")
    body: bytes | None = Field(None, description="Raw response body")
    error: BaseException | None = Field(None, description="Transport error")


class Success(BaseModel):
    """A request that completed with a 2xx status.

    Attributes:
        payload: The decoded JSON body, or None when the body was empty or
            not a JSON object/array of objects.
        status: HTTP status code, always in [200, 300).
        headers: Response headers.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    payload: Payload | None = Field(None, description="Decoded response body")
    status: int = Field(..., description="HTTP status code")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")

    @model_validator(mode="after")
    def _check_status(self) -> "Success":
        if not is_success_status(self.status):
            raise ValueError(f"Success requires a 2xx status, got {self.status}")
        return self

    @property
    def is_success(self) -> bool:
        return True


class Failure(BaseModel):
    """A request that failed, for any reason.

    Attributes:
        payload: The decoded JSON body, if the server sent one.
        status: HTTP status code, or a synthetic 400 for local failures.
        headers: Response headers.
        error: What went wrong.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    payload: Payload | None = Field(None, description="Decoded response body")
    status: int = Field(..., description="HTTP status code")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")
    error: TeapotError = Field(..., description="The failure")

    @property
    def is_success(self) -> bool:
        return False


Result = Union[Success, Failure]


class ImageSuccess(BaseModel):
    """An image download that produced an image."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    image: Any = Field(..., description="Decoded image")
    status: int = Field(..., description="HTTP status code")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")


class ImageFailure(BaseModel):
    """An image download that failed or produced no image."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: int = Field(..., description="HTTP status code")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")
    error: TeapotError = Field(..., description="The failure")


ImageResult = Union[ImageSuccess, ImageFailure]
