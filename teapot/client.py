"""The Teapot client.

``Teapot`` issues GET/POST/PUT/DELETE requests relative to a base URL and
reports each one as a ``Result``. Two calling styles are supported:

- Callback style: ``get/post/put/delete`` return a ``RequestHandle``
  immediately and later invoke the completion exactly once, on the
  delivery context, unless the handle was cancelled first.
- Awaitable style: ``await client.send(...)`` returns the ``Result``.

Example:
    Callback usage::

        async def main():
            client = Teapot("https://httpbin.org")

            def on_result(result: Result) -> None:
                match result:
                    case Success(payload=payload, status=status):
                        print(status, payload.object if payload else None)
                    case Failure(error=error):
                        print(f"Failed: {error}")

            handle = client.get("/get", on_result, headers={"Accept": "application/json"})
            await handle
            await client.close()

    Awaitable usage::

        async with Teapot("https://httpbin.org") as client:
            result = await client.send("POST", "/post", body={"key": "value"})
"""

import asyncio
import logging
from typing import Any, Callable, Mapping

from teapot._http import HTTPXTransport, Transport
from teapot._request import DEFAULT_TIMEOUT, build_request
from teapot._response import classify, classify_image, raw_image
from teapot.auth import basic_auth_header
from teapot.config import TeapotConfig
from teapot.delivery import DeliveryContext, LoopDelivery, RequestHandle, deliver_once
from teapot.exceptions import TeapotError
from teapot.models import ImageResult, Outcome, RequestDescriptor, Result, Verb
from teapot.payload import Payload
from teapot.wire_log import WireLogger

logger = logging.getLogger(__name__)

Completion = Callable[[Result], None]
ImageCompletion = Callable[[ImageResult], None]
Body = Payload | Mapping[str, Any] | list[Mapping[str, Any]] | bytes | None

_IMAGE_CONTENT_TYPES = (
    ("jpg", "image/jpg"),
    ("gif", "image/gif"),
)


def image_content_type(url: str) -> str:
    """Guess an image Content-Type from a URL suffix, defaulting to PNG."""
    for suffix, content_type in _IMAGE_CONTENT_TYPES:
        if url.endswith(suffix):
            return content_type
    return "image/png"


class Teapot:
    """Client for a JSON HTTP API.

    Configuration is fixed at construction and is safe to read from any
    thread.

    Attributes:
        base_url: The URL every request path is appended to.
        timeout: Default request timeout in seconds.
        allow_cellular: Default for whether requests may use metered links.
        delivery: Default delivery context, or None for the calling loop.
        transport: Where requests are sent.
        wire_logger: Sink for request/response traffic.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        allow_cellular: bool = True,
        delivery: DeliveryContext | None = None,
        transport: Transport | None = None,
        wire_logger: WireLogger | None = None,
        image_decoder: Callable[[bytes], Any] = raw_image,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Absolute http(s) URL all request paths are relative to.
            timeout: Default request timeout in seconds (default: 5.0).
            allow_cellular: Default for whether requests may use metered links.
            delivery: Where completions run. Defaults to the event loop the
                request was issued from.
            transport: Custom transport. Defaults to ``HTTPXTransport``.
            wire_logger: Traffic logger. Defaults to one that logs nothing.
            image_decoder: Turns downloaded bytes into an image; returning
                None reports a missing image. Defaults to the raw bytes.

        Raises:
            ValueError: If ``timeout`` is not positive.
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self.base_url = base_url
        self.timeout = timeout
        self.allow_cellular = allow_cellular
        self.delivery = delivery
        self.transport: Transport = transport if transport is not None else HTTPXTransport()
        self.wire_logger = wire_logger if wire_logger is not None else WireLogger()
        self.image_decoder = image_decoder
        # In-flight request tasks; the loop itself only keeps weak references.
        self._tasks: set[asyncio.Task[Any]] = set()

    @classmethod
    def from_config(cls, config: TeapotConfig, **kwargs: Any) -> "Teapot":
        """Create a client from a ``TeapotConfig``.

        Keyword arguments are passed through to the constructor, e.g. a
        custom ``transport`` or ``delivery``.
        """
        kwargs.setdefault("wire_logger", WireLogger(config.log_level))
        return cls(
            config.base_url,
            timeout=config.timeout,
            allow_cellular=config.allow_cellular,
            **kwargs,
        )

    async def close(self) -> None:
        """Close the transport and release its resources."""
        await self.transport.close()

    async def __aenter__(self) -> "Teapot":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @staticmethod
    def basic_auth_header(username: str, password: str) -> dict[str, str]:
        """Build a basic auth header to pass in ``headers``."""
        return basic_auth_header(username, password)

    # -------------------------------------------------------------------------
    # Callback API
    # -------------------------------------------------------------------------

    def get(
        self,
        path: str,
        completion: Completion,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        allow_cellular: bool | None = None,
        delivery: DeliveryContext | None = None,
    ) -> RequestHandle:
        """Perform a GET request.

        Args:
            path: Path relative to the base URL. May carry a query string,
                which is sent verbatim.
            completion: Called once with the ``Result``.
            headers: Header fields to send.
            timeout: Seconds before the request times out.
            allow_cellular: Whether the request may use a metered link.
            delivery: Where to run the completion for this call.

        Returns:
            A handle that can cancel the request.
        """
        return self._execute(Verb.GET, path, completion, None, headers, timeout, allow_cellular, delivery)

    def post(
        self,
        path: str,
        completion: Completion,
        body: Body = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        allow_cellular: bool | None = None,
        delivery: DeliveryContext | None = None,
    ) -> RequestHandle:
        """Perform a POST request.

        Args:
            path: Path relative to the base URL.
            completion: Called once with the ``Result``.
            body: Request body. Structured bodies are sent as JSON.
            headers: Header fields to send.
            timeout: Seconds before the request times out.
            allow_cellular: Whether the request may use a metered link.
            delivery: Where to run the completion for this call.

        Returns:
            A handle that can cancel the request.
        """
        return self._execute(Verb.POST, path, completion, body, headers, timeout, allow_cellular, delivery)

    def put(
        self,
        path: str,
        completion: Completion,
        body: Body = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        allow_cellular: bool | None = None,
        delivery: DeliveryContext | None = None,
    ) -> RequestHandle:
        """Perform a PUT request. Arguments are as for ``post``."""
        return self._execute(Verb.PUT, path, completion, body, headers, timeout, allow_cellular, delivery)

    def delete(
        self,
        path: str,
        completion: Completion,
        body: Body = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        allow_cellular: bool | None = None,
        delivery: DeliveryContext | None = None,
    ) -> RequestHandle:
        """Perform a DELETE request. Arguments are as for ``post``."""
        return self._execute(Verb.DELETE, path, completion, body, headers, timeout, allow_cellular, delivery)

    def get_image(
        self,
        completion: ImageCompletion,
        path: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        allow_cellular: bool | None = None,
        delivery: DeliveryContext | None = None,
    ) -> RequestHandle:
        """Download an image.

        A Content-Type hint is added from the URL suffix (jpg, gif, or png
        otherwise) unless the caller set one.

        Args:
            completion: Called once with an ``ImageSuccess`` or ``ImageFailure``.
            path: Path relative to the base URL, or None for the base URL itself.
            headers: Header fields to send.
            timeout: Seconds before the request times out.
            allow_cellular: Whether the request may use a metered link.
            delivery: Where to run the completion for this call.

        Returns:
            A handle that can cancel the request.
        """
        header_fields = dict(headers or {})
        if not any(key.lower() == "content-type" for key in header_fields):
            header_fields["Content-Type"] = image_content_type(path or self.base_url)

        def _classify(outcome: Outcome) -> ImageResult | None:
            return classify_image(outcome, self.image_decoder)

        return self._execute(
            Verb.GET,
            path or "",
            completion,
            None,
            header_fields,
            timeout,
            allow_cellular,
            delivery,
            classifier=_classify,
        )

    # -------------------------------------------------------------------------
    # Awaitable API
    # -------------------------------------------------------------------------

    async def send(
        self,
        verb: Verb | str,
        path: str,
        body: Body = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        allow_cellular: bool | None = None,
    ) -> Result:
        """Perform a request and return its ``Result``.

        Args:
            verb: HTTP method, as a ``Verb`` or its name in any case.
            path: Path relative to the base URL.
            body: Request body. Structured bodies are sent as JSON.
            headers: Header fields to send.
            timeout: Seconds before the request times out.
            allow_cellular: Whether the request may use a metered link.

        Raises:
            ValueError: If ``verb`` is not GET, POST, PUT or DELETE.
            asyncio.CancelledError: If the request was cancelled.
        """
        outcome = await self._outcome(Verb(verb), path, body, headers, timeout, allow_cellular)
        result = classify(outcome)
        if result is None:
            raise asyncio.CancelledError()
        return result

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _execute(
        self,
        verb: Verb,
        path: str,
        completion: Callable[[Any], None],
        body: Body,
        headers: Mapping[str, str] | None,
        timeout: float | None,
        allow_cellular: bool | None,
        delivery: DeliveryContext | None,
        classifier: Callable[[Outcome], Any] = classify,
    ) -> RequestHandle:
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        # Raises RuntimeError when called outside a running event loop.
        loop = asyncio.get_running_loop()
        context = delivery or self.delivery or LoopDelivery(loop)
        handle = RequestHandle()

        async def _run() -> Any:
            outcome = await self._outcome(verb, path, body, headers, timeout, allow_cellular)
            result = classifier(outcome)
            if result is not None:
                deliver_once(handle, context, completion, result)
            return result

        task = loop.create_task(_run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        handle._attach(task)
        return handle

    def _build(
        self,
        verb: Verb,
        path: str,
        body: Body,
        headers: Mapping[str, str] | None,
        timeout: float | None,
        allow_cellular: bool | None,
    ) -> RequestDescriptor:
        return build_request(
            self.base_url,
            verb,
            path,
            body=body,
            headers=headers,
            timeout=self.timeout if timeout is None else timeout,
            allow_cellular=self.allow_cellular if allow_cellular is None else allow_cellular,
        )

    async def _outcome(
        self,
        verb: Verb,
        path: str,
        body: Body,
        headers: Mapping[str, str] | None,
        timeout: float | None,
        allow_cellular: bool | None,
    ) -> Outcome:
        """Build and send one request, reporting every failure as an Outcome."""
        try:
            request = self._build(verb, path, body, headers, timeout, allow_cellular)
        except TeapotError as e:
            logger.debug("Could not build %s %s: %s", verb.value, path, e)
            self.wire_logger.error_log(f"Could not build request {verb.value} {path}: {e}")
            return Outcome(error=e)

        self.wire_logger.log_request(request)
        try:
            outcome = await self.transport.send(request)
        except asyncio.CancelledError:
            logger.debug("%s %s cancelled", request.verb.value, request.url)
            raise
        except Exception as e:
            logger.exception("Transport failed for %s %s", request.verb.value, request.url)
            outcome = Outcome(error=e)
        self.wire_logger.log_outcome(outcome)
        return outcome
