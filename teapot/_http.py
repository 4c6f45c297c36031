"""Transports for the Teapot client.

A transport performs one request described by a ``RequestDescriptor`` and
reports what happened as an ``Outcome``. It never classifies the outcome
and never raises for HTTP or network failures; those are reported in the
outcome so the client can classify them uniformly.

Two implementations exist:
- ``HTTPXTransport`` (this module): talks to the network through httpx.
- ``FixtureTransport`` (``teapot.mock``): answers from JSON fixture files.

This is an internal module and should not be imported directly by users.
"""

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from teapot.models import Outcome, RequestDescriptor
from teapot._response import outcome_from_response

logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Anything that can execute a ``RequestDescriptor``.

    ``send`` must return an ``Outcome`` for every failure except
    cancellation, which is signalled by letting ``asyncio.CancelledError``
    propagate.
    """

    async def send(self, request: RequestDescriptor) -> Outcome:
        ...

    async def close(self) -> None:
        ...


class HTTPXTransport:
    """Live transport backed by ``httpx.AsyncClient``.

    Attributes:
        client: The underlying httpx client.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            client: An existing client to send through. It is not closed
                by ``close()``.
            transport: Custom httpx transport (e.g., MockTransport for
                testing). Ignored when ``client`` is given.
        """
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient(transport=transport)

    async def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HTTPXTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def send(self, request: RequestDescriptor) -> Outcome:
        """Send the request and report the outcome.

        Args:
            request: The request to perform.

        Returns:
            The outcome. Network failures (connection errors, timeouts,
            protocol errors) are reported in ``Outcome.error`` without a
            status.
        """
        try:
            response = await self.client.request(
                method=request.verb.value,
                url=request.url,
                headers=request.headers,
                content=request.content,
                timeout=request.timeout,
            )
        except httpx.HTTPError as e:
            logger.debug("%s %s failed: %r", request.verb.value, request.url, e)
            return Outcome(error=e)

        logger.debug(
            "%s %s -> %s",
            request.verb.value,
            request.url,
            response.status_code,
        )
        return outcome_from_response(response)
