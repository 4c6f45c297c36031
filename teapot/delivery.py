"""Delivery contexts and request handles.

Work happens on the asyncio event loop; completions are delivered on a
*delivery context*, chosen per client or per call. The default is the
event loop the call was made from.

A ``RequestHandle`` is returned by every verb method. Cancelling it
guarantees the completion is never invoked, even when the response has
already arrived and is only waiting to be delivered.
"""

import asyncio
import logging
from concurrent.futures import Executor
from typing import Any, Callable, Generator, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class DeliveryContext(Protocol):
    """Somewhere a completion callback can be run."""

    def deliver(self, callback: Callable[[], None]) -> None:
        ...


class LoopDelivery:
    """Deliver completions on an asyncio event loop.

    Safe to use from any thread; callbacks run on the loop's thread.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop

    def deliver(self, callback: Callable[[], None]) -> None:
        self.loop.call_soon_threadsafe(callback)

    def __repr__(self) -> str:
        return f"LoopDelivery({self.loop!r})"


class ExecutorDelivery:
    """Deliver completions on a ``concurrent.futures`` executor.

    Example:
        Delivering on a dedicated worker thread::

            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="results")
            client = Teapot("https://api.example.com", delivery=ExecutorDelivery(executor))
    """

    def __init__(self, executor: Executor) -> None:
        self.executor = executor

    def deliver(self, callback: Callable[[], None]) -> None:
        self.executor.submit(callback)

    def __repr__(self) -> str:
        return f"ExecutorDelivery({self.executor!r})"


class RequestHandle:
    """A cancellable handle for one in-flight request.

    Attributes:
        cancelled: True once ``cancel()`` has been called.
    """

    def __init__(self) -> None:
        self.cancelled = False
        self._task: asyncio.Task[Any] | None = None

    def _attach(self, task: "asyncio.Task[Any]") -> None:
        self._task = task
        if self.cancelled:
            task.cancel()

    @property
    def done(self) -> bool:
        """Whether the request task has finished (or was cancelled)."""
        return self._task is None or self._task.done()

    def cancel(self) -> None:
        """Cancel the request. The completion will never be invoked."""
        self.cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> Any:
        """Wait for the request task to finish.

        Returns:
            The result passed to the completion, or None if the request was
            cancelled before it completed.
        """
        if self._task is None:
            return None
        try:
            return await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if self._task.cancelled():
                return None
            raise

    def __await__(self) -> Generator[Any, None, Any]:
        return self.wait().__await__()

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "done" if self.done else "pending"
        return f"<RequestHandle {state}>"


def deliver_once(
    handle: RequestHandle,
    context: DeliveryContext,
    completion: Callable[[Any], None],
    result: Any,
) -> None:
    """Run ``completion(result)`` on ``context`` unless the handle is cancelled.

    The cancellation check happens on the delivery context itself, right
    before the completion runs.
    """

    def _run() -> None:
        if handle.cancelled:
            return
        try:
            completion(result)
        except Exception:
            logger.exception("Completion callback raised")

    context.deliver(_run)
