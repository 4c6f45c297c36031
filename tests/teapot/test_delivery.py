"""Unit tests for delivery contexts and request handles."""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

from teapot.delivery import (
    DeliveryContext,
    ExecutorDelivery,
    LoopDelivery,
    RequestHandle,
    deliver_once,
)
from tests.fixtures.teapot import QueuedDelivery, ResultCollector


class TestDeliveryContexts:
    def test_implementations_satisfy_protocol(self) -> None:
        loop = asyncio.new_event_loop()
        try:
            assert isinstance(LoopDelivery(loop), DeliveryContext)
        finally:
            loop.close()
        with ThreadPoolExecutor(max_workers=1) as executor:
            assert isinstance(ExecutorDelivery(executor), DeliveryContext)
        assert isinstance(QueuedDelivery(), DeliveryContext)

    async def test_loop_delivery_from_another_thread(self) -> None:
        collector = ResultCollector()
        delivery = LoopDelivery(asyncio.get_running_loop())

        worker = threading.Thread(target=delivery.deliver, args=(lambda: collector("done"),), name="worker")
        worker.start()
        worker.join()

        assert await collector.wait() == "done"
        assert collector.threads == [threading.current_thread().name]

    async def test_executor_delivery(self) -> None:
        collector = ResultCollector()
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="deliver") as executor:
            ExecutorDelivery(executor).deliver(lambda: collector("done"))
            await collector.wait()

        assert collector.threads[0].startswith("deliver")


class TestRequestHandle:
    async def test_unattached_handle(self) -> None:
        handle = RequestHandle()

        assert handle.done
        assert await handle is None
        assert repr(handle) == "<RequestHandle done>"

    async def test_cancel_before_attach_cancels_task(self) -> None:
        handle = RequestHandle()
        handle.cancel()

        task = asyncio.get_running_loop().create_task(asyncio.sleep(1, result="late"))
        handle._attach(task)

        assert await handle is None
        assert task.cancelled()
        assert repr(handle) == "<RequestHandle cancelled>"

    async def test_wait_returns_task_result(self) -> None:
        handle = RequestHandle()
        handle._attach(asyncio.get_running_loop().create_task(asyncio.sleep(0, result="value")))

        assert await handle.wait() == "value"

    async def test_cancelling_waiter_leaves_task_running(self) -> None:
        handle = RequestHandle()
        task = asyncio.get_running_loop().create_task(asyncio.sleep(0.05, result="value"))
        handle._attach(task)

        waiter = asyncio.create_task(handle.wait())
        await asyncio.sleep(0)
        waiter.cancel()
        await asyncio.gather(waiter, return_exceptions=True)

        assert await task == "value"
        assert not handle.cancelled


class TestDeliverOnce:
    def test_delivers_result(self) -> None:
        collector = ResultCollector()
        delivery = QueuedDelivery()

        deliver_once(RequestHandle(), delivery, collector, "result")
        delivery.flush()

        assert collector.result == "result"

    def test_cancellation_checked_at_delivery_time(self) -> None:
        collector = ResultCollector()
        delivery = QueuedDelivery()
        handle = RequestHandle()

        deliver_once(handle, delivery, collector, "result")
        handle.cancel()
        delivery.flush()

        assert not collector.called

    def test_completion_error_does_not_propagate(self, caplog) -> None:
        def completion(result: object) -> None:
            raise RuntimeError("callback failed")

        delivery = QueuedDelivery()
        deliver_once(RequestHandle(), delivery, completion, "result")
        delivery.flush()

        assert "Completion callback raised" in caplog.text
