from __future__ import annotations

import asyncio

import anyio

from core.dispatcher import DeliveryFailure, DeliveryResult, Dispatcher


class Recorder:
    def __init__(self, results):
        self.results = results
        self.sent = []
        self.removed = []

    async def deliver(self, user_id, message):
        await asyncio.sleep(0)
        self.sent.append((user_id, message))
        result = self.results.get(user_id, DeliveryResult.delivered())
        if isinstance(result, Exception):
            raise result
        return result

    def remove(self, user_id):
        self.removed.append(user_id)
        return True


def test_result_constructors():
    assert DeliveryResult.delivered().ok
    assert DeliveryResult.unreachable("blocked").failure is DeliveryFailure.UNREACHABLE
    assert DeliveryResult.failed("500").failure is DeliveryFailure.OTHER


def test_unreachable_recipients_are_removed_others_kept():
    recorder = Recorder(
        {
            2: DeliveryResult.unreachable("dms closed"),
            3: DeliveryResult.failed("server error"),
            4: RuntimeError("socket closed"),
        }
    )
    dispatcher = Dispatcher(recorder.deliver, recorder.remove)

    async def scenario():
        dispatcher.dispatch([1, 2, 3, 4], "hello", "event")
        assert dispatcher.pending == 4
        await dispatcher.drain()
        assert dispatcher.pending == 0

    anyio.run(scenario)

    assert sorted(user_id for user_id, _ in recorder.sent) == [1, 2, 3, 4]
    assert recorder.removed == [2]


def test_dispatch_returns_before_delivery():
    sent = []

    async def scenario():
        release = asyncio.Event()

        async def slow(user_id, message):
            await release.wait()
            sent.append(user_id)
            return DeliveryResult.delivered()

        dispatcher = Dispatcher(slow, lambda user_id: None)
        dispatcher.dispatch([10, 11], "hi", "notable")
        await asyncio.sleep(0)
        assert sent == []

        release.set()
        await dispatcher.drain()

    anyio.run(scenario)
    assert sorted(sent) == [10, 11]


def test_empty_recipient_list_is_a_noop():
    recorder = Recorder({})
    dispatcher = Dispatcher(recorder.deliver, recorder.remove)

    async def scenario():
        dispatcher.dispatch([], "nobody", "event")
        await dispatcher.drain()

    anyio.run(scenario)
    assert recorder.sent == []


def test_failing_removal_does_not_escape():
    def broken_remove(user_id):
        raise OSError("disk full")

    async def unreachable(user_id, message):
        return DeliveryResult.unreachable()

    dispatcher = Dispatcher(unreachable, broken_remove)

    async def scenario():
        dispatcher.dispatch([5], "x", "event")
        await dispatcher.drain()

    anyio.run(scenario)
