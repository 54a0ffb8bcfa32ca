"""
Tests for the Singleflight coordination primitive.
"""

import asyncio

import pytest

from syntax_parser.utils.singleflight import Singleflight


class TestSingleflight:
    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_execution(self):
        flight = Singleflight("test")
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.02)
            return object()

        results = await asyncio.gather(*(flight.do("key", work) for _ in range(5)))

        assert calls == 1
        assert all(result is results[0] for result in results)
        assert flight.stats == {"started": 1, "joined": 4}

    @pytest.mark.asyncio
    async def test_different_keys_run_independently(self):
        flight = Singleflight()
        running = set()
        overlapped = False

        async def work(key):
            nonlocal overlapped
            running.add(key)
            await asyncio.sleep(0.02)
            overlapped = overlapped or len(running) > 1
            running.discard(key)
            return key

        results = await asyncio.gather(
            flight.do("a", lambda: work("a")), flight.do("b", lambda: work("b"))
        )

        assert results == ["a", "b"]
        assert overlapped is True

    @pytest.mark.asyncio
    async def test_key_released_after_completion(self):
        """Test a finished operation does not answer later calls"""
        flight = Singleflight()
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            return calls

        assert await flight.do("key", work) == 1
        await asyncio.sleep(0)
        assert flight.in_flight("key") is False
        assert await flight.do("key", work) == 2

    @pytest.mark.asyncio
    async def test_failure_is_delivered_to_all_and_retryable(self):
        flight = Singleflight()
        attempts = 0

        async def flaky():
            nonlocal attempts
            attempts += 1
            await asyncio.sleep(0.01)
            if attempts == 1:
                raise OSError("transient")
            return "ok"

        results = await asyncio.gather(
            *(flight.do("key", flaky) for _ in range(3)), return_exceptions=True
        )
        await asyncio.sleep(0)

        assert all(isinstance(result, OSError) for result in results)
        assert await flight.do("key", flaky) == "ok"
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_finished_task_not_yet_released_is_not_joined(self):
        """Test a caller arriving before the done-callback starts a fresh operation"""
        flight = Singleflight()
        stale = asyncio.get_running_loop().create_future()
        stale.set_exception(OSError("stale failure"))
        stale.exception()
        flight._inflight["key"] = stale

        async def work():
            return "fresh"

        assert await flight.do("key", work) == "fresh"
        assert flight.stats == {"started": 1, "joined": 0}
        await asyncio.sleep(0)
        assert flight.in_flight("key") is False

    @pytest.mark.asyncio
    async def test_cancelling_a_waiter_keeps_the_operation_running(self):
        flight = Singleflight()
        finished = asyncio.Event()

        async def work():
            await asyncio.sleep(0.05)
            finished.set()
            return "done"

        waiter = asyncio.ensure_future(flight.do("key", work))
        other = asyncio.ensure_future(flight.do("key", work))
        await asyncio.sleep(0.01)
        waiter.cancel()

        assert await other == "done"
        assert finished.is_set()
        with pytest.raises(asyncio.CancelledError):
            await waiter

    @pytest.mark.asyncio
    async def test_in_flight(self):
        flight = Singleflight()
        gate = asyncio.Event()

        async def work():
            await gate.wait()

        task = asyncio.ensure_future(flight.do("key", work))
        await asyncio.sleep(0)
        assert flight.in_flight("key") is True

        gate.set()
        await task
        await asyncio.sleep(0)
        assert flight.in_flight("key") is False
