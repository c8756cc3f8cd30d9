# tests/test_request_tracker.py
import asyncio

import pytest

from safewalk.services.request_tracker import RequestSuperseded, RouteRequestTracker


def test_newer_request_supersedes_in_flight_one():
    tracker = RouteRequestTracker()

    async def scenario():
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return "old"

        async def quick():
            return "new"

        old = asyncio.create_task(tracker.run("session", slow))
        await asyncio.sleep(0)

        new_result = await tracker.run("session", quick)
        with pytest.raises(RequestSuperseded):
            await old
        return new_result

    assert asyncio.run(scenario()) == "new"


def test_result_of_superseded_request_is_discarded():
    tracker = RouteRequestTracker()

    async def scenario():
        async def work():
            # a newer request starts while this one is still running
            tracker.begin("session")
            return "stale"

        with pytest.raises(RequestSuperseded):
            await tracker.run("session", work)

    asyncio.run(scenario())


def test_sessions_are_independent():
    tracker = RouteRequestTracker()

    async def scenario():
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return "first"

        async def quick():
            release.set()
            return "second"

        first = asyncio.create_task(tracker.run("alice", slow))
        await asyncio.sleep(0)
        second = await tracker.run("bob", quick)
        return await first, second

    assert asyncio.run(scenario()) == ("first", "second")


def test_sequential_requests_both_complete():
    tracker = RouteRequestTracker()

    async def scenario():
        async def work():
            return 42

        return [await tracker.run("session", work) for _ in range(3)]

    assert asyncio.run(scenario()) == [42, 42, 42]


def test_finished_sessions_are_not_retained():
    tracker = RouteRequestTracker()

    async def scenario():
        async def work():
            return "done"

        for i in range(50):
            await tracker.run(f"client-{i}", work)

    asyncio.run(scenario())
    assert tracker._in_flight == {}


def test_generations_are_not_reused_after_a_session_is_dropped():
    tracker = RouteRequestTracker()

    async def scenario():
        async def work():
            return "done"

        await tracker.run("session", work)
        stale = tracker.begin("session")
        tracker.finish("session", stale)
        fresh = tracker.begin("session")
        return stale, fresh

    stale, fresh = asyncio.run(scenario())
    assert fresh != stale
    assert not tracker.is_current("session", stale)
    assert tracker.is_current("session", fresh)
