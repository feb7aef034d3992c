from __future__ import annotations

import asyncio
import threading

from siteledger.core.errors import TransientIOError
from siteledger.services.changes import ChangeBroker, ChangeEvent, ChangeScope
from siteledger.services.live import ErrorPolicy, LiveQuery, LiveState, LoadStatus


class GatedFetch:
    """Fetch returning its call number; calls listed in ``hold`` wait for ``release``."""

    def __init__(self, hold: set[int] | None = None) -> None:
        self.calls = 0
        self.hold = hold or set()
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self) -> int:
        self.calls += 1
        call = self.calls
        if call in self.hold:
            self.started.set()
            await self.release.wait()
        return call


async def test_invalidations_during_fetch_coalesce_into_one_refetch():
    broker = ChangeBroker()
    fetch = GatedFetch(hold={1})
    query = LiveQuery(fetch, broker.subscribe, ChangeScope())

    start = asyncio.create_task(query.start())
    await fetch.started.wait()
    for _ in range(5):
        broker.publish(ChangeEvent("transactions", "insert"))
    await asyncio.sleep(0)
    fetch.release.set()
    state = await start

    assert query.fetch_count == 2
    assert state.status is LoadStatus.READY
    assert state.value == 2
    await query.close()


async def test_change_after_load_triggers_refetch():
    broker = ChangeBroker()
    fetch = GatedFetch()
    updates: list[LiveState[int]] = []
    async with LiveQuery(fetch, broker.subscribe, ChangeScope(), on_update=updates.append) as query:
        broker.publish(ChangeEvent("projects", "update"))
        for _ in range(5):
            await asyncio.sleep(0)
        assert query.state.value == 2
    assert [u.status for u in updates] == [
        LoadStatus.LOADING,
        LoadStatus.READY,
        LoadStatus.LOADING,
        LoadStatus.READY,
    ]
    assert broker.subscriber_count == 0


def _flaky_fetch():
    calls = {"n": 0}

    async def fetch() -> int:
        calls["n"] += 1
        if calls["n"] > 1:
            raise TransientIOError("database unavailable")
        return 10

    return fetch


async def test_reset_policy_replaces_value_on_failure():
    broker = ChangeBroker()
    query = LiveQuery(
        _flaky_fetch(), broker.subscribe, ChangeScope(), error_policy=ErrorPolicy.RESET, reset_value=lambda: 0
    )
    assert (await query.start()).value == 10
    state = await query.refresh()
    assert state.status is LoadStatus.FAILED
    assert state.value == 0
    assert state.error_kind == "transient"
    await query.close()


async def test_preserve_policy_keeps_last_value_on_failure():
    broker = ChangeBroker()
    query = LiveQuery(_flaky_fetch(), broker.subscribe, ChangeScope(), error_policy="preserve")
    await query.start()
    state = await query.refresh()
    assert state.status is LoadStatus.FAILED
    assert state.value == 10
    assert state.error == "database unavailable"
    await query.close()


async def test_unexpected_exception_is_reported_as_unknown():
    async def fetch() -> int:
        raise KeyError("missing")

    query = LiveQuery(fetch, ChangeBroker().subscribe, ChangeScope())
    state = await query.start()
    assert state.status is LoadStatus.FAILED
    assert state.error_kind == "unknown"
    await query.close()


async def test_close_discards_in_flight_result():
    broker = ChangeBroker()
    fetch = GatedFetch(hold={2})
    updates: list[LiveState[int]] = []
    query = LiveQuery(fetch, broker.subscribe, ChangeScope(), on_update=updates.append)
    await query.start()

    broker.publish(ChangeEvent("transactions", "insert"))
    await fetch.started.wait()
    await query.close()
    fetch.release.set()
    await asyncio.sleep(0)

    assert query.closed
    assert query.state.status is LoadStatus.LOADING
    assert updates[-1].status is LoadStatus.LOADING
    assert broker.subscriber_count == 0
    broker.publish(ChangeEvent("transactions", "insert"))
    assert fetch.calls == 2


async def test_refresh_during_fetch_joins_it():
    fetch = GatedFetch(hold={1})
    query = LiveQuery(fetch, ChangeBroker().subscribe, ChangeScope())

    start = asyncio.create_task(query.start())
    await fetch.started.wait()
    late = asyncio.create_task(query.refresh())
    await asyncio.sleep(0)
    fetch.release.set()
    first, second = await asyncio.gather(start, late)

    assert query.fetch_count == 1
    assert first == second
    assert first.value == 1
    await query.close()


async def test_invalidate_from_another_thread_refetches():
    fetch = GatedFetch()
    refetched = asyncio.Event()

    def on_update(state: LiveState[int]) -> None:
        if state.status is LoadStatus.READY and state.value == 2:
            refetched.set()

    query = LiveQuery(fetch, ChangeBroker().subscribe, ChangeScope(), on_update=on_update)
    await query.start()

    worker = threading.Thread(target=query.invalidate)
    worker.start()
    worker.join()
    await asyncio.wait_for(refetched.wait(), timeout=5)

    assert query.fetch_count == 2
    await query.close()
