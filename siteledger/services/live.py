"""Long-lived queries that refetch whenever the ledger changes.

A :class:`LiveQuery` moves through ``idle -> loading -> ready | failed``.
At most one fetch runs at a time; invalidations that arrive while it runs
collapse into a single follow-up fetch, while an explicit :meth:`LiveQuery.refresh`
joins the running fetch. Closing the query cancels its
subscription and any fetch in flight, and results that arrive afterwards are
dropped.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Generic, TypeVar

from siteledger.core.errors import LedgerError, UnknownLedgerError
from siteledger.services.changes import ChangeScope, Subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoadStatus(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class ErrorPolicy(str, enum.Enum):
    """What a failed refresh does with the previously loaded value."""

    RESET = "reset"
    PRESERVE = "preserve"


@dataclass(frozen=True)
class LiveState(Generic[T]):
    status: LoadStatus = LoadStatus.IDLE
    value: T | None = None
    error: str | None = None
    error_kind: str | None = None


class LiveQuery(Generic[T]):
    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        subscribe: Callable[[ChangeScope, Callable[[], object]], Subscription],
        scope: ChangeScope,
        *,
        error_policy: ErrorPolicy = ErrorPolicy.RESET,
        reset_value: Callable[[], T] | None = None,
        on_update: Callable[[LiveState[T]], object] | None = None,
        name: str = "live-query",
    ) -> None:
        self._fetch = fetch
        self._subscribe = subscribe
        self._scope = scope
        self._error_policy = ErrorPolicy(error_policy)
        self._reset_value = reset_value
        self._on_update = on_update
        self._name = name
        self._state: LiveState[T] = LiveState()
        self._task: asyncio.Task[LiveState[T]] | None = None
        self._rerun = False
        self._subscription: Subscription | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False
        self.fetch_count = 0

    @property
    def state(self) -> LiveState[T]:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> LiveState[T]:
        """Subscribe to changes and perform the initial load."""

        if self._closed:
            raise RuntimeError(f"{self._name} is closed")
        self._loop = asyncio.get_running_loop()
        if self._subscription is None:
            self._subscription = self._subscribe(self._scope, self.invalidate)
        return await self.refresh()

    async def refresh(self) -> LiveState[T]:
        """Load now, or join the fetch already running."""

        task = self._schedule(rerun=False)
        return await asyncio.shield(task)

    def invalidate(self) -> None:
        """Change callback; safe to call from any thread."""

        if self._closed or self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._schedule_quietly)

    def _schedule_quietly(self) -> None:
        if not self._closed:
            self._schedule(rerun=True)

    def _schedule(self, *, rerun: bool) -> asyncio.Task[LiveState[T]]:
        if self._closed:
            raise RuntimeError(f"{self._name} is closed")
        if self._task is not None and not self._task.done():
            if rerun:
                self._rerun = True
            return self._task
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._task = self._loop.create_task(self._run(), name=self._name)
        return self._task

    async def _run(self) -> LiveState[T]:
        while True:
            self._rerun = False
            self._publish(replace(self._state, status=LoadStatus.LOADING))
            self.fetch_count += 1
            try:
                value = await self._fetch()
            except LedgerError as exc:
                logger.warning("%s refresh failed: %s", self._name, exc.message)
                self._publish(self._failed_state(exc))
            except Exception as exc:
                logger.exception("%s refresh crashed", self._name)
                self._publish(self._failed_state(UnknownLedgerError(str(exc) or type(exc).__name__)))
            else:
                self._publish(LiveState(status=LoadStatus.READY, value=value))
            if not self._rerun:
                return self._state

    def _failed_state(self, exc: LedgerError) -> LiveState[T]:
        if self._error_policy is ErrorPolicy.PRESERVE:
            value = self._state.value
        else:
            value = self._reset_value() if self._reset_value is not None else None
        return LiveState(status=LoadStatus.FAILED, value=value, error=exc.message, error_kind=exc.kind)

    def _publish(self, state: LiveState[T]) -> None:
        if self._closed:
            return
        self._state = state
        if self._on_update is not None:
            try:
                self._on_update(state)
            except Exception:
                logger.exception("%s update listener failed", self._name)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def __aenter__(self) -> "LiveQuery[T]":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


__all__ = ["ErrorPolicy", "LiveQuery", "LiveState", "LoadStatus"]
