"""Asynchronous follow recording.

Redirects push a FollowEvent onto a bounded queue and return; one background
consumer writes the events to the follows table in order.

Flow Diagram — Follow Pipeline
==============================
::
    ┌─────────────┐   ┌─────────────┐   ┌─────────────┐
    │ lookup #1   │   │ lookup #2   │   │ lookup #n   │
    └──────┬──────┘   └──────┬──────┘   └──────┬──────┘
           │ record()        │                 │
           ▼                 ▼                 ▼
    ┌───────────────────────────────────────────────┐
    │ asyncio.Queue(maxsize=FOLLOW_QUEUE_SIZE)       │
    │ pending += 1 on record                         │
    └──────────────────────┬────────────────────────┘
                           ▼
                   ┌──────────────┐
                   │ consumer task │ (exactly one)
                   └──────┬───────┘
                          ▼
                   ┌──────────────┐  StorageError  ┌──────────────┐
                   │ insert_follow │──────────────►│ log, count,  │
                   └──────┬───────┘               │ drop event   │
                          ▼                       └──────────────┘
                   pending -= 1, notify drain()

How to Use
===========
**Step 1 — Start on application startup**::
    recorder = FollowRecorder(store, stats, maxsize=settings.FOLLOW_QUEUE_SIZE)
    recorder.start()

**Step 2 — Record from the redirect handler**::
    await recorder.record(FollowEvent(short_path=path, ts=now, ip=ip))

**Step 3 — Wait for writes (tests, tooling)**::
    await recorder.drain()

**Step 4 — Stop on shutdown**::
    await recorder.stop(drain=True)

Key Behaviours
===============
- Producers only wait when the queue is full (backpressure, never drop).
- Storage failures are best-effort: logged, counted, not retried.
- drain() waits for the pending count to reach zero without polling sleeps,
  and returns at once when the consumer is not running.
- Events recorded while the consumer is not running are logged and dropped.
"""

import asyncio
import contextlib
import logging

from linkshort.errors import StorageError
from linkshort.schemas import FollowEvent
from linkshort.stats import ServiceStats
from linkshort.store import LinkStore

__all__ = ["FollowRecorder"]

logger = logging.getLogger(__name__)


class FollowRecorder:
    def __init__(self, store: LinkStore, stats: ServiceStats, maxsize: int = 1024 * 1024):
        self._store = store
        self._stats = stats
        self._queue: asyncio.Queue[FollowEvent] = asyncio.Queue(maxsize=maxsize)
        self._pending = 0
        self._idle = asyncio.Condition()
        self._worker: asyncio.Task[None] | None = None

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._consume(), name="follow-recorder")

    async def record(self, event: FollowEvent) -> None:
        if not self.running:
            logger.warning("Follow recorder is not running; dropping follow for %s", event.short_path)
            return
        self._pending += 1
        try:
            await self._queue.put(event)
        except BaseException:
            await self._done()
            raise

    async def drain(self) -> None:
        async with self._idle:
            await self._idle.wait_for(lambda: self._pending == 0 or not self.running)

    async def stop(self, drain: bool = True) -> None:
        if self._worker is None:
            return
        if drain and self.running:
            await self.drain()
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        async with self._idle:
            self._idle.notify_all()
        if self._pending:
            logger.warning("Follow recorder stopped with %d pending events", self._pending)

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._store.insert_follow(event)
            except StorageError as exc:
                logger.error("Error inserting follow for %s: %s", event.short_path, exc)
                self._stats.db_update_errors.inc()
            except Exception:
                logger.exception("Unexpected failure recording follow for %s", event.short_path)
                self._stats.db_update_errors.inc()
            finally:
                self._queue.task_done()
                await self._done()

    async def _done(self) -> None:
        async with self._idle:
            self._pending -= 1
            self._idle.notify_all()
