"""Bounded-concurrency job pool for match jobs."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from logging import getLogger
from typing import TypeAlias

log = getLogger(__name__)

DEFAULT_MATCH_CONCURRENCY = 15

Job: TypeAlias = Callable[[], Awaitable[object]]


class ConcurrencyScheduler:
    """Runs pushed jobs on a fixed pool of ``limit`` worker tasks.

    ``push`` never blocks and must be called from inside a running event loop.
    ``wait`` returns once the queue is drained and every job has finished. Jobs
    report results by writing into slots the caller owns; an exception escaping
    a job is logged and kept in ``errors`` without stopping the pool.

    The queue and the workers belong to one batch: they are created by the
    first ``push`` and dropped by ``wait``, so a scheduler can serve batches
    on different event loops.
    """

    def __init__(self, limit: int = DEFAULT_MATCH_CONCURRENCY) -> None:
        if limit < 1:
            raise ValueError("Scheduler limit must be at least 1")
        self.limit = limit
        self.errors: list[BaseException] = []
        self._queue: asyncio.Queue[Job] | None = None
        self._workers: list[asyncio.Task[None]] = []

    @property
    def pending(self) -> int:
        return 0 if self._queue is None else self._queue.qsize()

    def push(self, job: Job) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
            self._workers = [
                asyncio.create_task(self._work(self._queue), name=f"match-worker-{slot}")
                for slot in range(self.limit)
            ]
        self._queue.put_nowait(job)

    async def wait(self) -> None:
        if self._queue is None:
            return
        await self._queue.join()
        workers, self._workers = self._workers, []
        self._queue = None
        for worker in workers:
            worker.cancel()
        for worker in workers:
            with contextlib.suppress(asyncio.CancelledError):
                await worker

    async def _work(self, queue: asyncio.Queue[Job]) -> None:
        while True:
            job = await queue.get()
            try:
                await job()
            except Exception as exc:
                log.exception("Job failed")
                self.errors.append(exc)
            finally:
                queue.task_done()
