# Path: core/pipeline/dispatcher.py
# Purpose: Fan hashing tasks out to a bounded worker pool.
# Layer: core/pipeline.
# Details: submit() is fire-and-forget; every task that runs posts exactly one message to the result sink.

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from core.tasks.base import ImageHasher, ResultSink, RunContext

from .messages import HashCompleted, TaskSkipped, WorkerFault

logger = logging.getLogger(__name__)


class Dispatcher:
    """Run one ImageHasher call per submitted path on a fixed-size thread pool.

    Tasks belonging to a generation older than the one passed to ``supersede``
    skip the hasher and post a TaskSkipped message instead.
    """

    def __init__(self, hasher: ImageHasher, sink: ResultSink, max_workers: int) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.hasher = hasher
        self.sink = sink
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="hash-worker")
        self._lock = threading.Lock()
        self._in_flight = 0
        self._current_generation = 0

    @property
    def in_flight(self) -> int:
        """Tasks submitted whose message has not been posted yet."""

        with self._lock:
            return self._in_flight

    def supersede(self, generation: int) -> None:
        """Mark every generation below ``generation`` as stale."""

        with self._lock:
            self._current_generation = max(self._current_generation, generation)

    def submit(self, ctx: RunContext, image_id: int, path: Path) -> None:
        """Queue a hashing task and return immediately."""

        with self._lock:
            self._in_flight += 1
        try:
            future = self._executor.submit(self._run, ctx, image_id, path)
        except RuntimeError:
            self._finish_task()
            raise
        future.add_done_callback(self._on_done)

    def _run(self, ctx: RunContext, image_id: int, path: Path) -> None:
        try:
            if self._is_stale(ctx):
                message = TaskSkipped(generation=ctx.generation, image_id=image_id, path=path)
            else:
                try:
                    outcome = self.hasher.hash(image_id, path)
                except Exception as exc:  # noqa: BLE001 - surfaced to the consumer as a WorkerFault
                    logger.exception("Hash worker crashed on %s", path)
                    message = WorkerFault(generation=ctx.generation, image_id=image_id, path=path, error=repr(exc))
                else:
                    message = HashCompleted(generation=ctx.generation, outcome=outcome)
            self.sink.put(message)
        finally:
            self._finish_task()

    def _is_stale(self, ctx: RunContext) -> bool:
        with self._lock:
            return ctx.generation < self._current_generation

    def _on_done(self, future: Future) -> None:
        # Cancelled tasks never reach _run, so their slot is released here.
        if future.cancelled():
            self._finish_task()

    def _finish_task(self) -> None:
        with self._lock:
            self._in_flight -= 1

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """Stop the pool; with ``cancel_futures`` queued tasks are dropped instead of run."""

        self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)

    def __enter__(self) -> "Dispatcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
