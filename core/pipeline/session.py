# Path: core/pipeline/session.py
# Purpose: Orchestrate scan runs and turn channel messages into aggregator updates and display events.
# Layer: core/pipeline.
# Details: The thread calling poll() is the only mutator of aggregator state; stale runs are filtered by generation.

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from config.settings import AppSettings
from core.hash_index import create_index
from core.indexing.scanner import ImageScanner
from core.models.domain import HashFailure, ScanProgress, SimilarPair
from core.similarity.aggregator import RecordState, SimilarityAggregator
from core.tasks.base import ImageHasher, RunContext
from core.tasks.hash_tasks import HashExecutor

from .channel import ResultChannel
from .dispatcher import Dispatcher
from .messages import (
    ChannelMessage,
    Event,
    HashCompleted,
    ItemAccepted,
    ItemFailed,
    ItemRemoved,
    PairFound,
    RemoveRequest,
    ScanFinished,
    ScanTotal,
    TaskSkipped,
    WorkerFault,
    WorkerFaulted,
)

logger = logging.getLogger(__name__)

RunHandle = RunContext


class DedupSession:
    """High-level service bridging display layers with scanning, hashing, and aggregation.

    A UI calls ``start_scan`` when a folder is picked and ``poll`` once per frame;
    ``request_removal`` travels through the same channel as worker results.
    """

    def __init__(self, settings: Optional[AppSettings] = None, hasher: Optional[ImageHasher] = None) -> None:
        self.settings = settings or AppSettings()
        self.channel = ResultChannel()
        self.hasher = hasher or HashExecutor(self.settings.hasher)
        self.dispatcher = Dispatcher(self.hasher, self.channel, self.settings.pipeline.resolved_workers())
        self.aggregator = self._new_aggregator()
        self._run: Optional[RunHandle] = None
        self._stop_scan: Optional[threading.Event] = None
        self._scan_threads: List[threading.Thread] = []
        self._generation = 0

    # Runs
    @property
    def run(self) -> Optional[RunHandle]:
        return self._run

    @property
    def progress(self) -> ScanProgress:
        return self.aggregator.progress

    @property
    def pairs(self) -> Tuple[SimilarPair, ...]:
        return self.aggregator.pairs

    def start_scan(self, root: Path | str) -> RunHandle:
        """Begin a new run over ``root``; results of any earlier run are discarded from now on."""

        root = Path(root)
        if not root.is_dir():
            raise NotADirectoryError(f"Not a directory: {root}")

        if self._stop_scan is not None:
            self._stop_scan.set()

        self._generation += 1
        run = RunHandle(generation=self._generation, root=root)
        self.dispatcher.supersede(run.generation)
        self._run = run
        self.aggregator = self._new_aggregator()
        self._stop_scan = threading.Event()
        scan_thread = threading.Thread(
            target=self._scan, args=(run, self._stop_scan), name=f"scan-{run.generation}", daemon=True
        )
        # Superseded scan threads exit on their stop event; keep them so close() can join them.
        self._scan_threads = [thread for thread in self._scan_threads if thread.is_alive()]
        self._scan_threads.append(scan_thread)
        logger.info("Starting run %d over %s", run.generation, root)
        scan_thread.start()
        return run

    def _scan(self, run: RunHandle, stop: threading.Event) -> None:
        """Enumerate ``run.root`` and submit one hashing task per candidate."""

        scanner = ImageScanner(run.root)
        submitted = 0
        try:
            for path in scanner.scan():
                if stop.is_set():
                    logger.info("Run %d superseded; stopping scan after %d files", run.generation, submitted)
                    return
                # Ids are handed out in scan order and never reused within the run.
                self.dispatcher.submit(run, submitted, path)
                submitted += 1
        except Exception:  # noqa: BLE001 - report what was submitted so progress can still complete
            logger.exception("Scan of %s aborted after %d files", run.root, submitted)
        self.channel.put(ScanFinished(generation=run.generation, total=submitted))

    def request_removal(self, image_id: int) -> None:
        """Ask the consumer to tombstone ``image_id`` on its next poll."""

        if self._run is None:
            raise RuntimeError("request_removal() called before start_scan().")
        self.channel.put(RemoveRequest(generation=self._run.generation, image_id=image_id))

    # Consumer side
    def poll(self) -> List[Event]:
        """Drain the result channel without blocking and apply every message of the current run."""

        events: List[Event] = []
        for message in self.channel.drain(self.settings.pipeline.drain_batch_size):
            if self._run is None or message.generation != self._run.generation:
                logger.debug("Discarding %s from superseded run %d", type(message).__name__, message.generation)
                continue
            events.extend(self._apply(message))
        return events

    def _apply(self, message: ChannelMessage) -> List[Event]:
        if isinstance(message, ScanFinished):
            self.aggregator.set_total(message.total)
            return [ScanTotal(total=self.aggregator.progress.total or 0)]

        if isinstance(message, HashCompleted):
            outcome = message.outcome
            if isinstance(outcome, HashFailure):
                if not self.aggregator.reject(outcome):
                    return []
                return [
                    ItemFailed(
                        id=outcome.id,
                        path=outcome.path,
                        error_kind=outcome.kind,
                        message=outcome.message,
                        byte_size=outcome.byte_size,
                    )
                ]
            state = self.aggregator.state(outcome.id)
            if state is not RecordState.PENDING:
                logger.debug("Absorbing result for id %d (%s)", outcome.id, state.value)
                return []
            found = self.aggregator.accept(outcome)
            events: List[Event] = [
                ItemAccepted(
                    id=outcome.id,
                    path=outcome.path,
                    hash=outcome.hash,
                    pixel_summary=outcome.pixel_summary,
                    byte_size=outcome.byte_size,
                )
            ]
            events.extend(PairFound(id_a=pair.a, id_b=pair.b, distance=pair.distance) for pair in found)
            return events

        if isinstance(message, TaskSkipped):
            return []

        if isinstance(message, RemoveRequest):
            if self.aggregator.remove(message.image_id):
                return [ItemRemoved(id=message.image_id)]
            return []

        if isinstance(message, WorkerFault):
            logger.error("Lost result for %s: %s", message.path, message.error)
            self.aggregator.record_fault(message.image_id, message.path, message.error)
            return [WorkerFaulted(id=message.image_id, path=message.path, message=message.error)]

        raise TypeError(f"Unexpected channel message: {message!r}")

    def wait(self, timeout: Optional[float] = None, tick: float = 0.02) -> List[Event]:
        """Poll once per ``tick`` until the current run has finished; return every event seen."""

        if self._run is None:
            raise RuntimeError("wait() called before start_scan().")
        deadline = None if timeout is None else time.monotonic() + timeout
        events: List[Event] = []
        while True:
            events.extend(self.poll())
            if self.progress.finished:
                return events
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError(f"Run {self._run.generation} did not finish within {timeout} seconds")
            time.sleep(tick)

    # Lifecycle
    def close(self) -> None:
        if self._stop_scan is not None:
            self._stop_scan.set()
        for thread in self._scan_threads:
            thread.join()
        self._scan_threads = []
        # Queued tasks would only produce results nobody reads.
        self.dispatcher.shutdown(wait=True, cancel_futures=True)

    def __enter__(self) -> "DedupSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _new_aggregator(self) -> SimilarityAggregator:
        index = create_index(self.settings.pipeline.index_backend)
        return SimilarityAggregator(self.settings.similarity_threshold, index=index)
