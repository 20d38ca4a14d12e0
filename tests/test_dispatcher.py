import threading
import time
from pathlib import Path

import pytest

from core.models import ErrorKind, HashFailure
from core.pipeline import Dispatcher, HashCompleted, ResultChannel, TaskSkipped, WorkerFault
from core.tasks import RunContext

RUN = RunContext(generation=3, root=Path("/images"))


class FailingHasher:
    """Reports every path as undecodable."""

    def hash(self, image_id, path):
        return HashFailure(id=image_id, path=path, kind=ErrorKind.DECODE, message="nope")


class CrashingHasher:
    def hash(self, image_id, path):
        raise RuntimeError(f"crash on {path.name}")


class BlockingHasher(FailingHasher):
    def __init__(self):
        self.release = threading.Event()
        self.started = threading.Event()

    def hash(self, image_id, path):
        self.started.set()
        self.release.wait(timeout=10)
        return super().hash(image_id, path)


def _wait_idle(dispatcher, timeout=10.0):
    deadline = time.monotonic() + timeout
    while dispatcher.in_flight and time.monotonic() < deadline:
        time.sleep(0.01)
    assert dispatcher.in_flight == 0


def test_every_submission_produces_exactly_one_message():
    channel = ResultChannel()
    with Dispatcher(FailingHasher(), channel, max_workers=3) as dispatcher:
        for image_id in range(50):
            dispatcher.submit(RUN, image_id, Path(f"/images/{image_id}.png"))
        _wait_idle(dispatcher)

    messages = channel.drain()
    assert len(messages) == 50
    assert all(isinstance(m, HashCompleted) and m.generation == 3 for m in messages)
    assert sorted(m.outcome.id for m in messages) == list(range(50))


def test_submit_does_not_wait_for_the_worker():
    channel = ResultChannel()
    hasher = BlockingHasher()
    dispatcher = Dispatcher(hasher, channel, max_workers=1)
    try:
        dispatcher.submit(RUN, 0, Path("/images/0.png"))
        dispatcher.submit(RUN, 1, Path("/images/1.png"))
        assert dispatcher.in_flight == 2
        assert channel.drain() == []
    finally:
        hasher.release.set()
        dispatcher.shutdown()
    assert len(channel.drain()) == 2


def test_crashing_worker_is_reported_as_fault():
    channel = ResultChannel()
    with Dispatcher(CrashingHasher(), channel, max_workers=2) as dispatcher:
        dispatcher.submit(RUN, 4, Path("/images/four.png"))
        _wait_idle(dispatcher)

    (message,) = channel.drain()
    assert isinstance(message, WorkerFault)
    assert message.image_id == 4
    assert message.path == Path("/images/four.png")
    assert "crash on four.png" in message.error


def test_worker_count_must_be_positive():
    with pytest.raises(ValueError):
        Dispatcher(FailingHasher(), ResultChannel(), max_workers=0)


def test_submit_after_shutdown_raises():
    dispatcher = Dispatcher(FailingHasher(), ResultChannel(), max_workers=1)
    dispatcher.shutdown()
    with pytest.raises(RuntimeError):
        dispatcher.submit(RUN, 0, Path("/images/0.png"))
    assert dispatcher.in_flight == 0


class CountingHasher(FailingHasher):
    def __init__(self):
        self.seen = []

    def hash(self, image_id, path):
        self.seen.append(image_id)
        return super().hash(image_id, path)


def test_superseded_tasks_skip_the_hasher():
    channel = ResultChannel()
    hasher = CountingHasher()
    newer = RunContext(generation=RUN.generation + 1, root=Path("/images"))
    with Dispatcher(hasher, channel, max_workers=2) as dispatcher:
        dispatcher.supersede(newer.generation)
        for image_id in range(5):
            dispatcher.submit(RUN, image_id, Path(f"/images/{image_id}.png"))
        dispatcher.submit(newer, 0, Path("/images/new.png"))
        _wait_idle(dispatcher)

    messages = channel.drain()
    skipped = [m for m in messages if isinstance(m, TaskSkipped)]
    assert sorted(m.image_id for m in skipped) == list(range(5))
    assert all(m.generation == RUN.generation for m in skipped)
    assert hasher.seen == [0]
    (completed,) = [m for m in messages if isinstance(m, HashCompleted)]
    assert completed.generation == newer.generation


def test_supersede_never_moves_backwards():
    channel = ResultChannel()
    hasher = CountingHasher()
    with Dispatcher(hasher, channel, max_workers=1) as dispatcher:
        dispatcher.supersede(RUN.generation + 1)
        dispatcher.supersede(RUN.generation)
        dispatcher.submit(RUN, 0, Path("/images/0.png"))
        _wait_idle(dispatcher)
    assert hasher.seen == []


def test_shutdown_can_cancel_queued_tasks():
    channel = ResultChannel()
    hasher = BlockingHasher()
    dispatcher = Dispatcher(hasher, channel, max_workers=1)
    for image_id in range(10):
        dispatcher.submit(RUN, image_id, Path(f"/images/{image_id}.png"))
    assert hasher.started.wait(timeout=5)
    threading.Timer(0.2, hasher.release.set).start()
    dispatcher.shutdown(wait=True, cancel_futures=True)

    assert dispatcher.in_flight == 0
    # Only the task already running when the pool shut down posts a message.
    assert len(channel.drain()) == 1
