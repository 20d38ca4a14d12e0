# Path: core/tasks/base.py
# Purpose: Define hashing task interfaces shared by workers and the dispatcher.
# Layer: core/tasks.
# Details: Provides RunContext, HashOutcome, and the ImageHasher / ResultSink protocols.

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, Union

from core.models.domain import HashFailure, ImageRecord

HashOutcome = Union[ImageRecord, HashFailure]


@dataclass(frozen=True)
class RunContext:
    """Identify one scan-and-hash run.

    ``generation`` increases with every run started by a session; messages
    carrying an older generation belong to a superseded run.
    """

    generation: int
    root: Path


class ImageHasher(Protocol):
    """Turn a single image path into a hashed record or a typed failure."""

    def hash(self, image_id: int, path: Path) -> HashOutcome:
        """Hash ``path`` in the current thread; never raises for per-item failures."""


class ResultSink(Protocol):
    """Destination for worker messages; safe to call from many threads."""

    def put(self, message: Any) -> None:
        """Deliver one message to the consumer."""
