# Path: core/models/domain.py
# Purpose: Define domain models shared across scanning, hashing, and similarity workflows.
# Layer: core/models.
# Details: Lightweight dataclasses travel by value from hash workers to the single consumer.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

import imagehash
from PIL import Image
from tqdm import tqdm


class ErrorKind(str, Enum):
    """Per-item failure categories reported by hash workers."""

    IO = "io"
    DECODE = "decode"
    TOO_SMALL = "too_small"


@dataclass
class ImageRecord:
    """A hashed image owned by the similarity aggregator once accepted.

    ``id`` is assigned at scan time and is never reused within a run, even after
    the record is removed. ``pixels`` holds the decoded, display-sized buffer.
    """

    id: int
    path: Path
    hash: imagehash.ImageHash
    pixels: Optional[Image.Image] = None
    byte_size: int = 0

    @property
    def pixel_summary(self) -> Tuple[int, int]:
        """Return ``(width, height)`` of the retained pixel buffer."""

        if self.pixels is None:
            return (0, 0)
        return self.pixels.size


@dataclass(frozen=True)
class HashFailure:
    """Typed failure for a single path; terminal for that path within a run."""

    id: int
    path: Path
    kind: ErrorKind
    message: str
    byte_size: int = 0

    def describe(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass(frozen=True)
class SimilarPair:
    """Undirected pair of ids whose hashes were within the threshold when both were present."""

    a: int
    b: int
    distance: int

    def involves(self, image_id: int) -> bool:
        return self.a == image_id or self.b == image_id

    def key(self) -> frozenset:
        return frozenset((self.a, self.b))


@dataclass
class ScanProgress:
    """Progress counters for one run.

    ``total`` stays ``None`` until the scanner has finished enumerating. Removing
    an accepted record lowers both ``total`` and ``accepted`` so that
    ``processed`` never exceeds the denominator the user still cares about.
    """

    total: Optional[int] = None
    accepted: int = 0
    bytes_read: int = 0
    failures: List[Tuple[Path, str]] = field(default_factory=list)
    faults: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def processed(self) -> int:
        return self.accepted + self.failed + len(self.faults)

    @property
    def finished(self) -> bool:
        return self.total is not None and self.processed >= self.total

    @property
    def fraction(self) -> Optional[float]:
        if self.total is None:
            return None
        if self.total == 0:
            return 1.0
        return self.processed / self.total

    @property
    def max_pairs(self) -> Optional[int]:
        """Number of distinct unordered pairs among ``total`` images."""

        if self.total is None:
            return None
        return self.total * (self.total - 1) // 2

    def summary(self) -> str:
        """Render ``Analyzed x/total (bytes)`` the way the progress label shows it."""

        total = "?" if self.total is None else str(self.total)
        size = tqdm.format_sizeof(self.bytes_read, suffix="B", divisor=1024)
        return f"Analyzed {self.processed}/{total} ({size})"
