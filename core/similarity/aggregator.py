# Path: core/similarity/aggregator.py
# Purpose: Own accepted image records and the incrementally maintained set of similar pairs.
# Layer: core/similarity.
# Details: Single-writer arena indexed by scan id, with tombstones for logically removed records.

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Set, Tuple

from core.hash_index import HashIndex, LinearHashIndex
from core.models.domain import HashFailure, ImageRecord, ScanProgress, SimilarPair

logger = logging.getLogger(__name__)


class RecordState(str, Enum):
    """Lifecycle of one scanned id within a run."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    FAILED = "failed"
    REMOVED = "removed"


class SimilarityAggregator:
    """Incremental similarity index fed by exactly one consumer thread.

    Each arriving record is compared once against every record accepted before
    it and still present. Removal never recomputes anything: it tombstones the
    id and filters the pairs that mention it. Slots are never shifted, so ids
    stored in pairs stay valid indexes into the arena for the whole run.
    """

    def __init__(self, threshold: int, index: Optional[HashIndex] = None) -> None:
        self.threshold = threshold
        self.index = index if index is not None else LinearHashIndex()
        self.progress = ScanProgress()
        self._records: List[Optional[ImageRecord]] = []
        self._removed: Set[int] = set()
        self._failed: Set[int] = set()
        self._pairs: List[SimilarPair] = []

    # Arrivals
    def accept(self, record: ImageRecord) -> List[SimilarPair]:
        """Store ``record`` and return the pairs discovered by its arrival."""

        state = self.state(record.id)
        if state is RecordState.REMOVED:
            logger.debug("Discarding late result for removed id %d", record.id)
            return []
        if state is not RecordState.PENDING:
            logger.debug("Ignoring duplicate result for id %d (%s)", record.id, state.value)
            return []

        found = [
            SimilarPair(a=other_id, b=record.id, distance=distance)
            for other_id, distance in self.index.query(record.hash, self.threshold)
        ]
        self._pairs.extend(found)
        self._store(record)
        self.index.add(record.id, record.hash)
        self.progress.accepted += 1
        self.progress.bytes_read += record.byte_size
        return found

    def reject(self, failure: HashFailure) -> bool:
        """Record a per-item failure; returns False when the id was no longer pending."""

        if self.state(failure.id) is not RecordState.PENDING:
            logger.debug("Ignoring duplicate failure for id %d", failure.id)
            return False
        self._failed.add(failure.id)
        self.progress.failures.append((failure.path, failure.describe()))
        self.progress.bytes_read += failure.byte_size
        return True

    def record_fault(self, image_id: int, path: Path, message: str) -> None:
        """Account for a result lost to an unexpected worker crash."""

        if self.state(image_id) is not RecordState.PENDING:
            return
        self._failed.add(image_id)
        self.progress.faults.append((path, message))

    def set_total(self, total: int) -> None:
        """Set the scan total, discounting records already removed by the user."""

        self.progress.total = max(0, total - len(self._removed))

    # Removal
    def remove(self, image_id: int) -> bool:
        """Tombstone an accepted record; returns False when nothing changed."""

        state = self.state(image_id)
        if state is not RecordState.ACCEPTED:
            logger.debug("Remove request for id %d ignored (%s)", image_id, state.value)
            return False

        logger.info(
            "Removing %d, images=%d, similar_images=%d", image_id, len(self), len(self._pairs)
        )
        self._records[image_id] = None
        self._removed.add(image_id)
        self.index.discard(image_id)
        self._pairs = [pair for pair in self._pairs if not pair.involves(image_id)]
        self.progress.accepted -= 1
        if self.progress.total is not None:
            self.progress.total -= 1
        logger.info(
            "Removed %d, images=%d, similar_images=%d", image_id, len(self), len(self._pairs)
        )
        return True

    # Queries
    def state(self, image_id: int) -> RecordState:
        if image_id in self._removed:
            return RecordState.REMOVED
        if image_id in self._failed:
            return RecordState.FAILED
        if 0 <= image_id < len(self._records) and self._records[image_id] is not None:
            return RecordState.ACCEPTED
        return RecordState.PENDING

    def get(self, image_id: int) -> Optional[ImageRecord]:
        """Return the live record for ``image_id``, or None if absent or removed."""

        if 0 <= image_id < len(self._records):
            return self._records[image_id]
        return None

    def is_removed(self, image_id: int) -> bool:
        return image_id in self._removed

    def records(self) -> Iterator[ImageRecord]:
        """Iterate live records in id order."""

        return (record for record in self._records if record is not None)

    @property
    def pairs(self) -> Tuple[SimilarPair, ...]:
        return tuple(self._pairs)

    def pairs_for(self, image_id: int) -> List[SimilarPair]:
        return [pair for pair in self._pairs if pair.involves(image_id)]

    def __len__(self) -> int:
        return self.progress.accepted

    def _store(self, record: ImageRecord) -> None:
        if record.id < 0:
            raise ValueError(f"Image ids must be non-negative, got {record.id}")
        if record.id >= len(self._records):
            self._records.extend([None] * (record.id + 1 - len(self._records)))
        self._records[record.id] = record
