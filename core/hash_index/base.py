# Path: core/hash_index/base.py
# Purpose: Define the HashIndex interface used by the similarity aggregator to find close hashes.
# Layer: core/hash_index.
# Details: Keeps the comparison strategy pluggable behind add/discard/query.

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Tuple

import imagehash


class HashIndex(ABC):
    """Abstract base class for the set of live hashes new arrivals are compared against."""

    name: str

    @abstractmethod
    def add(self, image_id: int, image_hash: imagehash.ImageHash) -> None:
        """Insert a hash under ``image_id``."""

    @abstractmethod
    def discard(self, image_id: int) -> None:
        """Forget ``image_id``; unknown ids are ignored."""

    @abstractmethod
    def query(self, image_hash: imagehash.ImageHash, threshold: int) -> List[Tuple[int, int]]:
        """Return ``(id, distance)`` for every live hash strictly closer than ``threshold``."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of live hashes."""

    @abstractmethod
    def __contains__(self, image_id: object) -> bool:
        """Return True if ``image_id`` is live in the index."""
