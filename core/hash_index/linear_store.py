# Path: core/hash_index/linear_store.py
# Purpose: Provide the straightforward linear-scan hash index.
# Layer: core/hash_index.
# Details: Compares a query against every live hash with imagehash's Hamming distance.

from __future__ import annotations

from typing import Dict, List, Tuple

import imagehash

from .base import HashIndex


class LinearHashIndex(HashIndex):
    """Linear scan over live hashes in insertion order."""

    def __init__(self, name: str = "linear") -> None:
        self.name = name
        self._hashes: Dict[int, imagehash.ImageHash] = {}

    def add(self, image_id: int, image_hash: imagehash.ImageHash) -> None:
        self._hashes[image_id] = image_hash

    def discard(self, image_id: int) -> None:
        self._hashes.pop(image_id, None)

    def query(self, image_hash: imagehash.ImageHash, threshold: int) -> List[Tuple[int, int]]:
        matches: List[Tuple[int, int]] = []
        for other_id, other_hash in self._hashes.items():
            # ImageHash.__sub__ is the Hamming distance and raises on size mismatch.
            distance = image_hash - other_hash
            if distance < threshold:
                matches.append((other_id, int(distance)))
        return matches

    def __len__(self) -> int:
        return len(self._hashes)

    def __contains__(self, image_id: object) -> bool:
        return image_id in self._hashes
