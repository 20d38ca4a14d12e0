# Path: core/hash_index/packed_store.py
# Purpose: Provide a numpy-backed hash index with vectorized Hamming distances.
# Layer: core/hash_index.
# Details: Stores hashes as packed uint8 rows and XORs the whole matrix against each query.

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import imagehash
import numpy as np

from .base import HashIndex


def pack_hash(image_hash: imagehash.ImageHash) -> np.ndarray:
    """Return the hash bits packed into a flat uint8 array."""

    return np.packbits(np.asarray(image_hash.hash, dtype=bool).flatten())


class PackedHashIndex(HashIndex):
    """Dense matrix of packed hashes with a liveness mask.

    Rows are never moved; discarded ids only clear their mask bit, which keeps
    the row numbers handed out earlier valid.
    """

    def __init__(self, name: str = "packed", initial_capacity: int = 256) -> None:
        self.name = name
        self._bits: Optional[int] = None
        self._rows: Optional[np.ndarray] = None
        self._alive: np.ndarray = np.zeros(0, dtype=bool)
        self._ids: List[int] = []
        self._row_of: Dict[int, int] = {}
        self._initial_capacity = max(1, initial_capacity)

    def add(self, image_id: int, image_hash: imagehash.ImageHash) -> None:
        """Append a hash row, growing the matrix geometrically."""

        packed = pack_hash(image_hash)
        bits = int(np.asarray(image_hash.hash).size)
        if self._bits is None:
            self._bits = bits
            self._rows = np.zeros((self._initial_capacity, packed.size), dtype=np.uint8)
            self._alive = np.zeros(self._initial_capacity, dtype=bool)
        elif bits != self._bits:
            raise ValueError(f"Hash size {bits} does not match index hash size {self._bits}.")

        if image_id in self._row_of:
            self.discard(image_id)

        assert self._rows is not None
        row = len(self._ids)
        if row >= self._rows.shape[0]:
            capacity = self._rows.shape[0] * 2
            self._rows = np.vstack([self._rows, np.zeros_like(self._rows)])
            self._alive = np.concatenate([self._alive, np.zeros(capacity - self._alive.size, dtype=bool)])

        self._rows[row] = packed
        self._alive[row] = True
        self._ids.append(image_id)
        self._row_of[image_id] = row

    def discard(self, image_id: int) -> None:
        row = self._row_of.pop(image_id, None)
        if row is not None:
            self._alive[row] = False

    def query(self, image_hash: imagehash.ImageHash, threshold: int) -> List[Tuple[int, int]]:
        """Return live ``(id, distance)`` pairs below ``threshold`` in insertion order."""

        if self._rows is None or not self._row_of:
            return []
        bits = int(np.asarray(image_hash.hash).size)
        if bits != self._bits:
            raise ValueError(f"Hash size {bits} does not match index hash size {self._bits}.")

        used = len(self._ids)
        xor = np.bitwise_xor(self._rows[:used], pack_hash(image_hash))
        distances = np.unpackbits(xor, axis=1).sum(axis=1)
        hits = np.flatnonzero(self._alive[:used] & (distances < threshold))
        return [(self._ids[row], int(distances[row])) for row in hits]

    def __len__(self) -> int:
        return len(self._row_of)

    def __contains__(self, image_id: object) -> bool:
        return image_id in self._row_of
