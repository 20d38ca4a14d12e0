# Path: core/hash_index/__init__.py
# Purpose: Package initializer for hash comparison back-ends.
# Layer: core/hash_index.
# Details: Exposes the HashIndex interface, its implementations, and a factory keyed by backend name.

from .base import HashIndex
from .linear_store import LinearHashIndex
from .packed_store import PackedHashIndex


def create_index(backend: str = "linear") -> HashIndex:
    """Return a new, empty hash index for the given backend name."""

    if backend == "linear":
        return LinearHashIndex()
    if backend == "packed":
        return PackedHashIndex()
    raise ValueError(f"Unknown hash index backend: {backend}")


__all__ = ["HashIndex", "LinearHashIndex", "PackedHashIndex", "create_index"]
