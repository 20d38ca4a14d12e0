import os
import sys
from pathlib import Path
from typing import Callable, Iterable

import imagehash
import numpy as np
import pytest
from PIL import Image

# Make the repository root importable so ``config`` and ``core`` resolve
# without an editable install.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


def noise_image(path: Path, seed: int, size=(128, 128), fmt: str = "PNG") -> Path:
    """Write an RGB noise image; 128x128 noise PNGs are roughly 48 KiB."""
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(size[1], size[0], 3), dtype=np.uint8)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(pixels).save(path, format=fmt)
    return path


def hash_with_bits(bits: Iterable[int], hash_size: int = 16) -> imagehash.ImageHash:
    """Build a hash whose set bits are exactly ``bits`` (distance to zero == len(bits))."""
    flat = np.zeros(hash_size * hash_size, dtype=bool)
    flat[list(bits)] = True
    return imagehash.ImageHash(flat.reshape(hash_size, hash_size))


@pytest.fixture
def make_noise_image() -> Callable[..., Path]:
    return noise_image


@pytest.fixture
def make_hash() -> Callable[..., imagehash.ImageHash]:
    return hash_with_bits
