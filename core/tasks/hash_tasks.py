# Path: core/tasks/hash_tasks.py
# Purpose: Implement the perceptual-hash worker executed for every scanned image.
# Layer: core/tasks.
# Details: Reads, size-checks, decodes, downsamples, and hashes one file, reporting typed failures.

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional

import imagehash
from PIL import Image, UnidentifiedImageError

from config.settings import HASH_ALGORITHMS, HasherSettings
from core.models.domain import ErrorKind, HashFailure, ImageRecord

from .base import HashOutcome

logger = logging.getLogger(__name__)

_DECODE_ERRORS = (UnidentifiedImageError, OSError, ValueError, SyntaxError, Image.DecompressionBombError)


class HashError(Exception):
    """Per-item failure raised inside the worker and converted to a HashFailure."""

    def __init__(self, kind: ErrorKind, message: str, byte_size: int = 0) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.byte_size = byte_size


class HashExecutor:
    """Hash image files with one fixed imagehash configuration.

    Every image hashed by the same executor uses the same algorithm and hash
    size, so distances between its records are comparable.
    """

    def __init__(self, settings: Optional[HasherSettings] = None) -> None:
        self.settings = settings or HasherSettings()
        self._hash_fn = self._resolve_algorithm(self.settings.algorithm)

    @staticmethod
    def _resolve_algorithm(name: str) -> Callable[..., imagehash.ImageHash]:
        if name not in HASH_ALGORITHMS:
            raise ValueError(f"Unsupported hash algorithm: {name}")
        return getattr(imagehash, name)

    def hash(self, image_id: int, path: Path) -> HashOutcome:
        """Hash a single file, returning an ImageRecord or a HashFailure."""

        path = Path(path)
        try:
            return self._compute(image_id, path)
        except HashError as exc:
            return HashFailure(id=image_id, path=path, kind=exc.kind, message=exc.message, byte_size=exc.byte_size)

    def _compute(self, image_id: int, path: Path) -> ImageRecord:
        logger.info("Hashing %s", path)
        data = self._read(path)
        if len(data) < self.settings.min_file_size:
            raise HashError(
                ErrorKind.TOO_SMALL,
                f"{len(data)} bytes is below the {self.settings.min_file_size} byte minimum",
                len(data),
            )

        image = self._decode(path, data)
        width, height = image.size
        if width * height < self.settings.min_pixel_area:
            raise HashError(
                ErrorKind.TOO_SMALL,
                f"{width}x{height} is below the {self.settings.min_pixel_area} pixel minimum",
                len(data),
            )

        # Downsampling happens before hashing so the hash sees the same pixels the display does.
        image.thumbnail((self.settings.max_width, self.settings.max_height), Image.Resampling.LANCZOS)
        image_hash = self._hash_fn(image, hash_size=self.settings.hash_size)
        logger.debug("%s hashed", path)

        return ImageRecord(id=image_id, path=path, hash=image_hash, pixels=image, byte_size=len(data))

    @staticmethod
    def _read(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.error("Failed to open %s: %s", path, exc)
            raise HashError(ErrorKind.IO, str(exc)) from exc

    @staticmethod
    def _decode(path: Path, data: bytes) -> Image.Image:
        try:
            with Image.open(BytesIO(data)) as img:
                img.load()
                return img.convert("RGBA")
        except _DECODE_ERRORS as exc:
            logger.error("Failed to decode image %s: %s", path, exc)
            raise HashError(ErrorKind.DECODE, str(exc), len(data)) from exc
