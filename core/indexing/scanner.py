# Path: core/indexing/scanner.py
# Purpose: Scan folders lazily and yield candidate image file paths.
# Layer: core/indexing.
# Details: Provides the extension filter and a deterministic recursive walk that reports its final total.

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

# Matched case-sensitively against the suffix without its leading dot.
SUPPORTED_EXTENSIONS = frozenset(
    {"png", "jpg", "jpeg", "gif", "bmp", "ico", "tiff", "webp", "avif", "pnm", "dds", "tga"}
)


def accepts(path: Path | str) -> bool:
    """Return True if ``path`` is a regular file with a supported extension."""

    path = Path(path)
    extension = path.suffix[1:]
    if extension not in SUPPORTED_EXTENSIONS:
        return False
    return path.is_file() and not path.is_symlink()


class ImageScanner:
    """Scan a filesystem root for supported image files.

    ``scan`` returns a one-shot iterator; ``total`` becomes available once it has
    been exhausted.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self._total: Optional[int] = None
        self._started = False

    @property
    def total(self) -> Optional[int]:
        """Number of accepted files, or None while the scan is still running."""

        return self._total

    def scan(self) -> Iterator[Path]:
        """Yield accepted image files under the root directory."""

        if self._started:
            raise RuntimeError("ImageScanner.scan() can only be consumed once.")
        self._started = True
        return self._iter_image_files()

    def _iter_image_files(self) -> Iterator[Path]:
        count = 0
        for dirpath, dirnames, filenames in os.walk(self.root, onerror=self._on_walk_error):
            # Sorting in place fixes the descent order for a static tree.
            dirnames.sort()
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if accepts(path):
                    count += 1
                    yield path
        self._total = count
        logger.info("Scan of %s finished: %d candidate images", self.root, count)

    @staticmethod
    def _on_walk_error(error: OSError) -> None:
        logger.debug("Skipping unreadable directory %s: %s", error.filename, error)
