# Path: core/indexing/__init__.py
# Purpose: Package initializer for filesystem scanning utilities.
# Layer: core/indexing.
# Details: Exposes the extension filter and the directory scanner.

from .scanner import SUPPORTED_EXTENSIONS, ImageScanner, accepts

__all__ = ["ImageScanner", "SUPPORTED_EXTENSIONS", "accepts"]
