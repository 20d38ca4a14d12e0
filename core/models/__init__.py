# Path: core/models/__init__.py
# Purpose: Package initializer for domain models.
# Layer: core/models.
# Details: Re-exports dataclasses shared by the scanner, hash workers, and aggregator.

from .domain import ErrorKind, HashFailure, ImageRecord, ScanProgress, SimilarPair

__all__ = ["ErrorKind", "HashFailure", "ImageRecord", "ScanProgress", "SimilarPair"]
