# Path: config/settings.py
# Purpose: Provide typed application configuration models.
# Layer: config.
# Details: Centralizes settings for hashing, worker dispatch, similarity threshold, and logging.

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional, get_args

from pydantic import BaseModel, Field

HashAlgorithm = Literal["phash", "dhash", "dhash_vertical", "average_hash", "whash"]
IndexBackend = Literal["linear", "packed"]

HASH_ALGORITHMS = get_args(HashAlgorithm)
INDEX_BACKENDS = get_args(IndexBackend)


class HasherSettings(BaseModel):
    """Settings describing how every image of a run is decoded and hashed."""

    algorithm: HashAlgorithm = Field(default="phash", description="imagehash function used for every image in a run.")
    hash_size: int = Field(default=16, ge=2, description="Hash grid edge; the hash carries hash_size**2 bits.")
    min_file_size: int = Field(default=10 * 1024, ge=0, description="Files smaller than this many bytes are not decoded.")
    min_pixel_area: int = Field(default=0, ge=0, description="Decoded images below this pixel count are rejected (0 disables).")
    max_width: int = Field(default=1600, ge=1, description="Maximum width kept after decoding.")
    max_height: int = Field(default=1200, ge=1, description="Maximum height kept after decoding.")

    @property
    def hash_bits(self) -> int:
        return self.hash_size * self.hash_size


class PipelineSettings(BaseModel):
    """Settings controlling worker fan-out and the consumer drain loop."""

    workers: Optional[int] = Field(default=None, ge=1, description="Hash worker threads; defaults to cpu_count - 1.")
    drain_batch_size: Optional[int] = Field(
        default=None, ge=1, description="Maximum channel messages handled per tick (None drains everything queued)."
    )
    index_backend: IndexBackend = Field(default="linear", description="Hash comparison back-end: 'linear' or 'packed'.")

    def resolved_workers(self) -> int:
        """Return the worker count, reserving one execution unit for the consumer."""

        if self.workers is not None:
            return self.workers
        return max(1, (os.cpu_count() or 2) - 1)


class AppSettings(BaseModel):
    """Top-level application settings shared across services and interfaces."""

    image_folder: Optional[Path] = Field(default=None, description="Root folder scanned for images.")
    similarity_threshold: int = Field(
        default=40, ge=0, le=100, description="Pairs whose hashes differ by fewer bits than this are similar."
    )
    log_level: str = Field(default="INFO", description="Verbosity level for application logs.")
    hasher: HasherSettings = Field(default_factory=HasherSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "AppSettings":
        """Instantiate settings from ``IMGDEDUP_*`` environment variables when available."""

        env = os.environ if environ is None else environ
        payload: Dict[str, Any] = {}
        hasher: Dict[str, Any] = {}
        pipeline: Dict[str, Any] = {}

        if "IMGDEDUP_IMAGE_FOLDER" in env:
            payload["image_folder"] = env["IMGDEDUP_IMAGE_FOLDER"]
        if "IMGDEDUP_SIMILARITY_THRESHOLD" in env:
            payload["similarity_threshold"] = env["IMGDEDUP_SIMILARITY_THRESHOLD"]
        if "IMGDEDUP_LOG_LEVEL" in env:
            payload["log_level"] = env["IMGDEDUP_LOG_LEVEL"].upper()
        if "IMGDEDUP_HASH_ALGORITHM" in env:
            hasher["algorithm"] = env["IMGDEDUP_HASH_ALGORITHM"]
        if "IMGDEDUP_MIN_FILE_SIZE" in env:
            hasher["min_file_size"] = env["IMGDEDUP_MIN_FILE_SIZE"]
        if "IMGDEDUP_WORKERS" in env:
            pipeline["workers"] = env["IMGDEDUP_WORKERS"]
        if "IMGDEDUP_INDEX_BACKEND" in env:
            pipeline["index_backend"] = env["IMGDEDUP_INDEX_BACKEND"]

        if hasher:
            payload["hasher"] = hasher
        if pipeline:
            payload["pipeline"] = pipeline
        # model_validate coerces the string values and raises ValidationError on bad input.
        return cls.model_validate(payload)


__all__ = [
    "AppSettings",
    "HasherSettings",
    "PipelineSettings",
    "HashAlgorithm",
    "IndexBackend",
    "HASH_ALGORITHMS",
    "INDEX_BACKENDS",
]
