# Path: config/__init__.py
# Purpose: Package initializer for configuration module.
# Layer: config.
# Details: Exposes settings models for application-wide configuration.

from .settings import (
    HASH_ALGORITHMS,
    INDEX_BACKENDS,
    AppSettings,
    HashAlgorithm,
    HasherSettings,
    IndexBackend,
    PipelineSettings,
)

__all__ = [
    "AppSettings",
    "HasherSettings",
    "PipelineSettings",
    "HashAlgorithm",
    "IndexBackend",
    "HASH_ALGORITHMS",
    "INDEX_BACKENDS",
]
