# Path: core/tasks/__init__.py
# Purpose: Provide hashing task interfaces and the default hash worker.
# Layer: core/tasks.
# Details: Exposes RunContext, the worker protocols, and HashExecutor.

from .base import HashOutcome, ImageHasher, ResultSink, RunContext
from .hash_tasks import HashError, HashExecutor

__all__ = [
    "HashOutcome",
    "ImageHasher",
    "ResultSink",
    "RunContext",
    "HashError",
    "HashExecutor",
]
