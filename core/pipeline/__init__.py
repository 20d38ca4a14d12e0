# Path: core/pipeline/__init__.py
# Purpose: Package initializer for the scan/hash/aggregate pipeline.
# Layer: core/pipeline.
# Details: Exposes the session, its building blocks, and the message and event types.

from .channel import ResultChannel
from .dispatcher import Dispatcher
from .messages import (
    HashCompleted,
    ItemAccepted,
    ItemFailed,
    ItemRemoved,
    PairFound,
    RemoveRequest,
    ScanFinished,
    ScanTotal,
    TaskSkipped,
    WorkerFault,
    WorkerFaulted,
)
from .session import DedupSession, RunHandle

__all__ = [
    "DedupSession",
    "Dispatcher",
    "ResultChannel",
    "RunHandle",
    "HashCompleted",
    "ItemAccepted",
    "ItemFailed",
    "ItemRemoved",
    "PairFound",
    "RemoveRequest",
    "ScanFinished",
    "ScanTotal",
    "TaskSkipped",
    "WorkerFault",
    "WorkerFaulted",
]
