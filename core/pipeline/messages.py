# Path: core/pipeline/messages.py
# Purpose: Define the messages carried by the result channel and the events handed to display layers.
# Layer: core/pipeline.
# Details: Inbound messages are tagged with a run generation; outbound events are plain values.

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import imagehash

from core.models.domain import ErrorKind
from core.tasks.base import HashOutcome


# Channel messages (workers, scanner, and UI -> consumer)
@dataclass(frozen=True)
class ScanFinished:
    generation: int
    total: int


@dataclass(frozen=True)
class HashCompleted:
    generation: int
    outcome: HashOutcome


@dataclass(frozen=True)
class WorkerFault:
    """A task died with an unexpected exception; its result is lost."""

    generation: int
    image_id: int
    path: Path
    error: str


@dataclass(frozen=True)
class TaskSkipped:
    """A task of a superseded run that did not call the hasher."""

    generation: int
    image_id: int
    path: Path


@dataclass(frozen=True)
class RemoveRequest:
    generation: int
    image_id: int


ChannelMessage = Union[ScanFinished, HashCompleted, WorkerFault, TaskSkipped, RemoveRequest]


# Events (consumer -> display layer)
@dataclass(frozen=True)
class ScanTotal:
    total: int


@dataclass(frozen=True)
class ItemAccepted:
    id: int
    path: Path
    hash: imagehash.ImageHash
    pixel_summary: Tuple[int, int]
    byte_size: int


@dataclass(frozen=True)
class ItemFailed:
    id: int
    path: Path
    error_kind: ErrorKind
    message: str
    byte_size: int


@dataclass(frozen=True)
class PairFound:
    id_a: int
    id_b: int
    distance: int


@dataclass(frozen=True)
class ItemRemoved:
    id: int


@dataclass(frozen=True)
class WorkerFaulted:
    id: int
    path: Path
    message: str


Event = Union[ScanTotal, ItemAccepted, ItemFailed, PairFound, ItemRemoved, WorkerFaulted]
