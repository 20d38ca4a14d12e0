# Path: core/pipeline/channel.py
# Purpose: Provide the many-producer, single-consumer result channel.
# Layer: core/pipeline.
# Details: Producers never block; the consumer drains without blocking once per tick.

from __future__ import annotations

import queue
from typing import List, Optional

from .messages import ChannelMessage


class ResultChannel:
    """Thread-safe FIFO between hash workers and the single consumer."""

    def __init__(self) -> None:
        self._queue: "queue.SimpleQueue[ChannelMessage]" = queue.SimpleQueue()

    def put(self, message: ChannelMessage) -> None:
        self._queue.put(message)

    def drain(self, limit: Optional[int] = None) -> List[ChannelMessage]:
        """Return up to ``limit`` queued messages; an empty channel yields an empty list."""

        messages: List[ChannelMessage] = []
        while limit is None or len(messages) < limit:
            try:
                messages.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return messages

    def __len__(self) -> int:
        return self._queue.qsize()
