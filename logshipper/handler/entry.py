"""
Log entries for the shipping buffer.

An entry is one event as the log service sees it: a message and the
millisecond timestamp it occurred at.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from typing import List, Union

from logshipper.utils.logging import get_logger

logger = get_logger(__name__)

# Fixed per-event overhead the service charges against the batch size.
EVENT_OVERHEAD_BYTES = 26

# 262144 - 26
EVENT_SIZE_LIMIT = 262118


@dataclass(frozen=True)
class LogEntry:
    """
    A single event to be delivered.

    Bytes messages are decoded as UTF-8 on construction, so ``message`` is
    always text.

    Attributes:
        message: Formatted log message
        timestamp: Event time in milliseconds since the epoch
    """
    message: str
    timestamp: int

    def __post_init__(self):
        if isinstance(self.message, bytes):
            object.__setattr__(self, "message", _as_text(self.message))

    @property
    def size(self) -> int:
        """Bytes this entry contributes to a batch."""
        return len(self.message.encode("utf-8")) + EVENT_OVERHEAD_BYTES

    def to_event(self) -> dict:
        """Wire shape expected by put_log_events."""
        return {"timestamp": self.timestamp, "message": self.message}


def to_millis(value: Union[datetime, float, int, None] = None) -> int:
    """
    Convert a point in time to epoch milliseconds.

    Args:
        value: datetime, epoch seconds (float/int), or None for now

    Returns:
        Milliseconds since the epoch
    """
    if value is None:
        return int(time.time() * 1000)
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    return int(value * 1000)


def _as_text(message: Union[str, bytes]) -> str:
    if isinstance(message, bytes):
        return message.decode("utf-8", errors="replace")
    return message


def _chunk_utf8(data: bytes, limit: int) -> List[bytes]:
    """Split encoded text into chunks of at most ``limit`` bytes on character boundaries."""
    chunks = []
    start = 0

    while start < len(data):
        end = min(start + limit, len(data))

        if end < len(data):
            # back off continuation bytes (0b10xxxxxx)
            while end > start and (data[end] & 0xC0) == 0x80:
                end -= 1
            if end == start:
                # limit is narrower than one character; keep it whole
                end = start + 1
                while end < len(data) and (data[end] & 0xC0) == 0x80:
                    end += 1

        chunks.append(data[start:end])
        start = end

    return chunks


def split_message(
    message: Union[str, bytes],
    timestamp: int,
    limit: int = EVENT_SIZE_LIMIT,
) -> List[LogEntry]:
    """
    Split a formatted message into entries that fit the per-event limit.

    Every piece shares the original timestamp. A message that already fits
    comes back as a single entry, and an empty message yields one empty
    entry. Bytes are decoded first (invalid sequences become U+FFFD), so
    the limit applies to what is actually sent.

    Args:
        message: Formatted message (str or UTF-8 bytes)
        timestamp: Event time in milliseconds
        limit: Maximum encoded size of one event message

    Returns:
        List of entries in message order
    """
    if limit <= 0:
        raise ValueError("Event size limit must be positive")

    text = _as_text(message)
    data = text.encode("utf-8")

    if len(data) <= limit:
        return [LogEntry(message=text, timestamp=timestamp)]

    chunks = _chunk_utf8(data, limit)

    logger.debug(
        "Split oversized message",
        size_bytes=len(data),
        chunks=len(chunks),
        limit=limit,
    )

    return [LogEntry(message=chunk.decode("utf-8"), timestamp=timestamp) for chunk in chunks]
