"""
Entry buffering for the shipper.

Accumulates entries in memory until the batch is full by count or would
exceed the service's byte limit.
"""

from typing import List

from logshipper.handler.entry import LogEntry
from logshipper.utils.logging import get_logger

logger = get_logger(__name__)

# Maximum request payload (sum of messages plus per-event overhead).
DATA_AMOUNT_LIMIT = 1048576

# Maximum number of events in one request.
MAX_BATCH_SIZE = 10000


class BatchBuffer:
    """
    In-memory batch of entries awaiting flush.

    Tracks the running byte total alongside the entries so that the
    total always equals the sum of the entry sizes. The buffer never
    sends anything itself; the shipper asks it whether a flush is due.
    """

    def __init__(
        self,
        batch_size: int = MAX_BATCH_SIZE,
        data_amount_limit: int = DATA_AMOUNT_LIMIT,
    ):
        """
        Initialize buffer.

        Args:
            batch_size: Max entries per batch
            data_amount_limit: Max bytes per batch
        """
        self.batch_size = batch_size
        self.data_amount_limit = data_amount_limit

        self._entries: List[LogEntry] = []
        self._current_bytes = 0

    def append(self, entry: LogEntry) -> None:
        """Add entry to batch."""
        self._entries.append(entry)
        self._current_bytes += entry.size

    def would_overflow(self, entry: LogEntry) -> bool:
        """Check if adding entry would reach the byte limit."""
        return self._current_bytes + entry.size >= self.data_amount_limit

    def is_full(self) -> bool:
        """Check if batch has reached max entry count."""
        return len(self._entries) >= self.batch_size

    def is_empty(self) -> bool:
        """Check if there is nothing to flush."""
        return not self._entries

    def entries(self) -> List[LogEntry]:
        """Get a copy of the buffered entries in submission order."""
        return list(self._entries)

    def size_bytes(self) -> int:
        """Get running byte total."""
        return self._current_bytes

    def clear(self) -> None:
        """Drop all entries and reset the byte total."""
        self._entries = []
        self._current_bytes = 0

    def drain(self) -> List[LogEntry]:
        """
        Take all entries and reset state.

        Returns:
            Entries in submission order
        """
        entries = self._entries
        self.clear()

        logger.debug("Drained buffer", count=len(entries))

        return entries

    def __len__(self) -> int:
        return len(self._entries)
