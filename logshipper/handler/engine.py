"""
Log shipper for sending batched entries to a log service.

Provides the buffering engine with:
- Batching by entry count and payload size
- Splitting of oversized messages
- Chronological ordering within a batch
- Sequence token tracking with one refresh-and-retry on staleness
- Per-second request throttling
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from logshipper.client.base import (
    LogServiceClient,
    LogServiceError,
    ResourceAlreadyExistsError,
    StaleSequenceTokenError,
)
from logshipper.handler.buffer import DATA_AMOUNT_LIMIT, MAX_BATCH_SIZE, BatchBuffer
from logshipper.handler.entry import EVENT_SIZE_LIMIT, LogEntry, split_message, to_millis
from logshipper.handler.sequence import Sequencer
from logshipper.handler.stream import CallableStreamResolver, StreamResolver
from logshipper.handler.throttle import RPS_LIMIT, RateLimiter
from logshipper.utils.config import Config
from logshipper.utils.logging import get_logger

logger = get_logger(__name__)


class FlushError(Exception):
    """
    A batch could not be delivered.

    The batch has already been dropped from the buffer; ``entries`` holds
    it for callers that want to handle it themselves.
    """

    def __init__(self, message: str, entries: Optional[List[LogEntry]] = None):
        super().__init__(message)
        self.entries = entries or []


@dataclass
class ShipperConfig:
    """
    Configuration for the shipper.

    Attributes:
        batch_size: Max entries per request (at most 10000)
        data_amount_limit: Max request payload in bytes
        event_size_limit: Max message bytes per entry before splitting
        requests_per_second: Append requests allowed per second
    """
    batch_size: int = MAX_BATCH_SIZE
    data_amount_limit: int = DATA_AMOUNT_LIMIT
    event_size_limit: int = EVENT_SIZE_LIMIT
    requests_per_second: int = RPS_LIMIT

    @classmethod
    def from_config(cls, config: Config) -> "ShipperConfig":
        """Build from the ``shipper`` section of a Config."""
        return cls(
            batch_size=int(config.get("shipper.batch_size", MAX_BATCH_SIZE)),
            requests_per_second=int(config.get("shipper.requests_per_second", RPS_LIMIT)),
        )


class LogShipper:
    """
    Buffers entries for one stream and ships them in ordered batches.

    Not thread-safe: use one shipper per writer or serialize access.

    Example:
        shipper = LogShipper(
            client,
            "my-group",
            StaticStreamResolver("my-stream"),
            batch_size=100,
        )

        shipper.write("something happened")
        shipper.write("something else", when=datetime.now())

        shipper.close()
    """

    def __init__(
        self,
        client: LogServiceClient,
        group: str,
        resolver: Union[StreamResolver, Callable[..., Any]],
        config: Optional[ShipperConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
        **kwargs,
    ):
        """
        Initialize shipper.

        Args:
            client: Log service client
            group: Existing log group
            resolver: Stream resolver, or a provider callable
            config: Shipper configuration
            rate_limiter: Request limiter (built from config if None)
            **kwargs: Additional config overrides

        Raises:
            ValueError: If batch_size is outside 1..10000
        """
        self.config = dataclasses.replace(config) if config else ShipperConfig()

        for key, value in kwargs.items():
            if hasattr(self.config, key):
                setattr(self.config, key, value)
            else:
                raise TypeError(f"Unknown shipper option: {key}")

        if self.config.batch_size > MAX_BATCH_SIZE:
            raise ValueError(f"Batch size can not be greater than {MAX_BATCH_SIZE}")
        if self.config.batch_size < 1:
            raise ValueError("Batch size must be at least 1")

        self._client = client
        self.group = group

        if not isinstance(resolver, StreamResolver):
            resolver = CallableStreamResolver(resolver)
        self._resolver = resolver

        stream, token = self._resolver.resolve()
        self.stream = stream

        self._sequencer = Sequencer(client, group, stream, token)
        self._buffer = BatchBuffer(
            batch_size=self.config.batch_size,
            data_amount_limit=self.config.data_amount_limit,
        )
        self._rate_limiter = rate_limiter or RateLimiter(self.config.requests_per_second)

        self._closed = False

        # Statistics
        self._flushes = 0
        self._failed_flushes = 0
        self._dropped_entries = 0

        logger.info(
            "Shipper initialized",
            group=group,
            stream=stream,
            batch_size=self.config.batch_size,
            has_token=token is not None,
        )

    @property
    def token(self) -> Optional[str]:
        """Current sequence token."""
        return self._sequencer.token

    def write(
        self,
        message: Union[str, bytes],
        when: Union[datetime, float, int, None] = None,
    ) -> None:
        """
        Submit a formatted message.

        Args:
            message: Formatted message
            when: datetime or epoch seconds (None for now)
        """
        for entry in split_message(message, to_millis(when), self.config.event_size_limit):
            self._add(entry)

    def submit(self, entry: LogEntry) -> None:
        """
        Submit one entry.

        Entries larger than the per-event limit are split first; each
        piece keeps the entry's timestamp.

        Args:
            entry: Entry to buffer

        Raises:
            RuntimeError: If the shipper is closed
            FlushError: If a triggered flush failed
        """
        if len(entry.message.encode("utf-8")) > self.config.event_size_limit:
            for piece in split_message(entry.message, entry.timestamp, self.config.event_size_limit):
                self._add(piece)
        else:
            self._add(entry)

    def _add(self, entry: LogEntry) -> None:
        if self._closed:
            raise RuntimeError("Shipper is closed")

        if self._buffer.would_overflow(entry):
            logger.debug(
                "Batch would exceed size limit, flushing",
                size_bytes=self._buffer.size_bytes(),
                entry_bytes=entry.size,
            )
            self.flush()

        self._buffer.append(entry)

        if self._buffer.is_full():
            logger.debug("Batch full, flushing", entries=len(self._buffer))
            self.flush()

    def flush(self) -> None:
        """
        Send buffered entries.

        The buffer is cleared whether or not the send succeeds.

        Raises:
            FlushError: If the batch could not be delivered
        """
        if self._buffer.is_empty():
            return

        entries = self._buffer.drain()
        batch = sorted(entries, key=lambda e: e.timestamp)

        try:
            if self._sequencer.token is None:
                self._initialize_stream(batch)

            self._send_with_refresh(batch)

            self._flushes += 1

            logger.debug(
                "Batch flushed",
                group=self.group,
                stream=self.stream,
                entries=len(batch),
            )

        except Exception:
            self._failed_flushes += 1
            self._dropped_entries += len(entries)

            logger.error(
                "Dropping batch after failed flush",
                group=self.group,
                stream=self.stream,
                entries=len(entries),
            )
            raise

    def _initialize_stream(self, batch: List[LogEntry]) -> None:
        """Create the destination stream before the first append."""
        try:
            self._client.create_log_stream(self.group, self.stream)
        except ResourceAlreadyExistsError:
            logger.debug("Stream already exists", group=self.group, stream=self.stream)
        except LogServiceError as e:
            raise FlushError(f"Could not create stream {self.stream}: {e}", batch) from e

    def _send_with_refresh(self, batch: List[LogEntry]) -> None:
        """Send batch, refreshing the token and retrying once if it is stale."""
        try:
            self._send(batch)

        except StaleSequenceTokenError as e:
            logger.warning(
                "Sequence token rejected, refreshing",
                group=self.group,
                stream=self.stream,
                error=str(e),
            )

            try:
                self._sequencer.refresh()
                self._send(batch)
            except LogServiceError as retry_error:
                raise FlushError(
                    f"Append to {self.group}/{self.stream} failed after token refresh: {retry_error}",
                    batch,
                ) from retry_error

            logger.info("Append succeeded after token refresh", stream=self.stream)

        except LogServiceError as e:
            raise FlushError(f"Append to {self.group}/{self.stream} failed: {e}", batch) from e

    def _send(self, batch: List[LogEntry]) -> None:
        """Issue one append request for an already sorted batch."""
        events = [entry.to_event() for entry in batch]

        self._rate_limiter.acquire()

        next_token = self._client.put_log_events(
            self.group,
            self.stream,
            events,
            self._sequencer.token,
        )

        self._sequencer.adopt(next_token)

        try:
            self._resolver.notify(next_token, self.stream)
        except Exception as e:
            logger.warning(
                "Stream resolver notification failed",
                stream=self.stream,
                error=str(e),
            )

    def close(self) -> None:
        """Flush remaining entries and stop accepting new ones."""
        if self._closed:
            return

        self._closed = True

        logger.debug("Closing shipper", pending=len(self._buffer))

        self.flush()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def pending_count(self) -> int:
        """Get number of buffered entries."""
        return len(self._buffer)

    def metrics(self) -> Dict:
        """
        Get shipper metrics.

        Returns:
            Dictionary with metrics
        """
        return {
            "pending_entries": len(self._buffer),
            "pending_bytes": self._buffer.size_bytes(),
            "flushes": self._flushes,
            "failed_flushes": self._failed_flushes,
            "dropped_entries": self._dropped_entries,
            "has_token": self._sequencer.token is not None,
            "throttle": self._rate_limiter.get_stats(),
            "closed": self._closed,
        }
