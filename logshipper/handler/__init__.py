"""Buffering and flush engine for shipping log entries."""

from logshipper.handler.buffer import DATA_AMOUNT_LIMIT, MAX_BATCH_SIZE, BatchBuffer
from logshipper.handler.engine import FlushError, LogShipper, ShipperConfig
from logshipper.handler.entry import EVENT_SIZE_LIMIT, LogEntry, split_message
from logshipper.handler.sequence import Sequencer
from logshipper.handler.stream import (
    CallableStreamResolver,
    FileStreamResolver,
    StaticStreamResolver,
    StreamResolver,
)
from logshipper.handler.throttle import RPS_LIMIT, RateLimiter

__all__ = [
    "LogShipper",
    "ShipperConfig",
    "FlushError",
    "LogEntry",
    "split_message",
    "BatchBuffer",
    "Sequencer",
    "RateLimiter",
    "StreamResolver",
    "StaticStreamResolver",
    "CallableStreamResolver",
    "FileStreamResolver",
    "DATA_AMOUNT_LIMIT",
    "EVENT_SIZE_LIMIT",
    "MAX_BATCH_SIZE",
    "RPS_LIMIT",
]
