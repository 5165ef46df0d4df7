"""
logshipper - batched delivery of application logs to a log service.

This package buffers formatted log records and ships them to a
CloudWatch Logs style service while respecting its limits:
- At most 10,000 events and 1 MiB per request
- At most 256 KiB per event (larger messages are split)
- Chronological order within a request
- Sequence tokens for ordered appends
- A per-second request budget
"""

__version__ = "0.1.0"

from logshipper.client import InMemoryLogService, LogServiceClient
from logshipper.handler import (
    FlushError,
    LogEntry,
    LogShipper,
    ShipperConfig,
    StaticStreamResolver,
    StreamResolver,
)
from logshipper.integration import LogShippingHandler

__all__ = [
    "LogShipper",
    "ShipperConfig",
    "FlushError",
    "LogEntry",
    "StreamResolver",
    "StaticStreamResolver",
    "LogServiceClient",
    "InMemoryLogService",
    "LogShippingHandler",
]
