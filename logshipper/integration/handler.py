"""
Standard library logging adapter.

Formats ``logging`` records and hands them to a LogShipper. Level
filtering is the usual ``Handler.setLevel``; bubbling is modelled with a
record attribute that downstream handlers can filter on.
"""

import logging
from typing import Optional

from logshipper.handler.engine import LogShipper
from logshipper.utils.logging import is_internal_logger

DEFAULT_FORMAT = "%(name)s: %(levelname)s: %(message)s"

# Set on records consumed by a non-bubbling handler.
SHIPPED_ATTR = "logshipper_consumed"


class LogShippingHandler(logging.Handler):
    """
    Ship stdlib log records through a LogShipper.

    Example:
        handler = LogShippingHandler(shipper, level=logging.INFO, bubble=False)
        logging.getLogger("app").addHandler(handler)

        console = logging.StreamHandler()
        console.addFilter(BubbleFilter())
        logging.getLogger().addHandler(console)
    """

    def __init__(
        self,
        shipper: LogShipper,
        level: int = logging.DEBUG,
        bubble: bool = True,
        formatter: Optional[logging.Formatter] = None,
    ):
        """
        Initialize handler.

        Args:
            shipper: Shipper that owns the buffer and the stream
            level: Minimum level admitted
            bubble: Whether admitted records continue to other handlers
            formatter: Record formatter (defaults to DEFAULT_FORMAT)
        """
        super().__init__(level)
        self.shipper = shipper
        self.bubble = bubble
        self.setFormatter(formatter or logging.Formatter(DEFAULT_FORMAT))

    def is_handling(self, record: logging.LogRecord) -> bool:
        """Check if record would be admitted."""
        return record.levelno >= self.level and not is_internal_logger(record.name)

    def handle(self, record: logging.LogRecord):
        # the shipper logs through structlog/stdlib too; never ship those
        if is_internal_logger(record.name):
            return False

        rv = super().handle(record)

        if rv and not self.bubble and record.levelno >= self.level:
            setattr(record, SHIPPED_ATTR, True)

        return rv

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            self.shipper.write(message, when=record.created)
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        self.acquire()
        try:
            self.shipper.flush()
        finally:
            self.release()

    def close(self) -> None:
        self.acquire()
        try:
            self.shipper.close()
        finally:
            self.release()
            super().close()


class BubbleFilter(logging.Filter):
    """Drop records already consumed by a non-bubbling LogShippingHandler."""

    def filter(self, record: logging.LogRecord) -> bool:
        return not getattr(record, SHIPPED_ATTR, False)
