"""
Integration tests for the stdlib logging adapter.
"""

import logging

import pytest

from logshipper.client.memory import InMemoryLogService
from logshipper.handler.engine import LogShipper
from logshipper.handler.stream import StaticStreamResolver
from logshipper.handler.throttle import RateLimiter
from logshipper.integration.handler import BubbleFilter, LogShippingHandler


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def service():
    return InMemoryLogService(groups=["group"])


@pytest.fixture
def shipper(service):
    return LogShipper(
        service,
        "group",
        StaticStreamResolver("stream"),
        rate_limiter=RateLimiter(requests_per_second=1000),
        batch_size=10,
    )


@pytest.fixture
def app_logger():
    logger = logging.getLogger("tests.app")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


class TestLogShippingHandler:
    """Test LogShippingHandler."""

    def test_default_format(self, service, shipper, app_logger):
        """Test records are formatted as name: LEVEL: message."""
        handler = LogShippingHandler(shipper)
        app_logger.addHandler(handler)

        app_logger.info("hello %s", "world")
        handler.close()

        events = service.events("group", "stream")
        assert [e["message"] for e in events] == ["tests.app: INFO: hello world"]

    def test_record_time_used(self, service, shipper, app_logger):
        """Test the record's creation time becomes the timestamp."""
        handler = LogShippingHandler(shipper)
        app_logger.addHandler(handler)

        record = app_logger.makeRecord("tests.app", logging.INFO, __file__, 1, "x", None, None)
        record.created = 1600000000.5
        app_logger.handle(record)
        handler.close()

        assert service.events("group", "stream")[0]["timestamp"] == 1600000000500

    def test_level_filtering(self, service, shipper, app_logger):
        """Test records below the level are not shipped."""
        handler = LogShippingHandler(shipper, level=logging.WARNING)
        app_logger.addHandler(handler)

        app_logger.info("quiet")
        app_logger.error("loud")
        handler.close()

        events = service.events("group", "stream")
        assert len(events) == 1
        assert "loud" in events[0]["message"]

    def test_is_handling(self, shipper):
        """Test admission check."""
        handler = LogShippingHandler(shipper, level=logging.WARNING)

        info = logging.LogRecord("app", logging.INFO, __file__, 1, "x", None, None)
        error = logging.LogRecord("app", logging.ERROR, __file__, 1, "x", None, None)
        internal = logging.LogRecord("logshipper.handler.engine", logging.ERROR, __file__, 1, "x", None, None)

        assert not handler.is_handling(info)
        assert handler.is_handling(error)
        assert not handler.is_handling(internal)

    def test_flush_sends_batch(self, service, shipper, app_logger):
        """Test handler flush pushes buffered records."""
        handler = LogShippingHandler(shipper)
        app_logger.addHandler(handler)

        app_logger.warning("pending")
        assert service.count("put_log_events") == 0

        handler.flush()

        assert service.count("put_log_events") == 1

    def test_no_bubble_stops_downstream(self, service, shipper, app_logger):
        """Test consumed records are skipped by filtered handlers."""
        shipping = LogShippingHandler(shipper, level=logging.WARNING, bubble=False)
        downstream = ListHandler()
        downstream.addFilter(BubbleFilter())

        app_logger.addHandler(shipping)
        app_logger.addHandler(downstream)

        app_logger.info("below level")
        app_logger.error("consumed")
        shipping.close()

        assert [r.getMessage() for r in downstream.records] == ["below level"]

    def test_bubble_passes_downstream(self, service, shipper, app_logger):
        """Test bubbling handler leaves records for others."""
        shipping = LogShippingHandler(shipper, bubble=True)
        downstream = ListHandler()
        downstream.addFilter(BubbleFilter())

        app_logger.addHandler(shipping)
        app_logger.addHandler(downstream)

        app_logger.error("shared")
        shipping.close()

        assert [r.getMessage() for r in downstream.records] == ["shared"]
        assert len(service.events("group", "stream")) == 1

    def test_internal_records_ignored(self, service, shipper):
        """Test the library's own log records are never shipped."""
        handler = LogShippingHandler(shipper)

        record = logging.LogRecord("logshipper.handler.engine", logging.ERROR, __file__, 1, "x", None, None)
        handler.handle(record)
        handler.close()

        assert service.count("put_log_events") == 0
