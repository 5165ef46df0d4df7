"""
Tests for stale sequence token recovery and failed flushes.
"""

import pytest

from logshipper.client.base import (
    LogServiceError,
    LogStreamDescription,
    ResourceNotFoundError,
    StaleSequenceTokenError,
)
from logshipper.client.memory import InMemoryLogService
from logshipper.handler.engine import FlushError, LogShipper
from logshipper.handler.entry import LogEntry
from logshipper.handler.stream import StaticStreamResolver
from logshipper.handler.throttle import RateLimiter

GROUP = "group"
STREAM = "stream"


class CountingLimiter(RateLimiter):
    def __init__(self):
        super().__init__(requests_per_second=1_000_000)
        self.acquired = 0

    def acquire(self):
        self.acquired += 1


class ScriptedClient(InMemoryLogService):
    """Client whose put results are scripted: an exception to raise or a token to return."""

    def __init__(self, put_results, streams=None):
        super().__init__()
        self.put_results = list(put_results)
        self.streams = streams or []
        self.put_calls = []
        self.describe_calls = 0
        self.create_calls = 0

    def put_log_events(self, group, stream, events, sequence_token=None):
        self.put_calls.append({"events": list(events), "token": sequence_token})
        result = self.put_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def describe_log_streams(self, group, prefix):
        self.describe_calls += 1
        return self.streams

    def create_log_stream(self, group, stream):
        self.create_calls += 1


def make_shipper(client, token="stale", batch_size=10000):
    limiter = CountingLimiter()
    shipper = LogShipper(
        client,
        GROUP,
        StaticStreamResolver(STREAM, token),
        rate_limiter=limiter,
        batch_size=batch_size,
    )
    return shipper, limiter


class TestStaleTokenRecovery:
    """Test one refresh and one retry on a stale token."""

    def test_retry_succeeds_with_refreshed_token(self):
        """Test stale token triggers exactly one describe and one retried put."""
        client = ScriptedClient(
            put_results=[StaleSequenceTokenError("stale"), "next-token"],
            streams=[LogStreamDescription(name=STREAM, upload_sequence_token="fresh")],
        )
        shipper, limiter = make_shipper(client)

        shipper.submit(LogEntry(message="x", timestamp=1))
        shipper.close()

        assert client.describe_calls == 1
        assert len(client.put_calls) == 2
        assert client.put_calls[0]["token"] == "stale"
        assert client.put_calls[1]["token"] == "fresh"
        assert shipper.token == "next-token"
        assert limiter.acquired == 2

    def test_retry_sends_same_sorted_batch(self):
        """Test retried request carries the same ordered events."""
        client = ScriptedClient(
            put_results=[StaleSequenceTokenError("stale"), "next-token"],
            streams=[LogStreamDescription(name=STREAM, upload_sequence_token="fresh")],
        )
        shipper, _ = make_shipper(client)

        shipper.submit(LogEntry(message="b", timestamp=2))
        shipper.submit(LogEntry(message="a", timestamp=1))
        shipper.close()

        assert client.put_calls[0]["events"] == client.put_calls[1]["events"]
        assert [e["message"] for e in client.put_calls[1]["events"]] == ["a", "b"]

    def test_second_failure_raises_and_clears_buffer(self):
        """Test retry failure propagates and the next submit starts empty."""
        client = ScriptedClient(
            put_results=[
                StaleSequenceTokenError("stale"),
                StaleSequenceTokenError("still stale"),
                "after",
            ],
            streams=[LogStreamDescription(name=STREAM, upload_sequence_token="fresh")],
        )
        shipper, _ = make_shipper(client, batch_size=2)

        shipper.submit(LogEntry(message="lost1", timestamp=1))

        with pytest.raises(FlushError) as exc_info:
            shipper.submit(LogEntry(message="lost2", timestamp=2))

        assert isinstance(exc_info.value.__cause__, StaleSequenceTokenError)
        assert [e.message for e in exc_info.value.entries] == ["lost1", "lost2"]
        assert client.describe_calls == 1
        assert len(client.put_calls) == 2
        assert shipper.pending_count() == 0

        shipper.submit(LogEntry(message="kept", timestamp=3))
        shipper.close()

        assert [e["message"] for e in client.put_calls[2]["events"]] == ["kept"]

        metrics = shipper.metrics()
        assert metrics["failed_flushes"] == 1
        assert metrics["dropped_entries"] == 2

    def test_refresh_without_match_retries_with_old_token(self):
        """Test failed lookup leaves the token as it was for the retry."""
        client = ScriptedClient(
            put_results=[StaleSequenceTokenError("stale"), "next-token"],
            streams=[LogStreamDescription(name="stream-2", upload_sequence_token="other")],
        )
        shipper, _ = make_shipper(client)

        shipper.submit(LogEntry(message="x", timestamp=1))
        shipper.close()

        assert client.put_calls[1]["token"] == "stale"

    def test_against_in_memory_service(self):
        """Test recovery when another writer advanced the stream."""
        service = InMemoryLogService(groups=[GROUP])
        service.create_log_stream(GROUP, STREAM)
        token = service.advance(GROUP, STREAM, [{"timestamp": 0, "message": "ours"}])

        shipper = LogShipper(
            service,
            GROUP,
            StaticStreamResolver(STREAM, token),
            rate_limiter=CountingLimiter(),
        )

        service.advance(GROUP, STREAM, [{"timestamp": 1, "message": "theirs"}])

        shipper.write("mine", when=2.0)
        shipper.close()

        assert [e["message"] for e in service.events(GROUP, STREAM)] == ["ours", "theirs", "mine"]
        assert service.count("describe_log_streams") == 1


class TestOtherFailures:
    """Test failures that are not token staleness."""

    def test_non_stale_error_not_retried(self):
        """Test other service errors propagate without a refresh."""
        client = ScriptedClient(put_results=[LogServiceError("AccessDenied")])
        shipper, _ = make_shipper(client)

        shipper.submit(LogEntry(message="x", timestamp=1))

        with pytest.raises(FlushError, match="AccessDenied"):
            shipper.close()

        assert client.describe_calls == 0
        assert len(client.put_calls) == 1
        assert shipper.pending_count() == 0

    def test_stream_creation_failure(self):
        """Test failing stream creation fails the flush and clears the buffer."""
        service = InMemoryLogService()  # group missing
        shipper = LogShipper(
            service,
            GROUP,
            StaticStreamResolver(STREAM),
            rate_limiter=CountingLimiter(),
        )

        shipper.submit(LogEntry(message="x", timestamp=1))

        with pytest.raises(FlushError) as exc_info:
            shipper.close()

        assert isinstance(exc_info.value.__cause__, ResourceNotFoundError)
        assert [e.message for e in exc_info.value.entries] == ["x"]
        assert shipper.pending_count() == 0
        assert service.count("put_log_events") == 0
