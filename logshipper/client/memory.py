"""
In-memory log service.

Behaves like the remote service for ordered appends: every stream has an
upload sequence token and appends carrying the wrong token are rejected.
Useful for tests, examples and dry runs.
"""

import itertools
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from logshipper.client.base import (
    LogServiceClient,
    LogServiceError,
    LogStreamDescription,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    StaleSequenceTokenError,
)
from logshipper.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class StoredStream:
    """
    Stream state held by the in-memory service.

    Attributes:
        name: Stream name
        upload_sequence_token: Token the next append must carry
        events: Events accepted so far
    """
    name: str
    upload_sequence_token: Optional[str] = None
    events: List[dict] = field(default_factory=list)


class InMemoryLogService(LogServiceClient):
    """
    Log service kept in process memory.

    Groups must be created up front with ``create_log_group``. The first
    append to a fresh stream must omit the token, every later one must
    carry the token returned by the previous append.
    """

    def __init__(self, groups: Optional[List[str]] = None):
        """
        Initialize service.

        Args:
            groups: Group names to create immediately
        """
        self._groups: Dict[str, Dict[str, StoredStream]] = {}
        self._token_counter = itertools.count(1)

        # Request log: (operation, group, stream)
        self.requests: List[Tuple[str, str, str]] = []

        for group in groups or []:
            self.create_log_group(group)

    def create_log_group(self, group: str) -> None:
        """Create a group."""
        if group in self._groups:
            raise ResourceAlreadyExistsError(f"Log group {group} already exists")
        self._groups[group] = {}

    def _get_group(self, group: str) -> Dict[str, StoredStream]:
        if group not in self._groups:
            raise ResourceNotFoundError(f"Log group {group} does not exist")
        return self._groups[group]

    def _next_token(self) -> str:
        return f"{next(self._token_counter):056d}"

    def put_log_events(
        self,
        group: str,
        stream: str,
        events: List[dict],
        sequence_token: Optional[str] = None,
    ) -> Optional[str]:
        self.requests.append(("put_log_events", group, stream))

        streams = self._get_group(group)
        if stream not in streams:
            raise ResourceNotFoundError(f"Log stream {stream} does not exist")

        target = streams[stream]

        if sequence_token != target.upload_sequence_token:
            raise StaleSequenceTokenError(
                f"The given sequenceToken is invalid. The next expected "
                f"sequenceToken is: {target.upload_sequence_token}",
                expected_token=target.upload_sequence_token,
            )

        timestamps = [event["timestamp"] for event in events]
        if timestamps != sorted(timestamps):
            raise LogServiceError("Log events in a single request must be in chronological order")

        target.events.extend(events)
        target.upload_sequence_token = self._next_token()

        return target.upload_sequence_token

    def describe_log_streams(self, group: str, prefix: str) -> List[LogStreamDescription]:
        self.requests.append(("describe_log_streams", group, prefix))

        return [
            LogStreamDescription(name=s.name, upload_sequence_token=s.upload_sequence_token)
            for name, s in sorted(self._get_group(group).items())
            if name.startswith(prefix)
        ]

    def create_log_stream(self, group: str, stream: str) -> None:
        self.requests.append(("create_log_stream", group, stream))

        streams = self._get_group(group)
        if stream in streams:
            raise ResourceAlreadyExistsError(f"Log stream {stream} already exists")

        streams[stream] = StoredStream(name=stream)

        logger.debug("Created stream", group=group, stream=stream)

    def advance(self, group: str, stream: str, events: List[dict]) -> str:
        """
        Append as a foreign writer would, making any held token stale.

        Returns:
            The stream's new token
        """
        target = self._get_group(group)[stream]
        target.events.extend(events)
        target.upload_sequence_token = self._next_token()
        return target.upload_sequence_token

    def events(self, group: str, stream: str) -> List[dict]:
        """Get all events accepted for a stream."""
        return list(self._get_group(group)[stream].events)

    def count(self, operation: str) -> int:
        """Count requests of one operation type."""
        return sum(1 for op, _, _ in self.requests if op == operation)
