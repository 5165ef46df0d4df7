"""
Log service client interface.

The shipper talks to the remote service only through this interface so
transports (boto3, in-memory, test doubles) can be swapped freely.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


class LogServiceError(Exception):
    """Request to the log service failed."""
    pass


class StaleSequenceTokenError(LogServiceError):
    """
    Append rejected because the sequence token is not the expected one.

    Usually another writer advanced the stream since our token was issued.
    """

    def __init__(self, message: str, expected_token: Optional[str] = None):
        super().__init__(message)
        self.expected_token = expected_token


class ResourceAlreadyExistsError(LogServiceError):
    """Group or stream already exists."""
    pass


class ResourceNotFoundError(LogServiceError):
    """Group or stream does not exist."""
    pass


@dataclass
class LogStreamDescription:
    """
    A stream as reported by describe_log_streams.

    Attributes:
        name: Stream name
        upload_sequence_token: Token for the next append (None if unknown)
    """
    name: str
    upload_sequence_token: Optional[str] = None


class LogServiceClient(ABC):
    """Operations the shipper needs from the remote log service."""

    @abstractmethod
    def put_log_events(
        self,
        group: str,
        stream: str,
        events: List[dict],
        sequence_token: Optional[str] = None,
    ) -> Optional[str]:
        """
        Append events to a stream.

        Args:
            group: Log group name
            stream: Log stream name
            events: Events as ``{"timestamp": int, "message": str}`` in
                chronological order
            sequence_token: Expected append position, omitted when None

        Returns:
            Next sequence token

        Raises:
            StaleSequenceTokenError: Token did not match the stream
            LogServiceError: Any other failure
        """

    @abstractmethod
    def describe_log_streams(self, group: str, prefix: str) -> List[LogStreamDescription]:
        """
        List streams in a group whose names start with prefix.

        Args:
            group: Log group name
            prefix: Stream name prefix

        Returns:
            Matching streams
        """

    @abstractmethod
    def create_log_stream(self, group: str, stream: str) -> None:
        """
        Create a stream in an existing group.

        Raises:
            ResourceAlreadyExistsError: Stream already exists
            ResourceNotFoundError: Group does not exist
        """
