"""Log service clients."""

from logshipper.client.base import (
    LogServiceClient,
    LogServiceError,
    LogStreamDescription,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    StaleSequenceTokenError,
)
from logshipper.client.memory import InMemoryLogService

__all__ = [
    "LogServiceClient",
    "LogServiceError",
    "LogStreamDescription",
    "ResourceAlreadyExistsError",
    "ResourceNotFoundError",
    "StaleSequenceTokenError",
    "InMemoryLogService",
]
