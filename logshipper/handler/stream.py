"""
Stream resolution for the shipper.

A resolver decides which stream the shipper writes to and what token to
start from, and hears about every new token after a successful append.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional, Tuple, Union

import yaml

from logshipper.utils.logging import get_logger

logger = get_logger(__name__)


class StreamResolver(ABC):
    """Supplies the destination stream and tracks its token."""

    @abstractmethod
    def resolve(self) -> Tuple[str, Optional[str]]:
        """
        Get the stream to write to.

        Returns:
            Tuple of (stream_name, initial_token)
        """

    @abstractmethod
    def notify(self, token: Optional[str], stream: str) -> None:
        """
        Called after every successful append.

        Args:
            token: Token for the next append
            stream: Stream that was appended to
        """


class StaticStreamResolver(StreamResolver):
    """Fixed stream name, remembers the last token it was told about."""

    def __init__(self, stream: str, token: Optional[str] = None):
        self.stream = stream
        self.token = token

    def resolve(self) -> Tuple[str, Optional[str]]:
        return self.stream, self.token

    def notify(self, token: Optional[str], stream: str) -> None:
        self.token = token


class CallableStreamResolver(StreamResolver):
    """
    Adapts a single provider callable.

    The callable is invoked with no arguments to resolve and must return
    ``(stream, token)``; it is invoked with ``(token, stream)`` to notify.
    """

    def __init__(self, provider: Callable[..., Any]):
        self._provider = provider

    def resolve(self) -> Tuple[str, Optional[str]]:
        stream, token = self._provider()
        return stream, token

    def notify(self, token: Optional[str], stream: str) -> None:
        self._provider(token, stream)


class FileStreamResolver(StreamResolver):
    """
    Persists the last token in a YAML file.

    A restarted process resumes from the stored token instead of
    starting without one.

    File layout:
        stream: app-1
        token: "4955930780..."
    """

    def __init__(self, path: Union[str, Path], stream: str):
        """
        Initialize resolver.

        Args:
            path: State file location
            stream: Stream name to use
        """
        self.path = Path(path)
        self.stream = stream

    def resolve(self) -> Tuple[str, Optional[str]]:
        if not self.path.exists():
            return self.stream, None

        with open(self.path, "r") as f:
            state = yaml.safe_load(f) or {}

        # a token for another stream is useless here
        if state.get("stream") != self.stream:
            logger.info(
                "Ignoring stored token for different stream",
                stored_stream=state.get("stream"),
                stream=self.stream,
            )
            return self.stream, None

        return self.stream, state.get("token")

    def notify(self, token: Optional[str], stream: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            yaml.safe_dump({"stream": stream, "token": token}, f)

        tmp_path.replace(self.path)
