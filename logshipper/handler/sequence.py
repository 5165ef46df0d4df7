"""
Sequence token tracking for ordered appends.

The log service only accepts an append that carries the token issued by
the previous append to the same stream.
"""

from typing import Optional

from logshipper.client.base import LogServiceClient
from logshipper.utils.logging import get_logger

logger = get_logger(__name__)


class Sequencer:
    """
    Holds the append token for one destination stream.

    The token changes only through ``adopt`` (after resolution or a
    successful append) and ``refresh`` (after a rejected append).
    """

    def __init__(
        self,
        client: LogServiceClient,
        group: str,
        stream: str,
        token: Optional[str] = None,
    ):
        """
        Initialize sequencer.

        Args:
            client: Service used to look up the current token
            group: Log group name
            stream: Log stream name
            token: Initial token (None until known)
        """
        self._client = client
        self.group = group
        self.stream = stream
        self._token = token

    @property
    def token(self) -> Optional[str]:
        """Current token, None when not yet known."""
        return self._token

    def adopt(self, token: Optional[str]) -> None:
        """Replace the current token."""
        self._token = token

    def refresh(self) -> bool:
        """
        Look up the stream's current token and adopt it.

        Only a stream whose name matches exactly is considered. If none is
        found, or it reports no token, the current token is kept.

        Returns:
            True if a token was adopted
        """
        streams = self._client.describe_log_streams(self.group, self.stream)

        for description in streams:
            if description.name == self.stream and description.upload_sequence_token:
                logger.info(
                    "Refreshed sequence token",
                    group=self.group,
                    stream=self.stream,
                )
                self._token = description.upload_sequence_token
                return True

        logger.warning(
            "No sequence token found for stream",
            group=self.group,
            stream=self.stream,
            candidates=len(streams),
        )
        return False
