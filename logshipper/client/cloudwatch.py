"""
CloudWatch Logs transport.

Translates the shipper's client interface to boto3 calls and maps
service error codes onto the shipper's exceptions. Signing, retries and
credentials are left to boto3.
"""

from typing import Any, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

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

STALE_TOKEN_CODES = ("InvalidSequenceTokenException", "DataAlreadyAcceptedException")


def _translate(error: ClientError) -> LogServiceError:
    """Map a botocore ClientError to a shipper exception."""
    code = error.response.get("Error", {}).get("Code", "")
    message = error.response.get("Error", {}).get("Message", str(error))

    if code in STALE_TOKEN_CODES:
        return StaleSequenceTokenError(
            message,
            expected_token=error.response.get("expectedSequenceToken"),
        )
    if code == "ResourceAlreadyExistsException":
        return ResourceAlreadyExistsError(message)
    if code == "ResourceNotFoundException":
        return ResourceNotFoundError(message)
    return LogServiceError(f"{code}: {message}" if code else message)


class CloudWatchLogsClient(LogServiceClient):
    """
    LogServiceClient backed by boto3's ``logs`` client.

    Example:
        client = CloudWatchLogsClient(region_name="eu-west-1")
        shipper = LogShipper(client, "my-group", StaticStreamResolver("app"))
    """

    def __init__(self, client: Optional[Any] = None, **client_kwargs):
        """
        Initialize transport.

        Args:
            client: Pre-built boto3 logs client (built from client_kwargs if None)
            **client_kwargs: Passed to ``boto3.client("logs", ...)``
        """
        self._client = client if client is not None else boto3.client("logs", **client_kwargs)

    def put_log_events(
        self,
        group: str,
        stream: str,
        events: List[dict],
        sequence_token: Optional[str] = None,
    ) -> Optional[str]:
        request = {
            "logGroupName": group,
            "logStreamName": stream,
            "logEvents": events,
        }

        if sequence_token:
            request["sequenceToken"] = sequence_token

        try:
            response = self._client.put_log_events(**request)
        except ClientError as e:
            raise _translate(e) from e
        except BotoCoreError as e:
            raise LogServiceError(str(e)) from e

        rejected = response.get("rejectedLogEventsInfo")
        if rejected:
            logger.warning(
                "Service rejected some log events",
                group=group,
                stream=stream,
                **rejected,
            )

        return response.get("nextSequenceToken")

    def describe_log_streams(self, group: str, prefix: str) -> List[LogStreamDescription]:
        request = {
            "logGroupName": group,
            "logStreamNamePrefix": prefix,
        }

        streams = []

        try:
            while True:
                response = self._client.describe_log_streams(**request)

                for stream in response.get("logStreams", []):
                    streams.append(
                        LogStreamDescription(
                            name=stream["logStreamName"],
                            upload_sequence_token=stream.get("uploadSequenceToken"),
                        )
                    )

                next_token = response.get("nextToken")
                if not next_token:
                    break
                request["nextToken"] = next_token
        except ClientError as e:
            raise _translate(e) from e
        except BotoCoreError as e:
            raise LogServiceError(str(e)) from e

        return streams

    def create_log_stream(self, group: str, stream: str) -> None:
        try:
            self._client.create_log_stream(logGroupName=group, logStreamName=stream)
        except ClientError as e:
            raise _translate(e) from e
        except BotoCoreError as e:
            raise LogServiceError(str(e)) from e

        logger.info("Created log stream", group=group, stream=stream)
