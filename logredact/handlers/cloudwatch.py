"""
CloudWatch sink - ships records to an AWS CloudWatch Logs stream.

Each record is rendered with the same layout as JSONHandler and sent as
one log event. Credentials come from the environment, as with any boto3
client.
"""

import logging
import os
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from ..base_handler import FormattingHandler
from ..exceptions import SinkError
from ..record import Level, Record
from .json_handler import JSONHandler

logger = logging.getLogger(__name__)


def get_cloudwatch_client(region_name: Optional[str] = None):
    """Create and return a CloudWatch Logs client using environment credentials."""
    return boto3.client(
        "logs",
        aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        region_name=region_name or os.getenv("AWS_REGION", "us-east-1")
    )


class CloudWatchHandler(FormattingHandler):
    """
    Send records to CloudWatch Logs.

    Example:
        handler = CloudWatchHandler("/app/my-service", "web-1")
        handler.ensure_stream()
        Logger(RedactHandler(handler, ["token"])).info("ready")

    Errors:
        Any ClientError or NoCredentialsError from boto3 is raised as a
        SinkError; the caller decides whether a failed shipment matters.
    """

    def __init__(
        self,
        log_group: str,
        log_stream: str,
        client: Any = None,
        level: Level = Level.INFO,
        add_source: bool = False,
    ):
        super().__init__(level=level, add_source=add_source)
        self._log_group = log_group
        self._log_stream = log_stream
        self._client = client if client is not None else get_cloudwatch_client()

    @property
    def log_group(self) -> str:
        return self._log_group

    @property
    def log_stream(self) -> str:
        return self._log_stream

    def ensure_stream(self) -> None:
        """Create the log group and stream unless they already exist."""
        self._create(
            self._client.create_log_group,
            logGroupName=self._log_group,
        )
        self._create(
            self._client.create_log_stream,
            logGroupName=self._log_group,
            logStreamName=self._log_stream,
        )

    def _create(self, call, **kwargs) -> None:
        try:
            call(**kwargs)
            logger.info(f"Created CloudWatch resource: {kwargs}")
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ResourceAlreadyExistsException":
                return
            raise SinkError(f"Failed to create CloudWatch resource {kwargs}: {e}") from e
        except NoCredentialsError as e:
            raise SinkError("AWS credentials not found") from e

    def emit(self, record: Record, payload: dict[str, Any]) -> None:
        event = {
            "timestamp": int(record.time.timestamp() * 1000),
            "message": JSONHandler.render(payload),
        }
        try:
            self._client.put_log_events(
                logGroupName=self._log_group,
                logStreamName=self._log_stream,
                logEvents=[event],
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            raise SinkError(f"CloudWatch rejected log event ({error_code}): {e}") from e
        except NoCredentialsError as e:
            raise SinkError("AWS credentials not found") from e
