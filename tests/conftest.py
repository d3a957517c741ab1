"""
Pytest configuration and shared fixtures for logredact tests.

Uses moto to mock CloudWatch Logs for the remote sink, so no real AWS
credentials are needed.
"""

import io
import json
import logging
import os
import sys

import pytest

# Add parent directory to path for package imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from logredact import JSONHandler, Level, Logger, RedactHandler, close_logs  # noqa: E402
from logredact.base_handler import Handler  # noqa: E402


class ListHandler(Handler):
    """Sink that keeps every record it receives, for inspection."""

    def __init__(self, level=Level.DEBUG, records=None, bound=(), groups=()):
        self.level = level
        self.records = records if records is not None else []
        self.bound = bound
        self.groups = groups

    def enabled(self, level):
        return level >= self.level

    def handle(self, record):
        self.records.append(record)

    def with_attrs(self, attrs):
        return ListHandler(self.level, self.records, self.bound + tuple(attrs), self.groups)

    def with_group(self, name):
        return ListHandler(self.level, self.records, self.bound, self.groups + (name,))


@pytest.fixture(autouse=True)
def set_aws_credentials():
    """
    Set mock AWS credentials for moto.
    This runs automatically before each test.
    """
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_REGION"] = "us-east-1"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    yield


@pytest.fixture(autouse=True)
def reset_logging_state():
    """Undo setup_logs() side effects: the default Logger, root bridges and log file."""
    root = logging.getLogger()
    root_level = root.level
    yield
    close_logs()
    root.setLevel(root_level)


@pytest.fixture
def list_handler():
    return ListHandler()


@pytest.fixture
def make_logger():
    """
    Build a Logger over RedactHandler -> JSONHandler writing to a buffer.

    Returns a factory taking the redaction keys and returning
    (logger, read_entries) where read_entries() parses every line written.
    """
    def factory(keys):
        buffer = io.StringIO()
        handler = RedactHandler(JSONHandler(buffer, level=Level.DEBUG), keys)

        def read_entries():
            return [json.loads(line) for line in buffer.getvalue().splitlines() if line]

        return Logger(handler), read_entries

    return factory


@pytest.fixture
def cloudwatch_logs_client():
    """Provide a mocked CloudWatch Logs client."""
    import boto3
    from moto import mock_aws

    with mock_aws():
        client = boto3.client("logs", region_name="us-east-1")
        yield client
