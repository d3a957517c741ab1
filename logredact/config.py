"""
Logging configuration read from the environment.

Values are taken from environment variables, after loading a .env file
from the working directory if one exists (existing variables win).

Environment Variables:
    LOG_FORMAT: "json" (default) or "text"
    LOG_LEVEL: debug, info (default), warn, error
    LOG_OUTPUT_TO_FILE: path of a file to append to (default: none)
    LOG_OUTPUT_TO_STDOUT: true/false (default: false)
    LOG_REDACTED_KEYS: comma-separated tokens to mask in attribute keys
        Example: "authentication,password,token"
    LOG_CLOUDWATCH_GROUP / LOG_CLOUDWATCH_STREAM: ship logs to CloudWatch
    AWS_REGION: region for the CloudWatch client (default: us-east-1)
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional

from dotenv import find_dotenv, load_dotenv

LOG_FORMAT_JSON = "json"
LOG_FORMAT_TEXT = "text"

LOG_LEVEL_DEBUG = "debug"
LOG_LEVEL_INFO = "info"
LOG_LEVEL_WARN = "warn"
LOG_LEVEL_ERROR = "error"

ENV_LOG_FORMAT = "LOG_FORMAT"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_LOG_OUTPUT_FILE = "LOG_OUTPUT_TO_FILE"
ENV_LOG_OUTPUT_STDOUT = "LOG_OUTPUT_TO_STDOUT"
ENV_LOG_REDACTED_KEYS = "LOG_REDACTED_KEYS"
ENV_CLOUDWATCH_GROUP = "LOG_CLOUDWATCH_GROUP"
ENV_CLOUDWATCH_STREAM = "LOG_CLOUDWATCH_STREAM"
ENV_AWS_REGION = "AWS_REGION"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


def parse_key_list(value: Optional[str]) -> list[str]:
    """Split a comma-separated list, lower-casing and dropping blanks."""
    if not value:
        return []
    return [part.strip().lower() for part in value.split(",") if part.strip()]


@dataclass
class LogConfig:
    """Where and how to log, and which attribute keys to mask."""
    format: str = LOG_FORMAT_JSON
    level: str = LOG_LEVEL_INFO
    output_file: str = ""
    to_stdout: bool = False
    redacted_keys: list[str] = field(default_factory=list)
    cloudwatch_group: str = ""
    cloudwatch_stream: str = ""
    aws_region: str = "us-east-1"

    def __post_init__(self):
        self.format = (self.format or LOG_FORMAT_JSON).strip().lower()
        self.redacted_keys = [k.strip().lower() for k in self.redacted_keys if k and k.strip()]

    @property
    def has_output(self) -> bool:
        return self.to_stdout or bool(self.output_file) or bool(self.cloudwatch_group)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "LogConfig":
        """
        Build a LogConfig from environment variables.

        Args:
            env: Mapping to read instead of os.environ. When omitted, a .env
                 file is loaded into os.environ first.
        """
        if env is None:
            load_dotenv(find_dotenv(usecwd=True))
            env = os.environ
        return cls(
            format=env.get(ENV_LOG_FORMAT, LOG_FORMAT_JSON),
            level=env.get(ENV_LOG_LEVEL, LOG_LEVEL_INFO),
            output_file=env.get(ENV_LOG_OUTPUT_FILE, ""),
            to_stdout=parse_bool(env.get(ENV_LOG_OUTPUT_STDOUT)),
            redacted_keys=parse_key_list(env.get(ENV_LOG_REDACTED_KEYS)),
            cloudwatch_group=env.get(ENV_CLOUDWATCH_GROUP, ""),
            cloudwatch_stream=env.get(ENV_CLOUDWATCH_STREAM, ""),
            aws_region=env.get(ENV_AWS_REGION, "us-east-1"),
        )
