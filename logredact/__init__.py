"""
logredact - structured logging with attribute redaction

This package sets up application logging and masks sensitive attribute
values (credentials, tokens, personal data) before records reach a sink.

Architecture:
    - Logger: front-end producing immutable Records
    - Handler: the capability every stage of a chain implements
    - RedactHandler: decorator masking attrs whose keys match a deny-list
    - handlers/: sinks (JSON, text, CloudWatch) that format and write
    - setup_logs(): builds the chain from environment configuration

Example:
    from logredact import JSONHandler, Logger, RedactHandler

    log = Logger(RedactHandler(JSONHandler(sys.stdout), ["authentication"]))
    log.info("request", headers={"Authentication": "secret", "Accept": "*/*"})
    # {"...": ..., "headers": {"Authentication": "***", "Accept": "*/*"}}
"""

from .base_handler import Handler
from .bootstrap import close_logs, setup_logs
from .bridge import StructuredLogBridge
from .config import LogConfig
from .engine import REDACTED_MARKER, RedactHandler
from .exceptions import EmptyAppNameError, InvalidLogOutputConfig, LogSetupError, SinkError
from .handlers import CloudWatchHandler, JSONHandler, MultiHandler, TextHandler
from .logger import Logger, get_default, set_default
from .record import Attr, Level, Record, group
from .scrubber import MessageScrubber

__all__ = [
    "Attr",
    "CloudWatchHandler",
    "EmptyAppNameError",
    "Handler",
    "InvalidLogOutputConfig",
    "JSONHandler",
    "Level",
    "LogConfig",
    "LogSetupError",
    "Logger",
    "MessageScrubber",
    "MultiHandler",
    "REDACTED_MARKER",
    "Record",
    "RedactHandler",
    "SinkError",
    "StructuredLogBridge",
    "TextHandler",
    "close_logs",
    "get_default",
    "group",
    "set_default",
    "setup_logs",
]
