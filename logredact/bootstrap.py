"""
Bootstrap - wire a LogConfig into a ready-to-use default Logger.

setup_logs() is the one call an application makes at startup:

    from logredact import setup_logs

    log = setup_logs("payment-service")
    log.info("started", port=8080)

The resulting chain is:

    Logger -> RedactHandler (if keys configured) -> sink(s)

where the sink is a JSON or text stream handler over stdout and/or a log
file, plus CloudWatch when a log group is configured.
"""

import logging
import os
import socket
import sys
from typing import Any, Optional, TextIO

from .base_handler import Handler
from .bridge import StructuredLogBridge
from .config import LOG_FORMAT_JSON, LogConfig
from .engine import RedactHandler
from .exceptions import EmptyAppNameError, InvalidLogOutputConfig
from .handlers import CloudWatchHandler, JSONHandler, MultiHandler, TextHandler
from .handlers.cloudwatch import get_cloudwatch_client
from .logger import Logger, set_default
from .record import Attr, parse_level

logger = logging.getLogger(__name__)

# Stream opened by the last setup_logs() call, closed when it is replaced
_owned_writer: Optional[TextIO] = None


class TeeWriter:
    """Text stream that writes to several streams at once."""

    def __init__(self, *streams: TextIO):
        self._streams = streams

    def write(self, text: str) -> int:
        for stream in self._streams:
            stream.write(text)
        return len(text)

    def flush(self) -> None:
        for stream in self._streams:
            stream.flush()

    def close(self) -> None:
        for stream in self._streams:
            _close_writer(stream)


def _close_writer(writer: Optional[TextIO]) -> None:
    if writer is None or writer in (sys.stdout, sys.stderr):
        return
    writer.close()


def open_writer(output_file: str, to_stdout: bool) -> Optional[TextIO]:
    """
    Open the stream records are written to.

    Args:
        output_file: File to append to, relative paths resolved against the
                     working directory. Empty for none.
        to_stdout: Also (or only) write to stdout.

    Returns:
        The stream, or None when neither output is requested.

    Raises:
        InvalidLogOutputConfig: If the file cannot be opened.
    """
    stdout = sys.stdout if to_stdout else None
    if not output_file:
        return stdout
    path = os.path.abspath(output_file)
    try:
        out = open(path, "a", encoding="utf-8")
    except OSError as e:
        raise InvalidLogOutputConfig(f"Failed to open output file {path}: {e}") from e
    if stdout is None:
        return out
    return TeeWriter(out, stdout)


def build_handler(
    app_name: str,
    config: LogConfig,
    cloudwatch_client: Any = None,
) -> Handler:
    """
    Build the handler chain described by config (without bound attrs).

    The caller owns any file the chain writes to.
    """
    return _build_chain(app_name, config, cloudwatch_client)[0]


def _build_chain(
    app_name: str,
    config: LogConfig,
    cloudwatch_client: Any,
) -> tuple[Handler, Optional[TextIO]]:
    if not config.has_output:
        raise InvalidLogOutputConfig(
            "Invalid log output configuration: should enable stdout, define an "
            f"output file or a CloudWatch log group (output file: {config.output_file!r}, "
            f"stdout: {config.to_stdout})"
        )
    level = parse_level(config.level)
    sinks: list[Handler] = []

    writer = open_writer(config.output_file, config.to_stdout)
    if writer is not None:
        if config.format == LOG_FORMAT_JSON:
            sinks.append(JSONHandler(writer, level=level, add_source=True))
        else:
            sinks.append(TextHandler(writer, level=level, add_source=True))

    if config.cloudwatch_group:
        try:
            cloudwatch = CloudWatchHandler(
                config.cloudwatch_group,
                config.cloudwatch_stream or app_name,
                client=cloudwatch_client or get_cloudwatch_client(config.aws_region),
                level=level,
                add_source=True,
            )
            cloudwatch.ensure_stream()
        except Exception:
            _close_writer(writer)
            raise
        sinks.append(cloudwatch)

    handler = sinks[0] if len(sinks) == 1 else MultiHandler(*sinks)
    if not config.redacted_keys:
        logger.warning("No redaction keys configured: log attributes are written unredacted")
        return handler, writer
    return RedactHandler(handler, config.redacted_keys), writer


def setup_logs(
    app_name: str,
    config: Optional[LogConfig] = None,
    bridge_stdlib: bool = False,
    cloudwatch_client: Any = None,
) -> Logger:
    """
    Configure and install the default Logger.

    Args:
        app_name: Service name bound to every record as "service.name".
        config: Settings to use. Read from the environment when omitted.
        bridge_stdlib: Also route the root stdlib logger through the chain.
        cloudwatch_client: boto3 "logs" client to use instead of a new one.

    Returns:
        The installed Logger, with "service.name" and "host" bound.

    Raises:
        EmptyAppNameError: If app_name is empty.
        InvalidLogOutputConfig: If no output is configured or a file can't
                                be opened.
        SinkError: If the CloudWatch log stream can't be created.
    """
    global _owned_writer

    if not app_name:
        raise EmptyAppNameError("appName is empty")
    if config is None:
        config = LogConfig.from_env()

    handler, writer = _build_chain(app_name, config, cloudwatch_client)
    log = Logger(handler).with_attrs(
        Attr("service.name", app_name),
        Attr("host", socket.gethostname()),
    )
    set_default(log)
    previous, _owned_writer = _owned_writer, writer

    # Bridges from an earlier call still point at the previous chain
    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, StructuredLogBridge)]:
        root.removeHandler(existing)
    if bridge_stdlib:
        root.addHandler(StructuredLogBridge(log.handler))
        root.setLevel(parse_level(config.level))

    if previous is not writer:
        _close_writer(previous)

    logger.info(f"Logging configured for {app_name} (format: {config.format}, level: {config.level})")
    return log


def close_logs() -> None:
    """Uninstall the Logger set up by setup_logs() and close its log file."""
    global _owned_writer

    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, StructuredLogBridge)]:
        root.removeHandler(existing)
    set_default(None)
    writer, _owned_writer = _owned_writer, None
    _close_writer(writer)
