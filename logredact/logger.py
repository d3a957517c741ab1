"""
Logger - the front-end that turns log calls into Records.

A Logger is a thin, immutable wrapper around a Handler. Scoped loggers are
made with with_attrs() / with_group(); each returns a new Logger over a
derived handler, leaving the parent usable as before.

Example:
    log = Logger(RedactHandler(JSONHandler(sys.stdout), ["password"]))
    request_log = log.with_group("request").with_attrs(method="POST")
    request_log.info("login", "user", "alice", password="hunter2")
"""

import sys
from typing import Any, Optional

from .base_handler import Handler
from .handlers.text_handler import TextHandler
from .record import Level, Record, Source, attrs_from_args, now


def _caller_source(depth: int) -> Optional[Source]:
    try:
        frame = sys._getframe(depth + 1)
    except ValueError:
        return None
    code = frame.f_code
    return Source(file=code.co_filename, line=frame.f_lineno, function=code.co_name)


class Logger:
    """
    Structured logger over a Handler.

    Arguments after the message are Attr instances or alternating
    key, value pairs; keyword arguments are added after them. Errors raised
    by the handler chain propagate to the caller.
    """

    def __init__(self, handler: Handler):
        self._handler = handler

    @property
    def handler(self) -> Handler:
        return self._handler

    def with_attrs(self, *args: Any, **kwargs: Any) -> "Logger":
        attrs = attrs_from_args(args, kwargs)
        if not attrs:
            return self
        return Logger(self._handler.with_attrs(attrs))

    def with_group(self, name: str) -> "Logger":
        if not name:
            return self
        return Logger(self._handler.with_group(name))

    def enabled(self, level: Level) -> bool:
        return self._handler.enabled(level)

    def log(self, level: Level, message: str, *args: Any, **kwargs: Any) -> None:
        self._log(level, message, args, kwargs)

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._log(Level.DEBUG, message, args, kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._log(Level.INFO, message, args, kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._log(Level.WARN, message, args, kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._log(Level.ERROR, message, args, kwargs)

    def _log(self, level: Level, message: str, args: tuple, kwargs: dict[str, Any]) -> None:
        # Skip building attrs entirely when nobody wants this level
        if not self._handler.enabled(level):
            return
        record = Record(
            time=now(),
            level=level,
            message=message,
            source=_caller_source(2),
            attrs=attrs_from_args(args, kwargs),
        )
        self._handler.handle(record)

    def __repr__(self) -> str:
        return f"<Logger handler={self._handler!r}>"


# Process-wide logger installed by setup_logs()
_default_logger: Optional[Logger] = None


def get_default() -> Logger:
    """
    Get the process default Logger.

    Falls back to a text logger on stderr until setup_logs() (or
    set_default()) installs something else. Library code should prefer
    taking a Logger as a parameter.
    """
    global _default_logger
    if _default_logger is None:
        _default_logger = Logger(TextHandler(sys.stderr))
    return _default_logger


def set_default(logger: Optional[Logger]) -> None:
    global _default_logger
    _default_logger = logger
