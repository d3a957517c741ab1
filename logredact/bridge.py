"""
Stdlib bridge - routes records from the logging module into a Handler chain.

Libraries log through logging.getLogger(__name__). Attaching a
StructuredLogBridge to the root logger sends those records through the
same chain (and therefore the same redaction) as records from Logger.

Values passed with extra= become attributes:

    logging.getLogger("app").info("login", extra={"password": "hunter2"})
"""

import logging
import threading
from datetime import datetime, timezone

from .base_handler import Handler, sink_emitting
from .record import Attr, Record, Source, level_for

# Attributes every LogRecord has; anything else came from extra=
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

# Records from these loggers would loop back into the chain that produced
# them: this package itself and the AWS client stack used by the CloudWatch sink
_EXCLUDED_LOGGERS = ("logredact", "botocore", "boto3", "urllib3", "s3transfer")


def _is_excluded(name: str) -> bool:
    return any(name == prefix or name.startswith(prefix + ".") for prefix in _EXCLUDED_LOGGERS)


class StructuredLogBridge(logging.Handler):
    """
    logging.Handler that converts LogRecords and hands them to a Handler.

    Records logged while this thread is already inside the target chain or
    a sink write (e.g. by a sink's own client library) are dropped.
    """

    def __init__(self, handler: Handler, level: int = logging.NOTSET):
        super().__init__(level)
        self._target = handler
        self._local = threading.local()

    def emit(self, record: logging.LogRecord) -> None:
        if _is_excluded(record.name) or sink_emitting() or getattr(self._local, "emitting", False):
            return
        self._local.emitting = True
        try:
            converted = self.convert(record)
            if self._target.enabled(converted.level):
                self._target.handle(converted)
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)
        finally:
            self._local.emitting = False

    def convert(self, record: logging.LogRecord) -> Record:
        attrs = [
            Attr(key, value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        ]
        attrs.insert(0, Attr("logger", record.name))
        if record.exc_info:
            attrs.append(Attr("error", logging.Formatter().formatException(record.exc_info)))
        return Record(
            time=datetime.fromtimestamp(record.created, tz=timezone.utc),
            level=level_for(record.levelno),
            message=record.getMessage(),
            source=Source(file=record.pathname, line=record.lineno, function=record.funcName),
            attrs=tuple(attrs),
        )
