"""
Text sink: writes records as key=value lines.

Groups are flattened into dotted keys (request.headers.accept=...), while
mapping and dataclass values logged by the caller are rendered as compact
JSON so their structure survives on one line.
"""

import json
from datetime import date, datetime
from typing import Any, TextIO

from ..base_handler import FormattingHandler, GroupDict, to_jsonable
from ..record import Level, Record, Source


def _needs_quoting(text: str) -> bool:
    if not text:
        return True
    return any(c.isspace() or c in '"=\\' or not c.isprintable() for c in text)


def format_value(value: Any) -> str:
    if isinstance(value, Source):
        text = f"{value.file}:{value.line}"
    elif isinstance(value, (datetime, date)):
        text = value.isoformat()
    elif isinstance(value, (str, int, float, bool)) or value is None:
        text = str(value)
    else:
        converted = to_jsonable(value)
        text = converted if isinstance(converted, str) else json.dumps(converted, separators=(",", ":"))
    return json.dumps(text, ensure_ascii=False) if _needs_quoting(text) else text


def _flatten(payload: dict[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    pairs = []
    for key, value in payload.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, GroupDict):
            pairs.extend(_flatten(value, prefix=f"{full_key}."))
        else:
            pairs.append((full_key, value))
    return pairs


class TextHandler(FormattingHandler):
    """Write records as logfmt-style lines."""

    def __init__(self, stream: TextIO, level: Level = Level.INFO, add_source: bool = False):
        super().__init__(level=level, add_source=add_source)
        self._stream = stream

    def format(self, record: Record) -> str:
        return self.render(self.build_payload(record))

    @staticmethod
    def render(payload: dict[str, Any]) -> str:
        return " ".join(f"{key}={format_value(value)}" for key, value in _flatten(payload))

    def emit(self, record: Record, payload: dict[str, Any]) -> None:
        self._stream.write(self.render(payload) + "\n")
        self._stream.flush()
