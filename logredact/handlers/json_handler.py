"""JSON sink: writes each record as a single JSON object line."""

import json
from typing import Any, TextIO

from ..base_handler import FormattingHandler, to_jsonable
from ..record import Level, Record


class JSONHandler(FormattingHandler):
    """
    Write records as JSON lines.

    Example:
        handler = JSONHandler(sys.stdout, level=Level.DEBUG)
        # {"time": "2024-05-01T10:00:00+00:00", "level": "INFO", "message": "started"}
    """

    def __init__(self, stream: TextIO, level: Level = Level.INFO, add_source: bool = False):
        super().__init__(level=level, add_source=add_source)
        self._stream = stream

    def format(self, record: Record) -> str:
        return self.render(self.build_payload(record))

    @staticmethod
    def render(payload: dict[str, Any]) -> str:
        return json.dumps(to_jsonable(payload), ensure_ascii=False)

    def emit(self, record: Record, payload: dict[str, Any]) -> None:
        self._stream.write(self.render(payload) + "\n")
        self._stream.flush()
