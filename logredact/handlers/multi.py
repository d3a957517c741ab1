"""Fan-out handler: delivers each record to several handlers."""

from collections.abc import Iterable

from ..base_handler import Handler
from ..exceptions import SinkError
from ..record import Attr, Level, Record


class MultiHandler(Handler):
    """
    Deliver records to every child that is enabled for their level.

    All children are tried even when one fails. A single failure is
    re-raised as is; several are reported as one SinkError chained to the
    first.
    """

    def __init__(self, *handlers: Handler):
        self._handlers = tuple(handlers)

    @property
    def handlers(self) -> tuple[Handler, ...]:
        return self._handlers

    def enabled(self, level: Level) -> bool:
        return any(h.enabled(level) for h in self._handlers)

    def handle(self, record: Record) -> None:
        errors = []
        for h in self._handlers:
            if not h.enabled(record.level):
                continue
            try:
                h.handle(record)
            except Exception as e:
                errors.append(e)
        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise SinkError(f"{len(errors)} handlers failed: {errors}") from errors[0]

    def with_attrs(self, attrs: Iterable[Attr]) -> "MultiHandler":
        attrs = tuple(attrs)
        return MultiHandler(*(h.with_attrs(attrs) for h in self._handlers))

    def with_group(self, name: str) -> "MultiHandler":
        return MultiHandler(*(h.with_group(name) for h in self._handlers))
