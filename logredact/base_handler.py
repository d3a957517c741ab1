"""
Base Handler - the capability every stage of a handler chain implements.

A handler chain is a stack of decorators ending in a sink. Each stage
exposes the same four operations so it can be installed as the active
logging backend or composed beneath another decorator:

    - handle(record): process one record (raise on delivery failure)
    - enabled(level): whether records at this level are worth building
    - with_attrs(attrs): a new handler with attributes permanently attached
    - with_group(name): a new handler whose later attributes nest under name

with_attrs() and with_group() never mutate the receiver, so a parent
handler can be shared by any number of scoped loggers.
"""

import copy
import dataclasses
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any, Optional

from .record import Attr, Level, Record, serialized_name


class Handler(ABC):
    """
    Abstract base class for structured-log handlers.

    Example:
        class ListHandler(Handler):
            def __init__(self):
                self.records = []

            def enabled(self, level):
                return True

            def handle(self, record):
                self.records.append(record)

            def with_attrs(self, attrs):
                return self

            def with_group(self, name):
                return self
    """

    @abstractmethod
    def enabled(self, level: Level) -> bool:
        """Return True if records at this level should be handled."""
        pass

    @abstractmethod
    def handle(self, record: Record) -> None:
        """
        Process a single record.

        Delivery failures are raised to the caller; a handler must not
        silently drop an error from the stage it wraps.
        """
        pass

    @abstractmethod
    def with_attrs(self, attrs: Iterable[Attr]) -> "Handler":
        """Return a new handler that includes attrs in every record."""
        pass

    @abstractmethod
    def with_group(self, name: str) -> "Handler":
        """Return a new handler that nests subsequent attrs under name."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


# Tracks sinks writing on the current thread
_sink_state = threading.local()


def sink_emitting() -> bool:
    """True while a FormattingHandler on this thread is inside emit()."""
    return getattr(_sink_state, "depth", 0) > 0


class GroupDict(dict):
    """A dict built from a group, as opposed to a mapping value logged by a caller."""


class FormattingHandler(Handler):
    """
    Shared behavior for sinks that turn a record into a payload dict.

    Attributes bound with with_attrs() remember the group path that was
    active when they were bound, so attrs bound before a with_group() call
    stay at the outer level. Subclasses implement emit().
    """

    def __init__(self, level: Level = Level.INFO, add_source: bool = False):
        self._level = level
        self._add_source = add_source
        self._groups: tuple[str, ...] = ()
        self._bound: tuple[tuple[tuple[str, ...], tuple[Attr, ...]], ...] = ()
        # Shared with every clone so writes from scoped loggers don't interleave
        self._lock = threading.Lock()

    def enabled(self, level: Level) -> bool:
        return level >= self._level

    def with_attrs(self, attrs: Iterable[Attr]) -> "FormattingHandler":
        attrs = tuple(attrs)
        if not attrs:
            return self
        clone = copy.copy(self)
        clone._bound = self._bound + ((self._groups, attrs),)
        return clone

    def with_group(self, name: str) -> "FormattingHandler":
        if not name:
            return self
        clone = copy.copy(self)
        clone._groups = self._groups + (name,)
        return clone

    def handle(self, record: Record) -> None:
        payload = self.build_payload(record)
        with self._lock:
            _sink_state.depth = getattr(_sink_state, "depth", 0) + 1
            try:
                self.emit(record, payload)
            finally:
                _sink_state.depth -= 1

    @abstractmethod
    def emit(self, record: Record, payload: dict[str, Any]) -> None:
        """Write one payload to the destination."""
        pass

    def build_payload(self, record: Record) -> dict[str, Any]:
        """
        Lay out a record as a dict.

        Built-in keys come first (time, level, message, source), then bound
        attrs in binding order, then the record's own attrs. Groups become
        nested GroupDicts; groups that end up empty are left out.
        """
        payload: dict[str, Any] = {
            "time": record.time,
            "level": record.level.name,
            "message": record.message,
        }
        if self._add_source and record.source is not None:
            payload["source"] = record.source
        for groups, attrs in self._bound:
            _add_attrs(payload, groups, attrs)
        _add_attrs(payload, self._groups, record.attrs)
        return payload


def _add_attrs(payload: dict[str, Any], groups: tuple[str, ...], attrs: tuple[Attr, ...]) -> None:
    attrs = tuple(a for a in attrs if _has_content(a))
    if not attrs:
        return
    target = payload
    for name in groups:
        nested = target.get(name)
        if not isinstance(nested, GroupDict):
            nested = GroupDict()
            target[name] = nested
        target = nested
    for attr in attrs:
        _set_attr(target, attr)


def _has_content(attr: Attr) -> bool:
    if attr.is_group:
        return any(_has_content(a) for a in attr.value)
    return bool(attr.key)


def _set_attr(target: dict[str, Any], attr: Attr) -> None:
    if not _has_content(attr):
        return
    if not attr.is_group:
        target[attr.key] = attr.value
        return
    # A group without a key is inlined into its parent
    if not attr.key:
        for child in attr.value:
            _set_attr(target, child)
        return
    nested = target.get(attr.key)
    if not isinstance(nested, GroupDict):
        nested = GroupDict()
        target[attr.key] = nested
    for child in attr.value:
        _set_attr(nested, child)


def to_jsonable(value: Any, _seen: Optional[set[int]] = None) -> Any:
    """
    Convert a payload value into something json.dumps accepts.

    Mappings become objects, dataclass instances become objects keyed by
    their serialized field name, sequences become arrays. Times are
    rendered as ISO-8601, durations as seconds, anything unknown via str().
    Self-referencing containers are cut with "[cycle]".
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()

    seen = _seen if _seen is not None else set()
    is_container = (
        isinstance(value, (Mapping, list, tuple, set, frozenset))
        or (dataclasses.is_dataclass(value) and not isinstance(value, type))
    )
    if not is_container:
        return str(value)
    if id(value) in seen:
        return "[cycle]"
    seen.add(id(value))
    try:
        if isinstance(value, Mapping):
            return {str(k): to_jsonable(v, seen) for k, v in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [to_jsonable(v, seen) for v in value]
        return {
            serialized_name(f): to_jsonable(getattr(value, f.name), seen)
            for f in dataclasses.fields(value)
        }
    finally:
        seen.discard(id(value))
