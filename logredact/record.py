"""
Record model - the structured log event passed along a handler chain.

A Record is produced by the Logger front-end (or the stdlib bridge) once per
log call and is never mutated afterwards. Handlers that need to change it
(e.g. the RedactHandler) build a new one with dataclasses.replace().
"""

import logging
from dataclasses import Field, dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Optional

BAD_KEY = "!BADKEY"


class Level(IntEnum):
    """Severity levels, numerically aligned with the stdlib logging module."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR


_LEVEL_NAMES = {
    "debug": Level.DEBUG,
    "warn": Level.WARN,
    "warning": Level.WARN,
    "error": Level.ERROR,
}


def parse_level(name: Optional[str]) -> Level:
    """Map a configured level name to a Level. Unknown names mean INFO."""
    return _LEVEL_NAMES.get((name or "").strip().lower(), Level.INFO)


def level_for(levelno: int) -> Level:
    """Return the highest Level not above a stdlib numeric level."""
    chosen = Level.DEBUG
    for level in Level:
        if levelno >= level:
            chosen = level
    return chosen


@dataclass(frozen=True)
class Attr:
    """A named value attached to a record or bound to a scoped logger."""
    key: str
    value: Any

    @property
    def is_group(self) -> bool:
        return is_group_value(self.value)


@dataclass(frozen=True)
class Source:
    """Where the log call was made."""
    file: str
    line: int
    function: str


@dataclass(frozen=True)
class Record:
    """One structured log event."""
    time: datetime
    level: Level
    message: str
    source: Optional[Source] = None
    attrs: tuple[Attr, ...] = field(default_factory=tuple)


def is_group_value(value: Any) -> bool:
    """A group is a tuple of Attr. The empty tuple is an empty group."""
    return isinstance(value, tuple) and all(isinstance(a, Attr) for a in value)


def field_aliases(f: Field) -> tuple[str, ...]:
    """Names a dataclass field is known by: its own name plus any alias."""
    names = [f.name]
    for meta_key in ("alias", "json"):
        alias = f.metadata.get(meta_key)
        if alias and alias not in names:
            names.append(alias)
    return tuple(names)


def serialized_name(f: Field) -> str:
    """The key a dataclass field is rendered under by the sinks."""
    return f.metadata.get("alias") or f.metadata.get("json") or f.name


def group(key: str, *args: Any, **kwargs: Any) -> Attr:
    """
    Build a group attribute.

    Example:
        group("request", "method", "GET", path="/health")
        # renders as {"request": {"method": "GET", "path": "/health"}}
    """
    return Attr(key, attrs_from_args(args, kwargs))


def attrs_from_args(args: tuple, kwargs: Optional[dict[str, Any]] = None) -> tuple[Attr, ...]:
    """
    Convert logger call arguments into attributes.

    Positional args are either Attr instances or alternating key, value
    pairs. A trailing value without a key is kept under BAD_KEY, the same
    way a non-string key is. Keyword arguments follow, in order.
    """
    attrs: list[Attr] = []
    items = list(args)
    while items:
        head = items.pop(0)
        if isinstance(head, Attr):
            attrs.append(head)
        elif isinstance(head, str) and items:
            attrs.append(Attr(head, items.pop(0)))
        else:
            attrs.append(Attr(BAD_KEY, head))
    for key, value in (kwargs or {}).items():
        attrs.append(Attr(key, value))
    return tuple(attrs)


def now() -> datetime:
    return datetime.now(timezone.utc)
