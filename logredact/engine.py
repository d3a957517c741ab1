"""
RedactHandler - masks sensitive attribute values before records reach a sink.

The handler decorates any Handler. On every record it:
1. Checks each top-level attribute key against the redaction key set
2. Walks nested values (mappings, dataclasses, named tuples, groups and
   plain sequences) applying the same key check at every level
3. Builds a new Record with the masked attributes and delegates it

Matching is a case-insensitive substring test of each token against a
single key (the leaf key). Group names introduced with with_group() are a
namespace of the wrapped sink and are never matched.

Inputs are never mutated: every container that is walked is copied first.
"""

import copy
import dataclasses
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from .base_handler import Handler
from .record import Attr, Level, Record, field_aliases, is_group_value
from .scrubber import MessageScrubber

logger = logging.getLogger(__name__)

REDACTED_MARKER = "***"
REDACTED_INT = -1
DEFAULT_MAX_DEPTH = 32


def normalize_keys(keys: Iterable[str]) -> tuple[str, ...]:
    """Lower-case and strip redaction tokens, dropping blanks."""
    return tuple(k.strip().lower() for k in keys if k and k.strip())


def key_matches(key: Any, keys: tuple[str, ...]) -> bool:
    """True if any token is contained in key, ignoring case."""
    if not isinstance(key, str) or not keys:
        return False
    lowered = key.lower()
    return any(token in lowered for token in keys)


def placeholder_for(value: Any) -> Any:
    """
    Type-appropriate replacement for a redacted aggregate field.

    Strings become the marker, integers become -1, and everything else
    becomes the zero value of its type (or None when the type can't be
    built without arguments).
    """
    if isinstance(value, str):
        return REDACTED_MARKER
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return REDACTED_INT
    try:
        return type(value)()
    except Exception:
        return None


class _Walker:
    """Copies a value tree, masking entries whose keys match."""

    def __init__(self, keys: tuple[str, ...], max_depth: int):
        self._keys = keys
        self._max_depth = max_depth
        self._path: set[int] = set()

    def attr(self, attr: Attr, depth: int = 0) -> Attr:
        if key_matches(attr.key, self._keys):
            return Attr(attr.key, REDACTED_MARKER)
        value = self.value(attr.value, depth)
        if value is attr.value:
            return attr
        return Attr(attr.key, value)

    def value(self, value: Any, depth: int) -> Any:
        handler = self._dispatch(value)
        if handler is None:
            return value
        # Self-referencing or absurdly deep payloads are cut off entirely
        if id(value) in self._path or depth >= self._max_depth:
            return REDACTED_MARKER
        self._path.add(id(value))
        try:
            return handler(value, depth + 1)
        finally:
            self._path.discard(id(value))

    def _dispatch(self, value: Any):
        if isinstance(value, (str, bytes, int, float)) or value is None:
            return None
        if is_group_value(value):
            return self._group
        if isinstance(value, Mapping):
            return self._mapping
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return self._dataclass
        if isinstance(value, tuple) and hasattr(value, "_fields"):
            return self._named_tuple
        if isinstance(value, (list, tuple)):
            return self._sequence
        return None

    def _group(self, value: tuple, depth: int) -> tuple:
        return tuple(self.attr(a, depth) for a in value)

    def _mapping(self, value: Mapping, depth: int) -> Mapping:
        result = copy.copy(value) if isinstance(value, dict) else dict(value)
        for key, item in value.items():
            if key_matches(key, self._keys):
                result[key] = REDACTED_MARKER
            else:
                result[key] = self.value(item, depth)
        return result

    def _dataclass(self, value: Any, depth: int) -> Any:
        try:
            result = copy.copy(value)
        except Exception as e:
            logger.debug(f"Could not copy {type(value).__name__} for redaction: {e}")
            return REDACTED_MARKER
        for f in dataclasses.fields(value):
            current = getattr(value, f.name)
            if any(key_matches(name, self._keys) for name in field_aliases(f)):
                replacement = placeholder_for(current)
            else:
                replacement = self.value(current, depth)
            if replacement is not current:
                # object.__setattr__ also works on frozen dataclasses
                object.__setattr__(result, f.name, replacement)
        return result

    def _named_tuple(self, value: tuple, depth: int) -> tuple:
        changes = {}
        for name in value._fields:
            current = getattr(value, name)
            if key_matches(name, self._keys):
                changes[name] = placeholder_for(current)
            else:
                changes[name] = self.value(current, depth)
        return value._replace(**changes)

    def _sequence(self, value: Any, depth: int) -> Any:
        items = [self.value(item, depth) for item in value]
        if type(value) in (list, tuple):
            return items if type(value) is list else tuple(items)
        # Subclasses keep their type when they take an iterable like the builtin
        try:
            return type(value)(items)
        except Exception as e:
            logger.debug(f"Could not rebuild {type(value).__name__} after redaction: {e}")
            return items if isinstance(value, list) else tuple(items)


def redact_attrs(
    attrs: Iterable[Attr],
    keys: tuple[str, ...],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[Attr, ...]:
    """
    Mask attributes whose keys (or nested keys) match a redaction token.

    Args:
        attrs: The attributes to inspect. They are not modified.
        keys: Lower-cased redaction tokens.
        max_depth: Nesting level below which values are replaced wholesale.

    Returns:
        A new tuple of attributes with the same keys and shapes.
    """
    attrs = tuple(attrs)
    if not keys:
        return attrs
    walker = _Walker(keys, max_depth)
    return tuple(walker.attr(a) for a in attrs)


def redact_value(value: Any, keys: tuple[str, ...], max_depth: int = DEFAULT_MAX_DEPTH) -> Any:
    """Redact inside a single value. The value itself is never masked."""
    if not keys:
        return value
    return _Walker(keys, max_depth).value(value, 0)


class RedactHandler(Handler):
    """
    Handler decorator that masks sensitive attributes.

    Example:
        sink = JSONHandler(sys.stdout)
        handler = RedactHandler(sink, ["authentication", "password"])
        Logger(handler).info("login", "password", "hunter2")
        # {"time": ..., "message": "login", "password": "***"}

    An empty key set is a pass-through: records reach the sink untouched.
    That is fail-open, so a missing configuration logs secrets in clear.

    Thread Safety:
        The handler holds no mutable state; it is as thread-safe as the
        handler it wraps.
    """

    def __init__(
        self,
        inner: Handler,
        keys_to_redact: Iterable[str],
        scrubber: Optional[MessageScrubber] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """
        Initialize the RedactHandler.

        Args:
            inner: The handler records are delegated to.
            keys_to_redact: Tokens to look for in attribute keys. They are
                            lower-cased here, so callers may pass any case.
            scrubber: Optional free-text scrubber applied to the message.
            max_depth: Maximum nesting walked before a value is masked whole.
        """
        self._inner = inner
        self._keys = normalize_keys(keys_to_redact)
        self._scrubber = scrubber
        self._max_depth = max_depth

    @property
    def inner(self) -> Handler:
        return self._inner

    @property
    def keys_to_redact(self) -> tuple[str, ...]:
        return self._keys

    def enabled(self, level: Level) -> bool:
        return self._inner.enabled(level)

    def handle(self, record: Record) -> None:
        if not self._keys and self._scrubber is None:
            return self._inner.handle(record)

        message = record.message
        if self._scrubber is not None:
            message = self._scrubber.scrub(message)
        attrs = redact_attrs(record.attrs, self._keys, self._max_depth)
        return self._inner.handle(dataclasses.replace(record, message=message, attrs=attrs))

    def with_attrs(self, attrs: Iterable[Attr]) -> "RedactHandler":
        attrs = redact_attrs(attrs, self._keys, self._max_depth)
        return self._derive(self._inner.with_attrs(attrs))

    def with_group(self, name: str) -> "RedactHandler":
        return self._derive(self._inner.with_group(name))

    def _derive(self, inner: Handler) -> "RedactHandler":
        derived = copy.copy(self)
        derived._inner = inner
        return derived

    def __repr__(self) -> str:
        return f"<RedactHandler keys={list(self._keys)} inner={self._inner!r}>"
