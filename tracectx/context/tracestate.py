"""W3C ``tracestate`` header value: lenient list-member parsing and bounded mutation."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from tracectx.errors import InvalidArgumentError, IteratorExhaustedError

logger = logging.getLogger(__name__)

MAX_LIST_MEMBERS = 32
LIST_MEMBER_DELIMITER = ","
KEY_VALUE_DELIMITER = "="
OPTIONAL_WHITESPACE = " \t"

_SIMPLE_KEY_RE = re.compile(r"[a-z][a-z0-9_\-*/]{0,255}")
_TENANT_KEY_RE = re.compile(r"[a-z0-9][a-z0-9_\-*/]{0,240}@[a-z][a-z0-9_\-*/]{0,13}")
# Printable ASCII without ',' and '=', last character not a space.
_VALUE_RE = re.compile(r"[\x20-\x2b\x2d-\x3c\x3e-\x7e]{0,255}[\x21-\x2b\x2d-\x3c\x3e-\x7e]")


def is_valid_key(key: object) -> bool:
    if not isinstance(key, str):
        return False
    return bool(_SIMPLE_KEY_RE.fullmatch(key) or _TENANT_KEY_RE.fullmatch(key))


def is_valid_value(value: object) -> bool:
    if not isinstance(value, str):
        return False
    return bool(_VALUE_RE.fullmatch(value))


@dataclass(frozen=True)
class TraceStateEntry:
    """A single ``key=value`` list-member and whether it is well-formed."""

    key: str
    value: str
    valid: bool

    @classmethod
    def parse_segment(cls, segment: str) -> Optional["TraceStateEntry"]:
        """
        Read one comma-delimited segment without rejecting it.

        Returns None only for segments without a key (no '=' or '=' first).
        Leading whitespace is trimmed from the key and trailing whitespace
        from the value; anything else is kept as literal content.
        """
        separator = segment.find(KEY_VALUE_DELIMITER)
        if separator <= 0:
            return None
        key = segment[:separator].lstrip(OPTIONAL_WHITESPACE)
        value = segment[separator + 1:].rstrip(OPTIONAL_WHITESPACE)
        return cls(key=key, value=value, valid=is_valid_key(key) and is_valid_value(value))

    @classmethod
    def create(cls, key: Optional[str], value: Optional[str]) -> "TraceStateEntry":
        """Build an entry for writing; raises InvalidArgumentError if malformed."""
        if key is None:
            raise InvalidArgumentError("Key cannot be null.")
        if not is_valid_key(key):
            raise InvalidArgumentError("Key is invalid.", {"key": key})
        if not is_valid_value(value):
            raise InvalidArgumentError("Value is invalid.", {"key": key})
        return cls(key=key, value=value, valid=True)

    def __str__(self) -> str:
        return f"{self.key}{KEY_VALUE_DELIMITER}{self.value}"


def _next_entry(raw: str, offset: int) -> Optional[Tuple[TraceStateEntry, int]]:
    """Find the next keyed segment at or after ``offset``; returns it and the resume offset."""
    length = len(raw)
    while offset < length:
        end = raw.find(LIST_MEMBER_DELIMITER, offset)
        if end == -1:
            end = length
        segment = raw[offset:end]
        offset = end + 1
        entry = TraceStateEntry.parse_segment(segment)
        if entry is not None:
            return entry, offset
        if segment.strip(OPTIONAL_WHITESPACE):
            logger.debug("Skipping tracestate list-member without key: %r", segment)
    return None


class TraceStateIterator:
    """
    Cursor over the list-members of a raw ``tracestate`` string.

    Yields at most MAX_LIST_MEMBERS entries, valid or not. Use
    ``has_next()``/``next()`` directly, or iterate with ``for``.
    """

    def __init__(self, raw: str) -> None:
        self._raw = raw
        self._offset = 0
        self._count = 0
        self._pending: Optional[Tuple[TraceStateEntry, int]] = None

    def _peek(self) -> Optional[Tuple[TraceStateEntry, int]]:
        if self._pending is None and self._count < MAX_LIST_MEMBERS:
            self._pending = _next_entry(self._raw, self._offset)
        return self._pending

    def has_next(self) -> bool:
        return self._peek() is not None

    def next(self) -> TraceStateEntry:
        pending = self._peek()
        if pending is None:
            raise IteratorExhaustedError()
        entry, self._offset = pending
        self._pending = None
        self._count += 1
        return entry

    def __iter__(self) -> "TraceStateIterator":
        return self

    def __next__(self) -> TraceStateEntry:
        if not self.has_next():
            raise StopIteration
        return self.next()


@dataclass(frozen=True)
class TraceState:
    """
    Immutable ``tracestate`` value.

    The raw header string is kept verbatim; entries are parsed lazily and
    classified on read. ``mutate`` returns a new instance in canonical form.
    """

    raw: str = ""

    def __post_init__(self) -> None:
        if self.raw is None:
            object.__setattr__(self, "raw", "")

    @classmethod
    def from_string(cls, value: Optional[str]) -> "TraceState":
        return cls(value or "")

    def __iter__(self) -> TraceStateIterator:
        return TraceStateIterator(self.raw)

    def __bool__(self) -> bool:
        return bool(self.raw)

    def __str__(self) -> str:
        return self.raw

    def get(self, key: str) -> Optional[str]:
        """Value of the first entry named ``key`` within the first MAX_LIST_MEMBERS entries."""
        for entry in self:
            if entry.key == key:
                return entry.value
        return None

    def mutate(self, updates: Optional[Mapping[str, Optional[str]]]) -> "TraceState":
        """
        Apply upserts and deletions, returning a new TraceState.

        Keys mapped to a non-empty value move to the front in mapping order.
        Keys mapped to None or "" are removed. Remaining existing entries
        follow in their original order, invalid ones included, until
        MAX_LIST_MEMBERS entries have been collected.
        """
        if updates is None:
            raise InvalidArgumentError("stateUpdates cannot be null.")

        updated = [
            TraceStateEntry.create(key, value)
            for key, value in updates.items()
            if value is not None and value != ""
        ]
        if len(updated) > MAX_LIST_MEMBERS:
            logger.debug(
                "Dropping %d tracestate updates beyond %d list-members",
                len(updated) - MAX_LIST_MEMBERS,
                MAX_LIST_MEMBERS,
            )
        members = updated[:MAX_LIST_MEMBERS]

        offset = 0
        while len(members) < MAX_LIST_MEMBERS:
            found = _next_entry(self.raw, offset)
            if found is None:
                break
            entry, offset = found
            if entry.key not in updates:
                members.append(entry)

        return TraceState(LIST_MEMBER_DELIMITER.join(str(member) for member in members))

    def mutate_entry(self, key: Optional[str], value: Optional[str]) -> "TraceState":
        return self.mutate({key: value})
