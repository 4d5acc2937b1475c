"""W3C ``traceparent`` header value: parsing, validation and generation."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from tracectx.errors import InvalidArgumentError
from tracectx.utils.helpers import (
    SPAN_ID_HEX_LENGTH,
    TRACE_ID_HEX_LENGTH,
    is_zero_id,
    random_hex_id,
)

logger = logging.getLogger(__name__)

# Anchored at the start only: a dash after the flags field opens room for
# fields defined by future versions.
_TRACEPARENT_RE = re.compile(
    r"([0-9a-f]{2})-([0-9a-f]{32})-([0-9a-f]{16})-([0-9a-f]{2})(?:\Z|-)"
)
_TRACE_ID_RE = re.compile(r"[0-9a-f]{32}")
_PARENT_ID_RE = re.compile(r"[0-9a-f]{16}")

INVALID_VERSION = "ff"
SAMPLED_FLAG = 0x01


@dataclass(frozen=True)
class TraceParent:
    """
    Immutable ``traceparent`` value.

    Every instance holds a well-formed, non-zero trace id and parent id.
    Only the version 0 layout is understood, so ``version`` is always 0.
    """

    trace_id: str
    parent_id: str
    sampled: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.trace_id, str) or not _TRACE_ID_RE.fullmatch(self.trace_id) \
                or is_zero_id(self.trace_id):
            raise InvalidArgumentError("Trace ID is invalid.", {"trace_id": self.trace_id})
        if not isinstance(self.parent_id, str) or not _PARENT_ID_RE.fullmatch(self.parent_id) \
                or is_zero_id(self.parent_id):
            raise InvalidArgumentError("Parent ID is invalid.", {"parent_id": self.parent_id})

    @classmethod
    def generate(cls, sampled: bool = False) -> "TraceParent":
        """Start a new trace with random ids."""
        return cls(
            trace_id=random_hex_id(TRACE_ID_HEX_LENGTH),
            parent_id=random_hex_id(SPAN_ID_HEX_LENGTH),
            sampled=sampled,
        )

    @classmethod
    def try_parse(cls, value: Optional[str]) -> Optional["TraceParent"]:
        """
        Parse a ``traceparent`` header value.

        Never raises. Returns None when the value is missing, malformed,
        carries the reserved ``ff`` version, or has an all-zero id.

        Versions other than ``00`` and ``ff`` are accepted and read with the
        version 0 layout; the resulting instance reports version 0.
        """
        if not isinstance(value, str):
            return None

        match = _TRACEPARENT_RE.match(value)
        if match is None:
            logger.debug("Discarding malformed traceparent %r", value)
            return None

        version, trace_id, parent_id, flags = match.groups()
        if version == INVALID_VERSION:
            logger.debug("Discarding traceparent with reserved version %r", value)
            return None
        if is_zero_id(trace_id) or is_zero_id(parent_id):
            logger.debug("Discarding traceparent with all-zero id %r", value)
            return None

        return cls(
            trace_id=trace_id,
            parent_id=parent_id,
            sampled=bool(int(flags, 16) & SAMPLED_FLAG),
        )

    @property
    def version(self) -> int:
        return 0

    @property
    def trace_flags(self) -> int:
        return SAMPLED_FLAG if self.sampled else 0

    def mutate(self, sampled: bool) -> "TraceParent":
        """Return a child of this parent: same trace id, new parent id."""
        return TraceParent(
            trace_id=self.trace_id,
            parent_id=random_hex_id(SPAN_ID_HEX_LENGTH),
            sampled=sampled,
        )

    def to_header(self) -> str:
        return f"{self.version:02x}-{self.trace_id}-{self.parent_id}-{self.trace_flags:02x}"

    def __str__(self) -> str:
        return self.to_header()
