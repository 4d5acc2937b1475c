"""Helpers for hex-encoded trace and span identifiers."""

from __future__ import annotations

import secrets

TRACE_ID_HEX_LENGTH = 32
SPAN_ID_HEX_LENGTH = 16


def _to_hex(value: int, length: int) -> str:
    return format(value, f"0{length}x")


def _from_hex(hex_string: str) -> int:
    return int(hex_string, 16) if hex_string else 0


def format_trace_id(trace_id: int) -> str:
    """Render an OpenTelemetry trace id as the 32-character traceparent field."""
    return _to_hex(trace_id, TRACE_ID_HEX_LENGTH)


def format_span_id(span_id: int) -> str:
    """Render an OpenTelemetry span id as the 16-character parent-id field."""
    return _to_hex(span_id, SPAN_ID_HEX_LENGTH)


def parse_trace_id(hex_string: str) -> int:
    """Trace-id field to the integer form OpenTelemetry uses; 0 for an empty field."""
    return _from_hex(hex_string)


def parse_span_id(hex_string: str) -> int:
    return _from_hex(hex_string)


def is_zero_id(hex_string: str) -> bool:
    """Return True when every character of the id is '0'."""
    return not hex_string.strip("0")


def random_hex_id(length: int) -> str:
    """
    Generate a random lowercase hex id of ``length`` characters.

    Draws from the operating system's cryptographically strong source and
    redraws until the id is not all zeros.
    """
    while True:
        value = secrets.token_hex(length // 2)
        if not is_zero_id(value):
            return value
