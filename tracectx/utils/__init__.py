"""Utility functions for tracectx."""

from tracectx.utils.helpers import (
    SPAN_ID_HEX_LENGTH,
    TRACE_ID_HEX_LENGTH,
    format_trace_id,
    format_span_id,
    is_zero_id,
    parse_trace_id,
    parse_span_id,
    random_hex_id,
)

__all__ = [
    "TRACE_ID_HEX_LENGTH",
    "SPAN_ID_HEX_LENGTH",
    "format_trace_id",
    "format_span_id",
    "parse_trace_id",
    "parse_span_id",
    "is_zero_id",
    "random_hex_id",
]
