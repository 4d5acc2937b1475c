"""Trace context header codec and propagation."""

from tracectx.context.carrier import HeaderGetter, HeaderSetter, read_header
from tracectx.context.propagators import (
    W3CTraceContextPropagator,
    from_span_context,
    to_span_context,
)
from tracectx.context.trace_context import TraceContext
from tracectx.context.traceparent import TraceParent
from tracectx.context.tracestate import (
    MAX_LIST_MEMBERS,
    TraceState,
    TraceStateEntry,
    TraceStateIterator,
)

__all__ = [
    "HeaderGetter",
    "HeaderSetter",
    "read_header",
    "TraceParent",
    "TraceState",
    "TraceStateEntry",
    "TraceStateIterator",
    "MAX_LIST_MEMBERS",
    "TraceContext",
    "W3CTraceContextPropagator",
    "to_span_context",
    "from_span_context",
]
