"""OpenTelemetry TextMapPropagator backed by the tracectx header codec."""

from __future__ import annotations

import logging
from typing import Optional, Set

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.propagators.textmap import CarrierT, Getter, Setter, TextMapPropagator
from opentelemetry.trace import NonRecordingSpan
from opentelemetry.trace import SpanContext as OTelSpanContext, TraceFlags
from opentelemetry.trace import TraceState as OTelTraceState

from tracectx.config import get_config
from tracectx.context.carrier import default_setter, read_header
from tracectx.context.trace_context import TraceContext
from tracectx.context.traceparent import TraceParent
from tracectx.context.tracestate import TraceState
from tracectx.utils.helpers import format_span_id, format_trace_id, parse_span_id, parse_trace_id

logger = logging.getLogger(__name__)


def to_span_context(trace_context: TraceContext) -> OTelSpanContext:
    """
    Convert a TraceContext to a remote OTel SpanContext.

    Only well-formed tracestate entries are carried over; the first
    occurrence of a key wins.
    """
    entries = []
    seen = set()
    for entry in trace_context.trace_state:
        if entry.valid and entry.key not in seen:
            seen.add(entry.key)
            entries.append((entry.key, entry.value))

    return OTelSpanContext(
        trace_id=parse_trace_id(trace_context.trace_id),
        span_id=parse_span_id(trace_context.parent_id),
        is_remote=True,
        trace_flags=TraceFlags(trace_context.trace_parent.trace_flags),
        trace_state=OTelTraceState(entries),
    )


def from_span_context(span_context: OTelSpanContext) -> Optional[TraceContext]:
    """Convert an OTel SpanContext to a TraceContext; None if the span context is invalid."""
    if not span_context.is_valid:
        return None

    trace_parent = TraceParent(
        trace_id=format_trace_id(span_context.trace_id),
        parent_id=format_span_id(span_context.span_id),
        sampled=span_context.trace_flags.sampled,
    )
    trace_state = TraceState.from_string(span_context.trace_state.to_header())
    return TraceContext(trace_parent=trace_parent, trace_state=trace_state)


class W3CTraceContextPropagator(TextMapPropagator):
    """
    Extracts and injects ``traceparent``/``tracestate``.

    Registered under the ``tracectx`` name, so it can be selected with
    ``OTEL_PROPAGATORS=tracectx``.
    """

    def extract(
        self,
        carrier: CarrierT,
        context: Optional[Context] = None,
        getter: Optional[Getter[CarrierT]] = None,
    ) -> Context:
        if context is None:
            context = Context()

        names = get_config().propagation
        trace_parent = TraceParent.try_parse(read_header(carrier, names.traceparent_header, getter))
        if trace_parent is None:
            return context

        trace_state = TraceState.from_string(read_header(carrier, names.tracestate_header, getter))
        span_context = to_span_context(TraceContext(trace_parent=trace_parent, trace_state=trace_state))
        return trace.set_span_in_context(NonRecordingSpan(span_context), context)

    def inject(
        self,
        carrier: CarrierT,
        context: Optional[Context] = None,
        setter: Optional[Setter[CarrierT]] = None,
    ) -> None:
        span_context = trace.get_current_span(context).get_span_context()
        trace_context = from_span_context(span_context)
        if trace_context is None:
            logger.debug("No valid span in context, nothing to inject")
            return

        setter = setter or default_setter
        names = get_config().propagation
        setter.set(carrier, names.traceparent_header, str(trace_context.trace_parent))
        if trace_context.trace_state:
            setter.set(carrier, names.tracestate_header, str(trace_context.trace_state))

    @property
    def fields(self) -> Set[str]:
        names = get_config().propagation
        return {names.traceparent_header, names.tracestate_header}
