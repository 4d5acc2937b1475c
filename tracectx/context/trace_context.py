"""Trace identity carried across a service call: one traceparent plus one tracestate."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from opentelemetry.propagators.textmap import Getter, Setter

from tracectx.config import get_config
from tracectx.context.carrier import default_setter, read_header
from tracectx.context.traceparent import TraceParent
from tracectx.context.tracestate import TraceState
from tracectx.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TraceContext:
    """
    Immutable pairing of a TraceParent and a TraceState.

    Build one from inbound headers with ``from_request`` (or start a trace
    with ``create``), then write the outbound headers with ``propagate``.
    """

    trace_parent: TraceParent
    trace_state: TraceState = field(default_factory=TraceState)

    @classmethod
    def create(cls) -> "TraceContext":
        """Start a new, unsampled trace with an empty tracestate."""
        return cls(trace_parent=TraceParent.generate(sampled=False), trace_state=TraceState())

    @classmethod
    def from_request(cls, headers: Any, getter: Optional[Getter] = None) -> "TraceContext":
        """
        Continue the trace described by inbound headers.

        A missing or malformed traceparent starts a new trace and discards
        any inbound tracestate.

        Raises:
            InvalidArgumentError: if ``headers`` is None
        """
        if headers is None:
            raise InvalidArgumentError("Inbound request cannot be null.")

        names = get_config().propagation
        trace_parent = TraceParent.try_parse(read_header(headers, names.traceparent_header, getter))
        if trace_parent is None:
            logger.debug("No valid inbound traceparent, starting a new trace")
            return cls.create()

        trace_state = TraceState.from_string(read_header(headers, names.tracestate_header, getter))
        return cls(trace_parent=trace_parent, trace_state=trace_state)

    @staticmethod
    def pass_through(
        inbound: Any,
        outbound: Any,
        getter: Optional[Getter] = None,
        setter: Optional[Setter] = None,
    ) -> None:
        """
        Forward the raw trace headers unchanged, without parsing them.

        tracestate is only forwarded together with a traceparent.
        """
        if inbound is None:
            raise InvalidArgumentError("Inbound request cannot be null.")
        if outbound is None:
            raise InvalidArgumentError("Outbound request cannot be null.")

        setter = setter or default_setter
        names = get_config().propagation
        traceparent = read_header(inbound, names.traceparent_header, getter)
        if not traceparent:
            return
        setter.set(outbound, names.traceparent_header, traceparent)

        tracestate = read_header(inbound, names.tracestate_header, getter)
        if tracestate:
            setter.set(outbound, names.tracestate_header, tracestate)

    @property
    def trace_id(self) -> str:
        return self.trace_parent.trace_id

    @property
    def parent_id(self) -> str:
        return self.trace_parent.parent_id

    @property
    def sampled(self) -> bool:
        return self.trace_parent.sampled

    def propagate(
        self,
        headers: Any,
        sampled: bool,
        state_updates: Optional[Mapping[str, Optional[str]]] = None,
        setter: Optional[Setter] = None,
    ) -> "TraceContext":
        """
        Write the outbound trace headers for a call made within this context.

        A new parent id is generated and ``state_updates`` (if given) are
        applied to the tracestate. tracestate is only written when non-empty.

        Returns:
            The context that was written
        """
        if headers is None:
            raise InvalidArgumentError("Outbound request cannot be null.")

        trace_parent = self.trace_parent.mutate(sampled)
        trace_state = self.trace_state
        if state_updates is not None:
            trace_state = trace_state.mutate(state_updates)

        setter = setter or default_setter
        names = get_config().propagation
        setter.set(headers, names.traceparent_header, str(trace_parent))
        if trace_state:
            setter.set(headers, names.tracestate_header, str(trace_state))

        return TraceContext(trace_parent=trace_parent, trace_state=trace_state)
