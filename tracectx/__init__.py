"""tracectx: W3C Trace Context ``traceparent``/``tracestate`` codec."""

from tracectx.config import TraceContextConfig, get_config, load_config, set_config
from tracectx.context import (
    TraceContext,
    TraceParent,
    TraceState,
    TraceStateEntry,
    W3CTraceContextPropagator,
)
from tracectx.errors import (
    ConfigError,
    InvalidArgumentError,
    IteratorExhaustedError,
    TraceContextError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "TraceContext",
    "TraceParent",
    "TraceState",
    "TraceStateEntry",
    "W3CTraceContextPropagator",
    "TraceContextConfig",
    "get_config",
    "load_config",
    "set_config",
    "TraceContextError",
    "InvalidArgumentError",
    "IteratorExhaustedError",
    "ConfigError",
]
