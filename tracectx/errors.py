"""tracectx error hierarchy and exceptions."""

from __future__ import annotations


class TraceContextError(Exception):
    """Base exception for all tracectx errors."""
    
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
    
    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(TraceContextError):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


class InvalidArgumentError(TraceContextError, ValueError):
    """Raised when a caller-supplied argument is missing or fails validation."""
    pass


class IteratorExhaustedError(TraceContextError, LookupError):
    """Raised when next() is called on an exhausted tracestate iterator."""

    def __init__(self, message: str = "Iterator has no more elements.", details: dict = None):
        super().__init__(message, details)
