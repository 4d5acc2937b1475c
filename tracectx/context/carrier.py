"""Header carrier access built on OpenTelemetry's TextMap getter/setter interfaces."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any, List, Optional

from opentelemetry.propagators.textmap import Getter, Setter

from tracectx.config import get_config


class HeaderGetter(Getter):
    """
    Read header values from a mapping or from any object exposing ``get(name)``.

    HTTP header names are case-insensitive, so mappings are searched
    ignoring case unless ``case_insensitive`` is False. Every matching
    header contributes its values, in carrier order.
    """

    def __init__(self, case_insensitive: bool = True) -> None:
        self.case_insensitive = case_insensitive

    def get(self, carrier: Any, key: str) -> Optional[List[str]]:
        if isinstance(carrier, Mapping) and self.case_insensitive:
            lowered = key.lower()
            values: List[str] = []
            for name, value in carrier.items():
                if isinstance(name, str) and name.lower() == lowered:
                    values.extend(_as_list(value))
            return values or None
        return _as_list(carrier.get(key)) or None

    def keys(self, carrier: Any) -> List[str]:
        if isinstance(carrier, Mapping):
            return list(carrier.keys())
        return []


class HeaderSetter(Setter):
    """Write header values into a mutable mapping or any object exposing ``set(name, value)``."""

    def set(self, carrier: Any, key: str, value: str) -> None:
        if isinstance(carrier, MutableMapping):
            carrier[key] = value
        else:
            carrier.set(key, value)


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


default_setter = HeaderSetter()


def get_default_getter() -> HeaderGetter:
    """Getter honouring the configured header-name case sensitivity."""
    return HeaderGetter(case_insensitive=get_config().propagation.case_insensitive_headers)


def read_header(carrier: Any, name: str, getter: Optional[Getter] = None) -> Optional[str]:
    """
    Read a header as a single string.

    Repeated headers are joined with ',' as HTTP list headers are.
    Returns None when the header is absent.
    """
    values = (getter or get_default_getter()).get(carrier, name)
    if not values:
        return None
    return ",".join(values)
