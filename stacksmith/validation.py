"""
Argument checks shared by the public entry points.

Each check raises InvalidArgumentFault before the caller touches any
state, so a rejected call never leaves a half-created record behind.
"""

from collections.abc import Mapping
from typing import Any, Type, TypeVar

from .faults import InvalidArgumentFault

T = TypeVar("T")


def check_string(value: Any, message: str, *, argument: str = "") -> str:
    """Require a non-empty string."""
    if not isinstance(value, str) or not value:
        raise InvalidArgumentFault(message, argument=argument, value=value)
    return value


def check_mapping(value: Any, message: str, *, argument: str = "") -> Mapping:
    """Require a mapping (the configuration bag)."""
    if not isinstance(value, Mapping):
        raise InvalidArgumentFault(message, argument=argument, value=value)
    return value


def check_instance(value: Any, cls: Type[T], message: str, *, argument: str = "") -> T:
    """Require an instance of ``cls``."""
    if not isinstance(value, cls):
        raise InvalidArgumentFault(message, argument=argument, value=value)
    return value
