"""
Build scopes.

A scope identifies one build target (an environment, a stack). Factories
memoize their constructs per scope, keyed by the scope's name, so any
object with a non-empty ``name`` string can act as a scope. Plain strings
are accepted as well.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from .faults import InvalidArgumentFault


@dataclass(frozen=True)
class Scope:
    """A named build target."""

    name: str
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise InvalidArgumentFault("Invalid scope name", argument="name", value=self.name)

    def __str__(self) -> str:
        return self.name


def scope_key(scope: Any) -> str:
    """
    Return the identity key of ``scope``.

    Raises:
        InvalidArgumentFault: ``scope`` is neither a non-empty string nor
            an object exposing a non-empty ``name`` string.
    """
    if isinstance(scope, str):
        if scope:
            return scope
    else:
        name = getattr(scope, "name", None)
        if isinstance(name, str) and name:
            return name
    raise InvalidArgumentFault("Invalid scope (arg #1)", argument="scope", value=scope)
