"""
Stacksmith faults - Domain-specific fault types.

Provides concrete fault classes for each domain:
- INPUT faults (malformed arguments)
- PATH faults (route path computation)
- RESOLUTION faults (factory init / lookup protocol)
- DISCOVERY faults (tree walk and module loading)
- CONFIG faults
"""

from typing import Any, Optional
from .core import Fault, FaultDomain, Severity


# ============================================================================
# Argument Faults
# ============================================================================

class InvalidArgumentFault(Fault, ValueError):
    """A call site passed a malformed argument."""

    def __init__(self, message: str, *, argument: Optional[str] = None, value: Any = None):
        super().__init__(
            code="INVALID_ARGUMENT",
            message=message,
            domain=FaultDomain.INPUT,
            metadata={"argument": argument, "value": repr(value)},
        )


# ============================================================================
# PATH Faults
# ============================================================================

class PathFault(Fault):
    """Base class for route path faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.PATH,
            metadata=metadata,
        )


class BaseTooDeepFault(PathFault):
    """Base path has more levels than the directory path."""

    def __init__(self, base_path: str, abs_path: str):
        super().__init__(
            code="ROUTE_BASE_TOO_DEEP",
            message=f"Base '{base_path}' has more levels than the directory path '{abs_path}'",
            metadata={"base_path": base_path, "abs_path": abs_path},
        )


class BaseMismatchFault(PathFault):
    """Base path is not a prefix of the directory path."""

    def __init__(self, base_path: str, abs_path: str, index: int):
        super().__init__(
            code="ROUTE_BASE_MISMATCH",
            message=f"Base path '{base_path}' does not exist in directory path '{abs_path}'",
            metadata={"base_path": base_path, "abs_path": abs_path, "segment": index},
        )


# ============================================================================
# RESOLUTION Faults
# ============================================================================

class ResolutionFault(Fault):
    """Base class for construct resolution faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.ERROR,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.RESOLUTION,
            severity=severity,
            metadata=metadata,
        )


class AlreadyInitializedFault(ResolutionFault):
    """init() was called a second time for the same scope."""

    def __init__(self, construct_id: str, scope: str, state: str):
        super().__init__(
            code="ALREADY_INITIALIZED",
            message=f"Construct '{construct_id}' has already been initialized for scope [{scope}]",
            metadata={"construct_id": construct_id, "scope": scope, "state": state},
        )


class InitializerNotImplementedFault(ResolutionFault, NotImplementedError):
    """The factory does not override the protected initializer."""

    def __init__(self, factory_class: str):
        super().__init__(
            code="INITIALIZER_NOT_IMPLEMENTED",
            message=f"{factory_class} must override _init() to create its construct",
            severity=Severity.FATAL,
            metadata={"factory_class": factory_class},
        )


class InitializationFault(ResolutionFault):
    """An initializer completed without producing a construct."""

    def __init__(self, construct_id: str, scope: str, reason: str):
        super().__init__(
            code="INITIALIZATION_FAILED",
            message=f"Construct '{construct_id}' failed to initialize for scope [{scope}]: {reason}",
            metadata={"construct_id": construct_id, "scope": scope, "reason": reason},
        )


class CyclicDependencyFault(ResolutionFault):
    """Declared construct dependencies form a cycle."""

    def __init__(self, cycle: list[str]):
        cycle_str = " -> ".join(cycle + cycle[:1])
        super().__init__(
            code="DEPENDENCY_CYCLE",
            message=f"Circular construct dependency detected: {cycle_str}",
            severity=Severity.FATAL,
            metadata={"cycle": cycle},
        )


# ============================================================================
# DISCOVERY Faults
# ============================================================================

class DiscoveryLoadFault(Fault):
    """A construct definition file could not be loaded."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            code="DISCOVERY_LOAD_FAILED",
            message=f"Unable to load construct definition '{path}': {reason}",
            domain=FaultDomain.DISCOVERY,
            metadata={"path": path, "reason": reason},
        )


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            metadata=metadata,
        )


class ConfigMissingFault(ConfigFault):
    """Required configuration is missing."""

    def __init__(self, key: str):
        super().__init__(
            code="CONFIG_MISSING",
            message=f"Required configuration key '{key}' is missing",
            metadata={"key": key},
        )


class ConfigInvalidFault(ConfigFault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason},
        )
