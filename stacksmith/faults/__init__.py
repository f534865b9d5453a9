"""
Stacksmith faults - typed fault signals.

Every error raised by stacksmith is a Fault: it carries a stable code,
a domain and a severity so callers (and the CLI) can tell a malformed
call from a broken construct definition without parsing messages.

Errors raised by a construct's own initializer are not wrapped; they
propagate verbatim to every caller waiting on that construct.
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)
from .domains import (
    InvalidArgumentFault,
    PathFault,
    BaseTooDeepFault,
    BaseMismatchFault,
    ResolutionFault,
    AlreadyInitializedFault,
    InitializerNotImplementedFault,
    InitializationFault,
    CyclicDependencyFault,
    DiscoveryLoadFault,
    ConfigFault,
    ConfigMissingFault,
    ConfigInvalidFault,
)

__all__ = [
    # Core
    "Fault",
    "FaultDomain",
    "Severity",
    # Domains
    "InvalidArgumentFault",
    "PathFault",
    "BaseTooDeepFault",
    "BaseMismatchFault",
    "ResolutionFault",
    "AlreadyInitializedFault",
    "InitializerNotImplementedFault",
    "InitializationFault",
    "CyclicDependencyFault",
    "DiscoveryLoadFault",
    "ConfigFault",
    "ConfigMissingFault",
    "ConfigInvalidFault",
]
