"""
Stacksmith - lazy, discovery-driven construct builds.

Construct definitions live in ordinary Python files scattered across a
directory tree. Stacksmith discovers them, and initializes each one for a
build scope, letting any definition await any other without an explicit
ordering pass.

Quick start::

    from stacksmith import ConstructBuilder, ConstructFactory, Scope

    builder = ConstructBuilder("infra")
    constructs = await builder.build(Scope("staging"), {"region": "eu-west-1"})
"""

__version__ = "0.3.0"

from .dir_info import DirInfo
from .scope import Scope, scope_key
from .factory import ConstructFactory, ConstructInfo, ResolutionState
from .builder import ConstructBuilder, DiscoveredConstruct
from .graph import DependencyGraph
from .loader import load_construct
from .config import BuilderConfig, ConfigLoader, get_number, get_string
from .secrets import SecretManager
from .faults import (
    Fault,
    FaultDomain,
    Severity,
    InvalidArgumentFault,
    BaseTooDeepFault,
    BaseMismatchFault,
    AlreadyInitializedFault,
    InitializerNotImplementedFault,
    InitializationFault,
    CyclicDependencyFault,
    DiscoveryLoadFault,
    ConfigMissingFault,
    ConfigInvalidFault,
)

__all__ = [
    # Tree
    "DirInfo",
    # Resolution
    "Scope",
    "scope_key",
    "ConstructFactory",
    "ConstructInfo",
    "ResolutionState",
    # Discovery
    "ConstructBuilder",
    "DiscoveredConstruct",
    "DependencyGraph",
    "load_construct",
    # Config
    "BuilderConfig",
    "ConfigLoader",
    "get_string",
    "get_number",
    "SecretManager",
    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
    "InvalidArgumentFault",
    "BaseTooDeepFault",
    "BaseMismatchFault",
    "AlreadyInitializedFault",
    "InitializerNotImplementedFault",
    "InitializationFault",
    "CyclicDependencyFault",
    "DiscoveryLoadFault",
    "ConfigMissingFault",
    "ConfigInvalidFault",
]
