"""
Error classification system for plan resolution and execution.

This module provides the exception hierarchy separating fatal configuration
problems, fatal system failures, and recoverable execution conditions.
"""

from .configuration import (
    ConfigurationError,
    ReferenceResolutionError,
    ReferenceCycleError,
    NullValueError,
    PlanStructureError,
    ArtifactResolutionError,
    FunctionResolutionError,
    ArgumentError,
    DuplicateDeployError,
    UnresolvedDeployError,
    InvalidTargetError,
    DeployerMismatchError,
    UnsupportedChainError,
    ConfigFileError,
)
from .system_failures import (
    SystemFailureError,
    LockConsistencyError,
    LockFormatError,
    PersistenceError,
    ArtifactLoadError,
)
from .recovery import (
    RecoverableError,
    NonceBehindError,
)

__all__ = [
    # Configuration Errors
    "ConfigurationError",
    "ReferenceResolutionError",
    "ReferenceCycleError",
    "NullValueError",
    "PlanStructureError",
    "ArtifactResolutionError",
    "FunctionResolutionError",
    "ArgumentError",
    "DuplicateDeployError",
    "UnresolvedDeployError",
    "InvalidTargetError",
    "DeployerMismatchError",
    "UnsupportedChainError",
    "ConfigFileError",
    # System Failures
    "SystemFailureError",
    "LockConsistencyError",
    "LockFormatError",
    "PersistenceError",
    "ArtifactLoadError",
    # Recovery Categories
    "RecoverableError",
    "NonceBehindError",
]
