"""
Configuration error classifications for plan resolution.

These exceptions cover everything that can be wrong with a plan, its
references, the artifacts it names, or the arguments it supplies. They are
raised before any transaction is sent and are never retried.
"""

from typing import Any, Optional


class ConfigurationError(Exception):
    """Base class for fatal plan and configuration issues."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class ReferenceResolutionError(ConfigurationError):
    """A reference token could not be resolved against the plan tree."""

    def __init__(self, message: str, reference: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reference = reference


class ReferenceCycleError(ReferenceResolutionError):
    """References that point back at themselves through other references."""

    def __init__(self, message: str, cycle: Optional[list[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.cycle = cycle or []


class NullValueError(ConfigurationError):
    """Null found where a value was expected."""

    def __init__(self, message: str, reference: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reference = reference


class PlanStructureError(ConfigurationError):
    """Plan node has the wrong shape for its position (special fields, chains)."""

    def __init__(self, message: str, reference: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reference = reference


class ArtifactResolutionError(ConfigurationError):
    """Contract name has no artifact or is ambiguous among several."""

    def __init__(self, message: str, name: Optional[str] = None,
                 candidates: Optional[list[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.name = name
        self.candidates = candidates or []


class FunctionResolutionError(ConfigurationError):
    """Function is missing from an artifact or cannot be told apart from its overloads."""

    def __init__(self, message: str, name: Optional[str] = None,
                 candidates: Optional[list[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.name = name
        self.candidates = candidates or []


class ArgumentError(ConfigurationError):
    """Missing, surplus or mistyped arguments for an ABI input list."""

    def __init__(self, message: str, argument: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.argument = argument


class DuplicateDeployError(ConfigurationError):
    """Two deploy steps share the same reference path."""

    def __init__(self, message: str, reference: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reference = reference


class UnresolvedDeployError(ConfigurationError):
    """Deploy reference with no predicted address (dangling or cyclic)."""

    def __init__(self, message: str, reference: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reference = reference


class InvalidTargetError(ConfigurationError):
    """Call or transfer target is not a valid address."""

    def __init__(self, message: str, target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.target = target


class DeployerMismatchError(ConfigurationError):
    """Configured deployer differs from the one the plan expects."""

    def __init__(self, message: str, expected: Optional[str] = None,
                 actual: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.expected = expected
        self.actual = actual


class UnsupportedChainError(ConfigurationError):
    """Chain id with no known network and no configured RPC endpoint."""

    def __init__(self, message: str, chain_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.chain_id = chain_id


class ConfigFileError(ConfigurationError):
    """Config file is missing, unreadable or fails validation."""

    def __init__(self, message: str, errors: Optional[list[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = errors or []
