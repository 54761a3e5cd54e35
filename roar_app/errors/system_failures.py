"""
System failure error classifications for unrecoverable errors.

These exceptions represent failures of the surrounding system (lock files,
artifact files, persistence) that stop a run before execution starts.
"""

from typing import Any, Optional


class SystemFailureError(Exception):
    """Base class for unrecoverable system failures."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class LockConsistencyError(SystemFailureError):
    """Nonce lock chains differ from the plan chains."""

    def __init__(self, message: str, lock_chains: Optional[list[str]] = None,
                 plan_chains: Optional[list[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.lock_chains = lock_chains or []
        self.plan_chains = plan_chains or []


class LockFormatError(SystemFailureError):
    """Nonce lock file exists but its content is malformed."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path


class PersistenceError(SystemFailureError):
    """File system persistence failures."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target


class ArtifactLoadError(SystemFailureError):
    """Compiled artifact file is malformed or duplicated."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path
