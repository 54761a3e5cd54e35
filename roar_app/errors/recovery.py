"""
Recovery strategy classifications for error handling.

Errors in this module never abort a run: the execution engine catches them,
waits, and tries again.
"""

from typing import Optional


class RecoverableError(Exception):
    """Mixin for errors that can be recovered from automatically."""

    def __init__(self, message: str, retry_count: int = 0,
                 max_retries: Optional[int] = None, **kwargs):
        super().__init__(message)
        self.retry_count = retry_count
        self.max_retries = max_retries
        self.recoverable = True


class NonceBehindError(RecoverableError):
    """On-chain transaction count lags the nonce of the pending action."""

    def __init__(self, message: str, action_nonce: Optional[int] = None,
                 chain_nonce: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.action_nonce = action_nonce
        self.chain_nonce = chain_nonce
