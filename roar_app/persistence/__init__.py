"""
Persistence module.

Nonce lock files keeping predicted addresses stable across runs, and the
resolved plan spec export.
"""
