"""
Action resolution module.

Predicts deploy addresses for every chain, then encodes each step into an
Action carrying its nonce, target, data and value.
"""
