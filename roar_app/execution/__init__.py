"""
Transaction execution module.

Chain registry, web3 chain clients and the per-chain executor with
nonce-aware retry and retreat.
"""
