"""
Roar - Multi-Chain Contract Deployment Plan Engine

Deploys and calls smart contracts across several independent chains from a
single declarative YAML plan. Predicts the addresses of contracts before they
exist, encodes every transaction up front and executes each chain's
transactions in nonce order with drift recovery.
"""

__version__ = "0.1.0"
__author__ = "Roar Team"
