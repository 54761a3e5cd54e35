"""
Chain clients used by the execution engine.

The engine only needs the deployer's transaction count, a way to submit a
transaction and a way to wait for its receipt. Web3ChainClient provides them
over JSON-RPC, signing locally with the deployer key.
"""

from typing import Any, Protocol

import structlog
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from ..actions.models import ActionTransaction
from .chains import ChainInfo

logger = structlog.get_logger(__name__)

RECEIPT_TIMEOUT_SECONDS = 300


class ChainClient(Protocol):
    """What the execution engine needs from a chain."""

    @property
    def address(self) -> str: ...

    @property
    def chain(self) -> ChainInfo: ...

    def get_transaction_count(self) -> int: ...

    def send_transaction(self, transaction: ActionTransaction) -> str: ...

    def wait_for_receipt(self, tx_hash: str) -> Any: ...


class Web3ChainClient:
    """
    JSON-RPC chain client backed by web3.py.

    Args:
        chain: Chain details; the first RPC endpoint is used
        private_key: Deployer key, 0x-prefixed hex
        request_timeout: HTTP request timeout in seconds
    """

    def __init__(self, chain: ChainInfo, private_key: str, request_timeout: int = 30):
        self._chain = chain
        self.account: LocalAccount = Account.from_key(private_key)
        self.w3 = Web3(Web3.HTTPProvider(chain.rpcs[0], request_kwargs={"timeout": request_timeout}))

    @property
    def address(self) -> str:
        return self.account.address

    @property
    def chain(self) -> ChainInfo:
        return self._chain

    def get_transaction_count(self) -> int:
        return self.w3.eth.get_transaction_count(self.account.address)

    def build_transaction(self, transaction: ActionTransaction) -> dict[str, Any]:
        """
        Complete an action transaction with chain id, gas and EIP-1559 fees.

        Fees follow the node: the priority fee it suggests and a fee cap of
        twice the latest base fee plus that priority fee.
        """
        tx: dict[str, Any] = {
            "from": self.account.address,
            "nonce": transaction.nonce,
            "chainId": self._chain.id,
            "value": transaction.value or 0,
        }
        if transaction.to is not None:
            tx["to"] = Web3.to_checksum_address(transaction.to)
        if transaction.data is not None:
            tx["data"] = transaction.data

        latest_block = self.w3.eth.get_block("latest")
        base_fee = latest_block.get("baseFeePerGas") or self.w3.eth.gas_price
        priority_fee = int(self.w3.eth.max_priority_fee)
        tx["maxPriorityFeePerGas"] = priority_fee
        tx["maxFeePerGas"] = base_fee * 2 + priority_fee

        tx["gas"] = self.w3.eth.estimate_gas(tx)
        return tx

    def send_transaction(self, transaction: ActionTransaction) -> str:
        tx = self.build_transaction(transaction)
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    def wait_for_receipt(self, tx_hash: str) -> Any:
        return self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT_SECONDS)


def create_chain_clients(chains: dict[str, ChainInfo], private_key: str) -> dict[str, Web3ChainClient]:
    """One client per chain, in plan order."""
    clients = {chain_key: Web3ChainClient(chain, private_key) for chain_key, chain in chains.items()}
    for chain_key, client in clients.items():
        logger.info(
            "Chain client created",
            chain=chain_key,
            chain_id=client.chain.id,
            chain_name=client.chain.name,
            rpc=client.chain.rpcs[0],
        )
    return clients
