"""Known chains and RPC endpoint resolution."""

from dataclasses import dataclass
from typing import Optional

from ..errors import UnsupportedChainError


@dataclass(frozen=True)
class ChainInfo:
    """Chain a plan section runs on."""
    key: str
    id: int
    name: str
    rpcs: tuple[str, ...]


# Chain id to (name, default public RPCs)
KNOWN_CHAINS: dict[int, tuple[str, tuple[str, ...]]] = {
    1: ("Ethereum", ("https://eth.merkle.io",)),
    10: ("OP Mainnet", ("https://mainnet.optimism.io",)),
    56: ("BNB Smart Chain", ("https://56.rpc.thirdweb.com",)),
    100: ("Gnosis", ("https://rpc.gnosischain.com",)),
    137: ("Polygon", ("https://polygon-rpc.com",)),
    8453: ("Base", ("https://mainnet.base.org",)),
    17000: ("Holesky", ("https://ethereum-holesky-rpc.publicnode.com",)),
    31337: ("Hardhat", ("http://127.0.0.1:8545",)),
    42161: ("Arbitrum One", ("https://arb1.arbitrum.io/rpc",)),
    43114: ("Avalanche", ("https://api.avax.network/ext/bc/C/rpc",)),
    84532: ("Base Sepolia", ("https://sepolia.base.org",)),
    11155111: ("Sepolia", ("https://sepolia.drpc.org",)),
}


def resolve_chain_info(
    chain_key: str,
    chain_id: int,
    rpcs: Optional[dict[int, list[str]]] = None,
) -> ChainInfo:
    """
    Build chain details from the known table and configured RPC overrides.

    Configured RPCs replace the defaults of a known chain and make unknown
    chain ids usable.
    """
    configured = (rpcs or {}).get(chain_id)
    known = KNOWN_CHAINS.get(chain_id)

    if known is None and not configured:
        raise UnsupportedChainError(
            f'Chain "{chain_key}" has unsupported id {chain_id}: '
            f'configure an RPC endpoint for it under "rpcs"',
            chain_id=chain_id
        )

    name = known[0] if known else f"Chain {chain_id}"
    endpoints = tuple(configured) if configured else known[1]  # type: ignore[index]
    return ChainInfo(key=chain_key, id=chain_id, name=name, rpcs=endpoints)


def resolve_chain_infos(
    chain_ids: dict[str, int],
    rpcs: Optional[dict[int, list[str]]] = None,
) -> dict[str, ChainInfo]:
    """Resolve every chain of a plan, failing before any network access."""
    return {
        chain_key: resolve_chain_info(chain_key, chain_id, rpcs)
        for chain_key, chain_id in chain_ids.items()
    }
