"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Any, Callable, Optional

import orjson
import pytest
import yaml

from roar_app.actions.models import ActionTransaction
from roar_app.artifacts.loader import load_artifacts
from roar_app.artifacts.models import ArtifactRegistry
from roar_app.execution.chains import ChainInfo

# Hardhat development account #0
HARDHAT_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
HARDHAT_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

BYTECODE = "0x6080604052"

TOKEN_ABI = [
    {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "name_", "type": "string", "internalType": "string"},
            {"name": "symbol_", "type": "string", "internalType": "string"},
        ],
    },
    {
        "type": "function",
        "name": "mint",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address", "internalType": "address"},
            {"name": "amount", "type": "uint256", "internalType": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "transfer",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address", "internalType": "address"},
            {"name": "amount", "type": "uint256", "internalType": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool", "internalType": "bool"}],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address", "internalType": "address"}],
        "outputs": [{"name": "", "type": "uint256", "internalType": "uint256"}],
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
]

TOKEN_A_ABI = [
    {
        "type": "function",
        "name": "mint",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address", "internalType": "address"},
            {"name": "amount", "type": "uint256", "internalType": "uint256"},
        ],
        "outputs": [],
    },
]

VAULT_ABI = [
    {
        "type": "constructor",
        "stateMutability": "payable",
        "inputs": [{"name": "_token", "type": "address", "internalType": "address"}],
    },
    {
        "type": "function",
        "name": "setLimit",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "limit", "type": "uint256", "internalType": "uint256"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "setLimit",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "account", "type": "address", "internalType": "address"},
            {"name": "limit", "type": "uint256", "internalType": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "configure",
        "stateMutability": "nonpayable",
        "inputs": [
            {
                "name": "params",
                "type": "tuple",
                "internalType": "struct Vault.Params",
                "components": [
                    {"name": "limit", "type": "uint256", "internalType": "uint256"},
                    {"name": "enabled", "type": "bool", "internalType": "bool"},
                ],
            },
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "execute",
        "stateMutability": "payable",
        "inputs": [{"name": "data", "type": "bytes", "internalType": "bytes"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "setOwners",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "owners", "type": "address[]", "internalType": "address[]"}],
        "outputs": [],
    },
]

PROXY_ABI = [
    {
        "type": "constructor",
        "stateMutability": "payable",
        "inputs": [
            {"name": "implementation", "type": "address", "internalType": "address"},
            {"name": "data", "type": "bytes", "internalType": "bytes"},
        ],
    },
]


def write_artifact(
    root: Path,
    source: str,
    name: str,
    abi: list[dict[str, Any]],
    bytecode: str = BYTECODE,
) -> Path:
    """Write a Hardhat-style artifact file under the root."""
    path = root / source / f"{name}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps({
        "_format": "hh-sol-artifact-1",
        "contractName": name,
        "sourceName": source,
        "abi": abi,
        "bytecode": bytecode,
        "deployedBytecode": bytecode,
        "linkReferences": {},
        "deployedLinkReferences": {},
    }))
    return path


@pytest.fixture
def hardhat_key() -> str:
    """Private key of the first Hardhat development account."""
    return HARDHAT_KEY


@pytest.fixture
def hardhat_address() -> str:
    """Checksummed address of the first Hardhat development account."""
    return HARDHAT_ADDRESS


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    """Artifacts directory with Token, TokenA, Vault and two Proxy contracts."""
    root = tmp_path / "artifacts"
    write_artifact(root, "contracts/Token.sol", "Token", TOKEN_ABI)
    write_artifact(root, "contracts/TokenA.sol", "TokenA", TOKEN_A_ABI)
    write_artifact(root, "contracts/Vault.sol", "Vault", VAULT_ABI)
    write_artifact(root, "contracts/proxy/Proxy.sol", "Proxy", PROXY_ABI)
    write_artifact(root, "contracts/legacy/Proxy.sol", "Proxy", PROXY_ABI, bytecode="0x6001")

    # Files the loader must ignore
    debug = root / "contracts/Token.sol/Token.dbg.json"
    debug.write_bytes(orjson.dumps({"_format": "hh-sol-dbg-1", "buildInfo": "../../build-info/abc.json"}))
    build_info = root / "build-info" / "abc.json"
    build_info.parent.mkdir(parents=True)
    build_info.write_bytes(orjson.dumps({"id": "abc"}))
    return root


@pytest.fixture
def artifact_registry(artifacts_dir: Path) -> ArtifactRegistry:
    """Registry loaded from the test artifacts directory."""
    return load_artifacts(artifacts_dir)


@pytest.fixture
def write_yaml(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Write a YAML document below the temporary directory."""
    def write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False))
        return path

    return write


class FakeChainClient:
    """
    Scripted chain client.

    Transaction counts are served from the script in order, the last one
    repeating. Entries that are exceptions are raised instead of returned.
    When no script is given the count follows the sent transactions.
    """

    def __init__(
        self,
        chain: ChainInfo,
        address: str = HARDHAT_ADDRESS,
        counts: Optional[list[Any]] = None,
        start_nonce: int = 0,
    ):
        self._chain = chain
        self._address = address
        self.counts = list(counts) if counts is not None else None
        self.nonce = start_nonce
        self.sent: list[ActionTransaction] = []
        self.count_calls = 0

    @property
    def address(self) -> str:
        return self._address

    @property
    def chain(self) -> ChainInfo:
        return self._chain

    def get_transaction_count(self) -> int:
        self.count_calls += 1
        if self.counts is None:
            return self.nonce

        entry = self.counts.pop(0) if len(self.counts) > 1 else self.counts[0]
        if isinstance(entry, Exception):
            raise entry
        return entry

    def send_transaction(self, transaction: ActionTransaction) -> str:
        self.sent.append(transaction)
        self.nonce = transaction.nonce + 1
        return f"0x{len(self.sent):064x}"

    def wait_for_receipt(self, tx_hash: str) -> dict[str, Any]:
        return {"transactionHash": tx_hash, "blockNumber": len(self.sent), "gasUsed": 21000}


@pytest.fixture
def make_chain_client() -> Callable[..., FakeChainClient]:
    """Factory of scripted chain clients."""
    def make(key: str = "local", chain_id: int = 31337, **kwargs: Any) -> FakeChainClient:
        chain = ChainInfo(key=key, id=chain_id, name="Hardhat", rpcs=("http://127.0.0.1:8545",))
        return FakeChainClient(chain, **kwargs)

    return make
