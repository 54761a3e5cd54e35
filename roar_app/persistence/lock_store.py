"""Nonce lock persistence keeping a plan's base nonces stable across runs."""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol, Union

import structlog
import yaml

from ..errors import LockConsistencyError, LockFormatError, PersistenceError

logger = structlog.get_logger(__name__)


class NonceSource(Protocol):
    """Anything that reports the deployer's current transaction count."""

    def get_transaction_count(self) -> int: ...


@dataclass
class Lock:
    """Base nonce of every chain of a plan."""
    nonces: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"nonces": dict(self.nonces)}

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "Lock":
        """Validate raw lock YAML content."""
        if not isinstance(data, dict) or not isinstance(data.get("nonces"), dict):
            raise LockFormatError(f'Invalid lock "{path}": "nonces" field (mapping expected)', path=path)

        nonces = {}
        for chain_key, nonce in data["nonces"].items():
            if isinstance(nonce, bool) or not isinstance(nonce, int) or nonce < 0:
                raise LockFormatError(
                    f'Invalid lock "{path}": "nonces" value of "{chain_key}" (non-negative integer expected)',
                    path=path
                )
            nonces[str(chain_key)] = nonce

        return cls(nonces=nonces)


class LockStore:
    """YAML lock files stored under a locks directory, one per plan path."""

    def __init__(self, locks_dir: Union[str, Path] = "locks"):
        self.locks_dir = Path(locks_dir)
        self._lock = threading.Lock()

    def get_lock_path(self, plan_path: Union[str, Path]) -> Path:
        """Lock file of a plan mirrors the plan path inside the locks directory."""
        plan_path = Path(plan_path)
        if plan_path.is_absolute():
            plan_path = plan_path.relative_to(plan_path.anchor)
        return self.locks_dir / plan_path

    def load(self, plan_path: Union[str, Path]) -> Optional[Lock]:
        """
        Load the lock of a plan.

        Returns:
            Lock, or None when the plan has never been run
        """
        path = self.get_lock_path(plan_path)
        if not path.exists():
            logger.info("Lock does not exist", path=str(path))
            return None

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise LockFormatError(f'Invalid lock "{path}": {e}', path=str(path)) from e

        lock = Lock.from_dict(data, str(path))
        logger.info("Lock loaded", path=str(path), nonces=lock.nonces)
        return lock

    def save(self, plan_path: Union[str, Path], lock: Lock) -> Path:
        """Write the lock of a plan, creating parent directories."""
        path = self.get_lock_path(plan_path)
        with self._lock:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(path, "w") as f:
                    yaml.safe_dump(lock.to_dict(), f, sort_keys=False)
            except OSError as e:
                raise PersistenceError(
                    f'Failed to save lock "{path}": {e}',
                    operation="save_lock",
                    target=str(path)
                ) from e

        logger.info("Lock saved", path=str(path), nonces=lock.nonces)
        return path


def check_lock_chains(lock: Lock, chain_keys: list[str], lock_path: str) -> None:
    """The lock must name exactly the chains of the plan."""
    lock_chains = sorted(lock.nonces)
    plan_chains = sorted(chain_keys)
    if lock_chains != plan_chains:
        raise LockConsistencyError(
            f'Lock "{lock_path}" chains "{", ".join(lock_chains)}" ({len(lock_chains)}) '
            f'are not the same as the plan chains "{", ".join(plan_chains)}" ({len(plan_chains)})',
            lock_chains=lock_chains,
            plan_chains=plan_chains
        )


def resolve_chain_nonces(
    store: LockStore,
    plan_path: Union[str, Path],
    sources: dict[str, NonceSource],
) -> dict[str, int]:
    """
    Determine the base nonce of every chain.

    The first run of a plan reads the deployer's transaction counts
    concurrently and records them; every later run reuses the recorded values
    so the predicted addresses stay the same.

    Args:
        store: Lock store
        plan_path: Plan the lock belongs to
        sources: Chain key to nonce source, in plan order

    Returns:
        Chain key to base nonce, in plan order
    """
    lock = store.load(plan_path)
    if lock is not None:
        check_lock_chains(lock, list(sources), str(store.get_lock_path(plan_path)))
        return {chain_key: lock.nonces[chain_key] for chain_key in sources}

    with ThreadPoolExecutor(max_workers=max(len(sources), 1)) as executor:
        futures = {
            chain_key: executor.submit(source.get_transaction_count)
            for chain_key, source in sources.items()
        }
        nonces = {chain_key: future.result() for chain_key, future in futures.items()}

    store.save(plan_path, Lock(nonces=nonces))
    return nonces
