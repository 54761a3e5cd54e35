"""
Plan spec export.

A plan spec is the fully resolved form of a plan: for every chain, the chain
details, the deployer with its base nonce and the list of Actions. It is
written before execution so the exact transactions can be reviewed.
"""

from pathlib import Path
from typing import Any, Union

import structlog
import yaml

from ..actions.models import Action
from ..errors import PersistenceError
from ..execution.chains import ChainInfo

logger = structlog.get_logger(__name__)


def generate_plan_spec(
    args: dict[str, str],
    deployer_address: str,
    chains: dict[str, ChainInfo],
    chain_nonces: dict[str, int],
    chain_actions: dict[str, list[Action]],
) -> dict[str, Any]:
    """
    Build the plan spec document.

    Args:
        args: Paths the run was started with
        deployer_address: Sender of every action
        chains: Chain key to chain details
        chain_nonces: Chain key to base nonce
        chain_actions: Chain key to resolved actions
    """
    spec: dict[str, Any] = {
        "args": dict(args),
        "deployer": {"address": deployer_address},
        "chains": {},
    }

    for chain_key, actions in chain_actions.items():
        chain = chains[chain_key]
        spec["chains"][chain_key] = {
            "chain": {
                "id": chain.id,
                "key": chain_key,
                "name": chain.name,
                "rpcs": list(chain.rpcs),
            },
            "deployer": {
                "address": deployer_address,
                "nonce": chain_nonces[chain_key],
            },
            "actions": [action.to_dict() for action in actions],
        }

    return spec


def save_plan_spec(path: Union[str, Path], spec: dict[str, Any]) -> Path:
    """Write a plan spec as YAML, creating parent directories."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(spec, f, sort_keys=False)
    except OSError as e:
        raise PersistenceError(
            f'Failed to save plan spec "{path}": {e}',
            operation="save_spec",
            target=str(path)
        ) from e

    logger.info("Plan spec saved", path=str(path), chains=len(spec.get("chains", {})))
    return path
