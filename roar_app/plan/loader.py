"""
Plan loading and chain extraction.

This module reads the YAML plan, checks the deployer the plan expects against
the configured one, and splits the plan into per-chain subtrees.
"""

from pathlib import Path
from typing import Optional, Union

import structlog
import yaml

from ..errors import ConfigFileError, DeployerMismatchError, PlanStructureError
from .models import Plan, PlanNode
from .naming import CHAIN_ID_KEY, DEPLOYER_KEY, is_address

logger = structlog.get_logger(__name__)


def load_plan(path: Union[str, Path], deployer_address: str) -> Plan:
    """
    Load a plan file and verify its expected deployer.

    Args:
        path: Plan YAML path
        deployer_address: Address derived from the configured private key

    Returns:
        Parsed plan mapping
    """
    path = Path(path)
    if not path.exists():
        raise ConfigFileError(f'Plan file "{path}" does not exist', context={"path": str(path)})

    with open(path) as f:
        plan = yaml.safe_load(f)

    if not isinstance(plan, dict):
        raise PlanStructureError(f'Plan file "{path}" must contain a mapping', reference="$")

    check_plan_deployer(plan, deployer_address)
    return plan


def check_plan_deployer(plan: Plan, deployer_address: str) -> Optional[bool]:
    """
    Compare the plan's expected deployer with the configured one.

    Returns:
        None when the plan expects no specific deployer, True on match
    """
    expected = plan.get(DEPLOYER_KEY)
    if expected is None:
        logger.info("Plan loaded", deployer="no specific one expected")
        return None

    if not is_address(expected):
        raise PlanStructureError(
            f'Plan "{DEPLOYER_KEY}" must be a hex address',
            reference=f"${DEPLOYER_KEY}"
        )

    if expected.lower() != deployer_address.lower():
        raise DeployerMismatchError(
            "Config deployer does not match deployer expected by plan",
            expected=expected,
            actual=deployer_address
        )

    logger.info("Plan loaded", deployer=expected, deployer_match=True)
    return True


def extract_chain_plans(plan: Plan) -> dict[str, dict[str, PlanNode]]:
    """
    Find the chain subtrees of a plan.

    A top-level mapping carrying an integer chain id is a chain; any other
    top-level entry is metadata or a shared namespace.

    Returns:
        Chain key to chain subtree, in plan order
    """
    chain_plans: dict[str, dict[str, PlanNode]] = {}
    for key, value in plan.items():
        if not isinstance(value, dict) or CHAIN_ID_KEY not in value:
            continue

        chain_id = value[CHAIN_ID_KEY]
        if isinstance(chain_id, bool) or not isinstance(chain_id, int):
            raise PlanStructureError(
                f'Plan specifies "{key}" object with "{CHAIN_ID_KEY}" attribute of a chain, '
                'but the attribute has invalid type (integer expected)',
                reference=f"${key}.{CHAIN_ID_KEY}"
            )

        chain_plans[str(key)] = value

    logger.info(
        "Plan chains extracted",
        chains=[f"{key} ({chain_plan[CHAIN_ID_KEY]})" for key, chain_plan in chain_plans.items()],
    )
    return chain_plans


def get_chain_id(chain_plan: dict[str, PlanNode]) -> int:
    return chain_plan[CHAIN_ID_KEY]  # type: ignore[no-any-return]
