"""Deploy address prediction (first resolution pass)."""

from eth_utils import to_checksum_address
from web3.utils.address import get_create_address

from ..errors import DuplicateDeployError
from ..logging.config import get_resolution_logger
from ..plan.models import DeployStep, Step
from ..plan.naming import serialize_reference
from .models import DeployRegistry

logger = get_resolution_logger(__name__)


def predict_deploy_address(deployer: str, nonce: int) -> str:
    """CREATE address of a contract deployed by the deployer at the nonce."""
    return to_checksum_address(get_create_address(to_checksum_address(deployer), nonce))


def collect_chain_deploys(
    deploys: DeployRegistry,
    chain_key: str,
    steps: list[Step],
    deployer: str,
    base_nonce: int,
) -> None:
    """
    Register the predicted address of every deploy step of a chain.

    Step ``i`` of the chain is sent with nonce ``base_nonce + i``, so its
    creation address is known before anything is sent. Every deploy path may
    be registered once per run.

    Args:
        deploys: Registry shared by all chains of the run, updated in place
        chain_key: Chain the steps belong to
        steps: Ordered steps of the chain
        deployer: Sender address
        base_nonce: Locked nonce of the first step
    """
    indices: dict[str, int] = {}
    for index, step in enumerate(steps):
        if not isinstance(step, DeployStep):
            continue

        reference = serialize_reference(step.path)
        if reference in deploys:
            raise DuplicateDeployError(
                f'Deploy reference "{reference}" duplicate (#{index} vs #{indices.get(reference, "?")})',
                reference=reference
            )

        nonce = base_nonce + index
        address = predict_deploy_address(deployer, nonce)
        deploys[reference] = address
        indices[reference] = index

        logger.debug(
            "Deploy address predicted",
            chain=chain_key,
            index=index,
            nonce=nonce,
            address=address,
            contract=step.name,
            reference=reference,
        )

    logger.info("Chain deploys collected", chain=chain_key, deploys=len(indices))
