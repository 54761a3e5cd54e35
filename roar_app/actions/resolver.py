"""
Action resolution (second resolution pass).

Turns each chain's ordered steps into Actions once every deploy address of
the run has been predicted, so steps may reference contracts declared later
or on other chains.
"""

from typing import Optional

from ..artifacts.models import ArtifactRegistry
from ..errors import InvalidTargetError
from ..logging.config import get_resolution_logger
from ..plan.models import Address, CallStep, DeployStep, Step, TransferStep
from ..plan.naming import is_address, serialize_reference
from .encoding import ActionEncoder, render_arguments
from .models import (
    Action,
    ActionTransaction,
    CallResolution,
    DeployRegistry,
    DeployResolution,
    TransferResolution,
)
from .prediction import collect_chain_deploys

logger = get_resolution_logger(__name__)


class ActionResolver:
    """
    Resolves steps into Actions against one run's registries.

    Args:
        artifacts: Registry of loaded artifacts
        deploys: Predicted deploy addresses of all chains
    """

    def __init__(self, artifacts: ArtifactRegistry, deploys: DeployRegistry):
        self.artifacts = artifacts
        self.deploys = deploys
        self.encoder = ActionEncoder(artifacts, deploys)

    def resolve_chain(self, chain_key: str, steps: list[Step], base_nonce: int) -> list[Action]:
        """
        Build the Actions of a chain; action ``i`` carries nonce ``base_nonce + i``.
        """
        actions = []
        for index, step in enumerate(steps):
            nonce = base_nonce + index
            description = f"Chain {chain_key} {step.type} action at #{index}"

            if isinstance(step, DeployStep):
                action = self._resolve_deploy(step, nonce, description)
            elif isinstance(step, CallStep):
                action = self._resolve_call(step, nonce, description)
            elif isinstance(step, TransferStep):
                action = self._resolve_transfer(step, nonce, description)
            else:
                raise TypeError(f"Unsupported step type: {type(step).__name__}")

            actions.append(action)
            logger.debug(
                "Action resolved",
                chain=chain_key,
                index=index,
                nonce=nonce,
                type=step.type,
                to=action.transaction.to,
                value=action.transaction.value,
            )

        logger.info("Chain actions resolved", chain=chain_key, actions=len(actions))
        return actions

    def _resolve_target(self, address: Address, description: str) -> str:
        target = self.encoder.resolve_value(address, description)
        if not is_address(target):
            raise InvalidTargetError(
                f'{description} has invalid target address "{target}"',
                target=str(target)
            )
        return target

    def _resolve_deploy(self, step: DeployStep, nonce: int, description: str) -> Action:
        result = self.encoder.encode_deploy(
            name=step.name,
            args=step.args,
            artifact_hint=step.artifact,
            description=description,
        )

        reference = serialize_reference(step.path)
        resolution = DeployResolution(
            name=step.name,
            reference=reference,
            artifact=result.artifact,
            arguments=render_arguments(result.args),
            address=self.deploys[reference],
        )
        transaction = ActionTransaction(nonce=nonce, to=None, data=result.data, value=step.value)
        return Action(resolution=resolution, transaction=transaction)

    def _resolve_call(self, step: CallStep, nonce: int, description: str) -> Action:
        target = self._resolve_target(step.target.address, description)
        result = self.encoder.encode_call(
            name=step.name,
            target_name=step.target.name,
            args=step.args,
            signature_hint=step.signature,
            artifact_hint=step.artifact,
            description=description,
        )

        function_name = result.signature.split("(", 1)[0] if result.signature else step.name
        resolution = CallResolution(
            name=f"{step.target.name}.{function_name}",
            artifact=result.artifact,
            function=result.signature or "",
            selector=result.selector or "",
            arguments=render_arguments(result.args),
        )
        transaction = ActionTransaction(nonce=nonce, to=target, data=result.data, value=step.value)
        return Action(resolution=resolution, transaction=transaction)

    def _resolve_transfer(self, step: TransferStep, nonce: int, description: str) -> Action:
        target = self._resolve_target(step.target.address, description)
        transaction = ActionTransaction(nonce=nonce, to=target, data=None, value=step.value)
        return Action(resolution=TransferResolution(), transaction=transaction)


def resolve_chain_actions(
    chain_steps: dict[str, list[Step]],
    chain_nonces: dict[str, int],
    deployer: str,
    artifacts: ArtifactRegistry,
    deploys: Optional[DeployRegistry] = None,
) -> dict[str, list[Action]]:
    """
    Run both resolution passes over all chains.

    Deploy prediction covers every chain before any Action is built, which is
    what lets a step reference a contract deployed on another chain.

    Returns:
        Chain key to its Actions, in chain order
    """
    deploys = {} if deploys is None else deploys
    for chain_key, steps in chain_steps.items():
        collect_chain_deploys(deploys, chain_key, steps, deployer, chain_nonces[chain_key])

    resolver = ActionResolver(artifacts, deploys)
    return {
        chain_key: resolver.resolve_chain(chain_key, steps, chain_nonces[chain_key])
        for chain_key, steps in chain_steps.items()
    }
