"""
Main deployment engine coordinator.

Orchestrates a plan run: configuration and plan loading, artifact discovery,
nonce locking, step evaluation, two-pass action resolution, plan spec export
and per-chain execution.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from .actions.models import Action
from .actions.resolver import resolve_chain_actions
from .artifacts.loader import load_artifacts
from .config.defaults import PathParams
from .config.loader import ConfigLoader
from .execution.chains import ChainInfo, resolve_chain_infos
from .execution.clients import ChainClient, create_chain_clients
from .execution.engine import ActionOutcome, Sleep, execute_chain_actions
from .persistence.lock_store import LockStore, resolve_chain_nonces
from .persistence.spec_store import generate_plan_spec, save_plan_spec
from .plan.evaluator import resolve_chain_steps
from .plan.loader import extract_chain_plans, get_chain_id, load_plan

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[dict[str, ChainInfo], str], dict[str, ChainClient]]


@dataclass
class RunResult:
    """What a plan run resolved and executed."""
    deployer: str
    chain_nonces: dict[str, int] = field(default_factory=dict)
    chain_actions: dict[str, list[Action]] = field(default_factory=dict)
    outcomes: dict[str, list[tuple[int, ActionOutcome]]] = field(default_factory=dict)
    spec_path: Optional[Path] = None


class DeploymentEngine:
    """
    Main coordinator for multi-chain plan deployment.

    Manages the run pipeline:
    Config → Plan → Artifacts → Steps → Lock → Deploys → Actions → Spec → Execution
    """

    def __init__(
        self,
        paths: Optional[PathParams] = None,
        client_factory: ClientFactory = create_chain_clients,  # type: ignore[assignment]
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.paths = paths or PathParams()
        self.config_loader = ConfigLoader.create(Path(self.paths.config))
        self.lock_store = LockStore(self.paths.locks)
        self.client_factory = client_factory
        self.sleep = sleep

        logger.info(
            "Deployment engine initialized",
            plan=self.paths.plan,
            config=self.paths.config,
            artifacts=self.paths.artifacts,
            locks=self.paths.locks,
            spec=self.paths.spec or None,
        )

    def run(self, overrides: Optional[dict[str, Any]] = None) -> RunResult:
        """
        Run the plan end to end.

        Args:
            overrides: Config values taking precedence over the config file

        Returns:
            Run result; outcomes are empty in dry-run mode
        """
        config = self.config_loader.load(overrides)
        deployer = config.deployer_address

        plan = load_plan(self.paths.plan, deployer)
        chain_plans = extract_chain_plans(plan)
        chains = resolve_chain_infos(
            {chain_key: get_chain_id(chain_plan) for chain_key, chain_plan in chain_plans.items()},
            config.rpcs,
        )

        artifacts = load_artifacts(self.paths.artifacts)
        chain_steps = resolve_chain_steps(plan, chain_plans)

        clients = self.client_factory(chains, config.private_key)
        chain_nonces = resolve_chain_nonces(self.lock_store, self.paths.plan, clients)

        chain_actions = resolve_chain_actions(chain_steps, chain_nonces, deployer, artifacts)
        result = RunResult(deployer=deployer, chain_nonces=chain_nonces, chain_actions=chain_actions)

        if self.paths.spec:
            spec = generate_plan_spec(
                args=self._args(),
                deployer_address=deployer,
                chains=chains,
                chain_nonces=chain_nonces,
                chain_actions=chain_actions,
            )
            result.spec_path = save_plan_spec(self.paths.spec, spec)

        result.outcomes = execute_chain_actions(chain_actions, clients, config.execution, sleep=self.sleep)
        return result

    def _args(self) -> dict[str, str]:
        return {
            "plan": self.paths.plan,
            "config": self.paths.config,
            "artifacts": self.paths.artifacts,
            "locks": self.paths.locks,
            "spec": self.paths.spec,
        }
