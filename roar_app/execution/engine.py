"""
Per-chain action execution.

Each chain runs its Actions strictly in order on its own worker thread. Before
every attempt the deployer's on-chain transaction count is compared with the
action's nonce:

- equal: the action is sent and its receipt awaited, then the next one runs
- ahead: the action is assumed to have been sent by an earlier run and skipped
- behind: the node may be lagging, so the attempt is retried a bounded number
  of times; after that the earlier actions are assumed reverted and the
  executor steps back to the action matching the chain's nonce

Errors from the chain client are logged and retried without limit. Workers
share a stop event: once it is set every worker returns after its current
attempt, and retry delays end early.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, Optional

from ..actions.models import Action
from ..config.defaults import ExecutionParams
from ..errors import NonceBehindError
from ..logging.config import get_execution_logger, log_action_outcome
from .clients import ChainClient

logger = get_execution_logger(__name__)

Sleep = Callable[[float], None]


class ActionOutcome(str, Enum):
    """Result of a single action attempt."""
    SENT = "sent"
    SKIPPED = "skipped"
    RETREATED = "retreated"
    RETRYING = "retrying"


def retreat_delta(action_nonce: int, chain_nonce: int) -> int:
    """Number of actions to step back when the chain is behind the action."""
    return action_nonce - chain_nonce


class ChainExecutor:
    """
    Sequential executor of one chain's actions.

    Args:
        chain_key: Chain the actions belong to
        actions: Actions in nonce order
        client: Chain client of the deployer
        params: Retry configuration
        sleep: Delay function, replaceable in tests; waits on the stop event when unset
        stop: Event that ends the run between attempts
    """

    def __init__(
        self,
        chain_key: str,
        actions: list[Action],
        client: ChainClient,
        params: ExecutionParams,
        sleep: Optional[Sleep] = None,
        stop: Optional[threading.Event] = None,
    ):
        self.chain_key = chain_key
        self.actions = actions
        self.client = client
        self.params = params
        self.sleep = sleep
        self.stop = stop or threading.Event()
        self.logger = get_execution_logger(__name__, chain=chain_key)
        self.outcomes: list[tuple[int, ActionOutcome]] = []

    @property
    def retry_delay(self) -> float:
        return self.params.retry_delay_ms / 1000

    def _pause(self) -> None:
        if self.sleep is not None:
            self.sleep(self.retry_delay)
        else:
            self.stop.wait(self.retry_delay)

    def execute_action(self, index: int, behind_retries: int) -> tuple[ActionOutcome, int]:
        """
        Make one attempt at the action at the index.

        Returns:
            Outcome and the index delta to apply

        Raises:
            NonceBehindError: chain nonce is behind and retries remain
        """
        action = self.actions[index]
        nonce = action.nonce
        chain_nonce = self.client.get_transaction_count()

        if chain_nonce == nonce:
            self._send(action, index)
            return ActionOutcome.SENT, 1

        if chain_nonce > nonce:
            self.logger.warning(
                "On-chain nonce is ahead of action nonce, assuming action was executed",
                action_index=index,
                nonce=nonce,
                chain_nonce=chain_nonce,
            )
            return ActionOutcome.SKIPPED, 1

        if behind_retries < self.params.nonce_behind_retries:
            raise NonceBehindError(
                "On-chain nonce is behind action nonce",
                action_nonce=nonce,
                chain_nonce=chain_nonce,
                retry_count=behind_retries,
                max_retries=self.params.nonce_behind_retries
            )

        return ActionOutcome.RETREATED, -retreat_delta(nonce, chain_nonce)

    def _send(self, action: Action, index: int) -> Any:
        transaction = action.transaction
        self.logger.info(
            "Executing action",
            action_index=index,
            nonce=transaction.nonce,
            to=transaction.to,
            value=transaction.value,
            type=action.resolution.type,
        )

        tx_hash = self.client.send_transaction(transaction)
        self.logger.info("Action transaction sent", action_index=index, tx_hash=tx_hash)

        receipt = self.client.wait_for_receipt(tx_hash)
        self.logger.info(
            "Action transaction receipt",
            action_index=index,
            tx_hash=tx_hash,
            block=_receipt_field(receipt, "blockNumber"),
            gas_used=_receipt_field(receipt, "gasUsed"),
            contract=_receipt_field(receipt, "contractAddress"),
        )
        return receipt

    def run(self) -> list[tuple[int, ActionOutcome]]:
        """
        Execute all actions, returning the outcome of every finished attempt.
        """
        total = len(self.actions)
        self.logger.info("Chain execution started", actions=total)

        index = 0
        behind_retries = 0
        transport_retries = 0
        while index < total:
            if self.stop.is_set():
                self.logger.warning("Chain execution stopped", action_index=index, actions=total)
                return self.outcomes

            nonce = self.actions[index].nonce
            try:
                outcome, delta = self.execute_action(index, behind_retries)
            except NonceBehindError as e:
                behind_retries += 1
                log_action_outcome(self.logger, index, total, nonce, ActionOutcome.RETRYING.value, {
                    "reason": "nonce_behind",
                    "chain_nonce": e.chain_nonce,
                    "retry": behind_retries,
                    "max_retries": self.params.nonce_behind_retries,
                })
                self._pause()
                continue
            except Exception as e:
                transport_retries += 1
                log_action_outcome(self.logger, index, total, nonce, ActionOutcome.RETRYING.value, {
                    "reason": "error",
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "retry": transport_retries,
                })
                self._pause()
                continue

            log_action_outcome(self.logger, index, total, nonce, outcome.value)
            self.outcomes.append((index, outcome))

            index = max(index + delta, 0)
            behind_retries = 0
            transport_retries = 0

        self.logger.info("Chain execution finished", actions=total)
        return self.outcomes


def _receipt_field(receipt: Any, name: str) -> Optional[Any]:
    if receipt is None:
        return None
    if isinstance(receipt, dict):
        return receipt.get(name)
    return getattr(receipt, name, None)


def execute_chain_actions(
    chain_actions: dict[str, list[Action]],
    clients: dict[str, ChainClient],
    params: ExecutionParams,
    sleep: Optional[Sleep] = None,
    stop: Optional[threading.Event] = None,
) -> dict[str, list[tuple[int, ActionOutcome]]]:
    """
    Execute every chain's actions concurrently, one worker per chain.

    In dry-run mode nothing is sent and an empty result is returned. On
    KeyboardInterrupt the stop event is set, pending workers are cancelled
    and the interrupt is re-raised without waiting for running workers.

    Returns:
        Chain key to the outcomes of its executor
    """
    for chain_key, actions in chain_actions.items():
        logger.info("Chain actions to execute", chain=chain_key, actions=len(actions))

    if params.dry_run:
        logger.info("Dry run enabled, no transactions sent", chains=len(chain_actions))
        return {}

    stop = stop or threading.Event()
    executors = {
        chain_key: ChainExecutor(chain_key, actions, clients[chain_key], params, sleep=sleep, stop=stop)
        for chain_key, actions in chain_actions.items()
    }

    pool = ThreadPoolExecutor(max_workers=max(len(executors), 1), thread_name_prefix="roar-chain")
    try:
        futures = {chain_key: pool.submit(executor.run) for chain_key, executor in executors.items()}
        results = {chain_key: future.result() for chain_key, future in futures.items()}
    except KeyboardInterrupt:
        logger.warning("Execution interrupted, stopping chain workers", chains=len(executors))
        stop.set()
        pool.shutdown(wait=False, cancel_futures=True)
        raise
    pool.shutdown()

    logger.info("All chain actions executed", chains=len(results))
    return results
