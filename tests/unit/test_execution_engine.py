"""Unit tests for per-chain action execution."""

import threading
import time
from typing import Callable
from unittest.mock import Mock

import pytest

from roar_app.actions.models import Action, ActionTransaction, TransferResolution
from roar_app.config.defaults import ExecutionParams
from roar_app.execution.engine import ActionOutcome, ChainExecutor, execute_chain_actions, retreat_delta
from roar_app.logging.config import log_action_outcome

RECIPIENT = "0x000000000000000000000000000000000000dead"


def make_actions(base_nonce: int, count: int) -> list[Action]:
    return [
        Action(
            resolution=TransferResolution(),
            transaction=ActionTransaction(nonce=base_nonce + index, to=RECIPIENT, value=1),
        )
        for index in range(count)
    ]


@pytest.fixture
def params() -> ExecutionParams:
    """Live execution with two nonce-behind retries and no delay."""
    return ExecutionParams(dry_run=False, retry_delay_ms=0, nonce_behind_retries=2)


class TestRetreatDelta:
    """Test suite for retreat distance."""

    def test_retreat_delta(self) -> None:
        """Test the number of actions to step back."""
        assert retreat_delta(7, 6) == 1
        assert retreat_delta(10, 4) == 6


class TestChainExecutor:
    """Test suite for the sequential chain executor."""

    def test_all_actions_sent(self, make_chain_client: Callable, params: ExecutionParams) -> None:
        """Test the happy path: chain nonce matches every action."""
        client = make_chain_client(start_nonce=5)
        executor = ChainExecutor("local", make_actions(5, 3), client, params, sleep=Mock())

        outcomes = executor.run()

        assert outcomes == [(0, ActionOutcome.SENT), (1, ActionOutcome.SENT), (2, ActionOutcome.SENT)]
        assert [tx.nonce for tx in client.sent] == [5, 6, 7]

    def test_nonce_ahead_skips_action(self, make_chain_client: Callable, params: ExecutionParams) -> None:
        """Test that actions below the chain nonce are assumed done."""
        client = make_chain_client(counts=[6])
        executor = ChainExecutor("local", make_actions(5, 2), client, params, sleep=Mock())

        outcomes = executor.run()

        assert outcomes == [(0, ActionOutcome.SKIPPED), (1, ActionOutcome.SENT)]
        assert [tx.nonce for tx in client.sent] == [6]
        assert client.count_calls == 2

    def test_nonce_behind_recovers(self, make_chain_client: Callable, params: ExecutionParams) -> None:
        """Test that a lagging node is waited for within the retry budget."""
        client = make_chain_client(counts=[4, 4, 5])
        sleep = Mock()
        executor = ChainExecutor("local", make_actions(5, 1), client, params, sleep=sleep)

        outcomes = executor.run()

        assert outcomes == [(0, ActionOutcome.SENT)]
        assert sleep.call_count == 2
        assert client.count_calls == 3

    def test_nonce_behind_retreats(self, make_chain_client: Callable, params: ExecutionParams) -> None:
        """Test stepping back to the action matching the chain nonce."""
        client = make_chain_client(counts=[5, 6, 6, 6, 6, 6, 7])
        executor = ChainExecutor("local", make_actions(5, 3), client, params, sleep=Mock())

        outcomes = executor.run()

        assert outcomes == [
            (0, ActionOutcome.SENT),
            (1, ActionOutcome.SENT),
            (2, ActionOutcome.RETREATED),
            (1, ActionOutcome.SENT),
            (2, ActionOutcome.SENT),
        ]
        assert [tx.nonce for tx in client.sent] == [5, 6, 6, 7]

    def test_retreat_never_goes_below_first_action(self, make_chain_client: Callable) -> None:
        """Test that a chain far behind restarts from the first action."""
        params = ExecutionParams(dry_run=False, retry_delay_ms=0, nonce_behind_retries=0)
        client = make_chain_client(counts=[0, 5])
        executor = ChainExecutor("local", make_actions(5, 1), client, params, sleep=Mock())

        outcomes = executor.run()

        assert outcomes == [(0, ActionOutcome.RETREATED), (0, ActionOutcome.SENT)]

    def test_client_errors_are_retried(self, make_chain_client: Callable) -> None:
        """Test that transport errors are retried after the delay."""
        params = ExecutionParams(dry_run=False, retry_delay_ms=1500, nonce_behind_retries=0)
        client = make_chain_client(counts=[ConnectionError("node down"), ConnectionError("node down"), 5])
        sleep = Mock()
        executor = ChainExecutor("local", make_actions(5, 1), client, params, sleep=sleep)

        outcomes = executor.run()

        assert outcomes == [(0, ActionOutcome.SENT)]
        assert sleep.call_count == 2
        sleep.assert_called_with(1.5)

    def test_stop_event_ends_retry_wait(self) -> None:
        """Test that setting the stop event ends a chain stuck retrying."""
        params = ExecutionParams(dry_run=False, retry_delay_ms=60_000, nonce_behind_retries=0)
        stop = threading.Event()

        def unreachable() -> int:
            stop.set()
            raise ConnectionError("connection refused")

        client = Mock()
        client.get_transaction_count.side_effect = unreachable
        executor = ChainExecutor("local", make_actions(5, 2), client, params, stop=stop)

        started = time.monotonic()
        outcomes = executor.run()

        assert outcomes == []
        assert time.monotonic() - started < 5
        assert client.get_transaction_count.call_count == 1
        client.send_transaction.assert_not_called()

    def test_stopped_before_start(self, make_chain_client: Callable, params: ExecutionParams) -> None:
        """Test that a stopped executor sends nothing."""
        client = make_chain_client(start_nonce=5)
        stop = threading.Event()
        stop.set()

        assert ChainExecutor("local", make_actions(5, 2), client, params, stop=stop).run() == []
        assert client.count_calls == 0

    def test_empty_chain(self, make_chain_client: Callable, params: ExecutionParams) -> None:
        """Test that a chain without actions finishes immediately."""
        client = make_chain_client()
        assert ChainExecutor("local", [], client, params, sleep=Mock()).run() == []
        assert client.count_calls == 0


class TestExecuteChainActions:
    """Test suite for concurrent execution across chains."""

    def test_dry_run_sends_nothing(self, make_chain_client: Callable) -> None:
        """Test that dry runs only log."""
        client = make_chain_client(start_nonce=0)

        results = execute_chain_actions({"local": make_actions(0, 2)}, {"local": client}, ExecutionParams())

        assert results == {}
        assert client.sent == []
        assert client.count_calls == 0

    def test_chains_run_independently(self, make_chain_client: Callable, params: ExecutionParams) -> None:
        """Test that every chain is executed with its own client."""
        eth = make_chain_client("eth", 1, start_nonce=3)
        base = make_chain_client("base", 8453, start_nonce=0)

        results = execute_chain_actions(
            {"eth": make_actions(3, 2), "base": make_actions(0, 1)},
            {"eth": eth, "base": base},
            params,
            sleep=Mock(),
        )

        assert list(results) == ["eth", "base"]
        assert results["eth"] == [(0, ActionOutcome.SENT), (1, ActionOutcome.SENT)]
        assert results["base"] == [(0, ActionOutcome.SENT)]
        assert [tx.nonce for tx in eth.sent] == [3, 4]
        assert [tx.nonce for tx in base.sent] == [0]

    def test_interrupt_stops_retrying_chains(self) -> None:
        """Test that an interrupt is re-raised and stops workers stuck in retry waits."""
        params = ExecutionParams(dry_run=False, retry_delay_ms=60_000, nonce_behind_retries=0)
        interrupted = Mock()
        interrupted.get_transaction_count.side_effect = KeyboardInterrupt
        unreachable = Mock()
        unreachable.get_transaction_count.side_effect = ConnectionError("connection refused")
        stop = threading.Event()

        with pytest.raises(KeyboardInterrupt):
            execute_chain_actions(
                {"eth": make_actions(0, 1), "base": make_actions(0, 1)},
                {"eth": interrupted, "base": unreachable},
                params,
                stop=stop,
            )

        assert stop.is_set()
        for thread in threading.enumerate():
            if thread.name.startswith("roar-chain"):
                thread.join(timeout=5)
                assert not thread.is_alive()
        unreachable.send_transaction.assert_not_called()


class TestLogActionOutcome:
    """Test suite for the action outcome log helper."""

    def test_sent_is_info(self) -> None:
        """Test that sent actions log at info level."""
        logger = Mock()

        log_action_outcome(logger, 0, 3, 5, "sent")

        logger.bind.assert_called_once_with(action_index=0, action_total=3, nonce=5, outcome="sent")
        logger.bind.return_value.info.assert_called_once_with("Action finished")

    def test_skipped_is_warning(self) -> None:
        """Test that skipped and retreated actions log warnings."""
        logger = Mock()

        log_action_outcome(logger, 1, 3, 6, "skipped")

        logger.bind.return_value.warning.assert_called_once_with("Action not sent")

    def test_context_is_bound(self) -> None:
        """Test that extra context is bound to the record."""
        logger = Mock()

        log_action_outcome(logger, 2, 3, 7, "retrying", {"reason": "nonce_behind", "retry": 1})

        bound = logger.bind.return_value
        bound.bind.assert_called_once_with(reason="nonce_behind", retry=1)
        bound.bind.return_value.info.assert_called_once_with("Action will be retried")
