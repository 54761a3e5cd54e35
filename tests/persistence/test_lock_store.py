"""Tests for nonce lock persistence."""

from pathlib import Path
from typing import Callable

import pytest
import yaml

from roar_app.errors import LockConsistencyError, LockFormatError
from roar_app.persistence.lock_store import Lock, LockStore, check_lock_chains, resolve_chain_nonces


class TestLock:
    """Test suite for lock content validation."""

    def test_round_trip(self) -> None:
        """Test lock mapping form."""
        lock = Lock(nonces={"eth": 3, "base": 0})
        assert Lock.from_dict(lock.to_dict(), "lock.yaml") == lock

    @pytest.mark.parametrize("data", [
        None,
        [],
        {"nonces": []},
        {"nonces": {"eth": -1}},
        {"nonces": {"eth": "3"}},
        {"nonces": {"eth": True}},
    ])
    def test_invalid_content(self, data: object) -> None:
        """Test that malformed locks are rejected."""
        with pytest.raises(LockFormatError):
            Lock.from_dict(data, "lock.yaml")


class TestLockStore:
    """Test suite for the lock file store."""

    def test_lock_path_mirrors_plan_path(self, tmp_path: Path) -> None:
        """Test relative and absolute plan paths."""
        store = LockStore(tmp_path / "locks")

        assert store.get_lock_path("deploy/plan.yaml") == tmp_path / "locks" / "deploy" / "plan.yaml"
        absolute = store.get_lock_path(tmp_path / "plan.yaml")
        assert absolute.is_relative_to(tmp_path / "locks")
        assert absolute.name == "plan.yaml"

    def test_missing_lock(self, tmp_path: Path) -> None:
        """Test that plans never run have no lock."""
        assert LockStore(tmp_path / "locks").load("plan.yaml") is None

    def test_save_and_load(self, tmp_path: Path) -> None:
        """Test that saved locks load back."""
        store = LockStore(tmp_path / "locks")
        path = store.save("deploy/plan.yaml", Lock(nonces={"eth": 7}))

        assert yaml.safe_load(path.read_text()) == {"nonces": {"eth": 7}}
        assert store.load("deploy/plan.yaml") == Lock(nonces={"eth": 7})

    def test_unparsable_lock(self, tmp_path: Path) -> None:
        """Test that broken YAML is a format error."""
        store = LockStore(tmp_path / "locks")
        path = store.get_lock_path("plan.yaml")
        path.parent.mkdir(parents=True)
        path.write_text("nonces: [unclosed")

        with pytest.raises(LockFormatError):
            store.load("plan.yaml")


class TestCheckLockChains:
    """Test suite for lock and plan chain comparison."""

    def test_same_chains_in_any_order(self) -> None:
        """Test that chain order does not matter."""
        check_lock_chains(Lock(nonces={"a": 0, "b": 1}), ["b", "a"], "lock.yaml")

    def test_mismatch(self) -> None:
        """Test that added or removed chains are rejected."""
        with pytest.raises(LockConsistencyError) as exc_info:
            check_lock_chains(Lock(nonces={"a": 0, "b": 1}), ["a", "b", "c"], "lock.yaml")

        assert exc_info.value.lock_chains == ["a", "b"]
        assert exc_info.value.plan_chains == ["a", "b", "c"]
        assert "(2)" in str(exc_info.value)
        assert "(3)" in str(exc_info.value)


class TestResolveChainNonces:
    """Test suite for base nonce resolution."""

    def test_first_run_creates_lock(self, tmp_path: Path, make_chain_client: Callable) -> None:
        """Test that transaction counts are recorded on the first run."""
        store = LockStore(tmp_path / "locks")
        sources = {
            "eth": make_chain_client("eth", 1, start_nonce=4),
            "base": make_chain_client("base", 8453, start_nonce=0),
        }

        nonces = resolve_chain_nonces(store, "plan.yaml", sources)

        assert nonces == {"eth": 4, "base": 0}
        assert list(nonces) == ["eth", "base"]
        assert store.load("plan.yaml") == Lock(nonces={"eth": 4, "base": 0})

    def test_later_runs_reuse_lock(self, tmp_path: Path, make_chain_client: Callable) -> None:
        """Test that an existing lock wins over the live transaction count."""
        store = LockStore(tmp_path / "locks")
        store.save("plan.yaml", Lock(nonces={"base": 2, "eth": 4}))
        sources = {
            "eth": make_chain_client("eth", 1, start_nonce=9),
            "base": make_chain_client("base", 8453, start_nonce=9),
        }

        nonces = resolve_chain_nonces(store, "plan.yaml", sources)

        assert nonces == {"eth": 4, "base": 2}
        assert list(nonces) == ["eth", "base"]
        assert sources["eth"].count_calls == 0

    def test_chain_mismatch_aborts(self, tmp_path: Path, make_chain_client: Callable) -> None:
        """Test that a plan with a new chain does not reuse an old lock."""
        store = LockStore(tmp_path / "locks")
        store.save("plan.yaml", Lock(nonces={"a": 0, "b": 0}))
        sources = {key: make_chain_client(key) for key in ("a", "b", "c")}

        with pytest.raises(LockConsistencyError):
            resolve_chain_nonces(store, "plan.yaml", sources)
        assert store.load("plan.yaml") == Lock(nonces={"a": 0, "b": 0})
