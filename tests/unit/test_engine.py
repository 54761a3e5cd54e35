"""Unit tests for the main deployment engine."""

from unittest.mock import Mock, patch

from roar_app.config.defaults import PathParams
from roar_app.engine import DeploymentEngine


class TestDeploymentEngine:
    """Test suite for the DeploymentEngine class."""

    def test_engine_initialization(self) -> None:
        """Test that the engine can be initialized with default paths."""
        engine = DeploymentEngine()

        assert engine.paths == PathParams()
        assert str(engine.config_loader.config_path) == "config.yaml"
        assert str(engine.lock_store.locks_dir) == "locks"

    def test_engine_initialization_with_paths(self) -> None:
        """Test engine initialization with custom paths."""
        with patch("roar_app.engine.ConfigLoader") as mock_config_loader:
            mock_config_loader.create.return_value = Mock()
            engine = DeploymentEngine(PathParams(config="/custom/config.yaml"))

            assert engine is not None
            mock_config_loader.create.assert_called_once()
            assert str(mock_config_loader.create.call_args[0][0]) == "/custom/config.yaml"

    def test_run_skips_spec_export_when_disabled(self) -> None:
        """Test the pipeline order with every stage mocked."""
        config = Mock(deployer_address="0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266", private_key="0xkey", rpcs={})
        factory = Mock(return_value={"eth": Mock()})

        with patch("roar_app.engine.ConfigLoader") as mock_config_loader, \
                patch("roar_app.engine.load_plan", return_value={"eth": {"chainId": 1}}) as mock_load_plan, \
                patch("roar_app.engine.load_artifacts") as mock_load_artifacts, \
                patch("roar_app.engine.resolve_chain_steps", return_value={"eth": []}), \
                patch("roar_app.engine.resolve_chain_nonces", return_value={"eth": 0}) as mock_nonces, \
                patch("roar_app.engine.resolve_chain_actions", return_value={"eth": []}), \
                patch("roar_app.engine.save_plan_spec") as mock_save_spec, \
                patch("roar_app.engine.execute_chain_actions", return_value={}) as mock_execute:
            mock_config_loader.create.return_value.load.return_value = config

            result = DeploymentEngine(client_factory=factory).run()

        mock_load_plan.assert_called_once_with("plan.yaml", config.deployer_address)
        mock_load_artifacts.assert_called_once_with("artifacts")
        assert factory.call_args[0][1] == "0xkey"
        assert mock_nonces.call_args[0][1] == "plan.yaml"
        mock_save_spec.assert_not_called()
        mock_execute.assert_called_once()
        assert result.chain_nonces == {"eth": 0}
        assert result.spec_path is None
        assert result.outcomes == {}
