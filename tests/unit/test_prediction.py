"""Unit tests for deploy address prediction."""

import pytest

from roar_app.actions.prediction import collect_chain_deploys, predict_deploy_address
from roar_app.errors import DuplicateDeployError
from roar_app.plan.models import CallStep, CallTarget, DeployReference, DeployStep

DEPLOYER = "0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0"


class TestPredictDeployAddress:
    """Test suite for CREATE address prediction."""

    @pytest.mark.parametrize("nonce,expected", [
        (0, "0xcd234a471b72ba2f1ccf0a70fcaba648a5eecd8d"),
        (1, "0x343c43a37d37dff08ae8c4a11544c718abb4fcf8"),
        (2, "0xf778b86fa74e846c4f0a1fbd1335fe81c00a0c91"),
        (3, "0xfffd933a0bc612844eaf0c6fe3e5b8e9b6c1d19c"),
    ])
    def test_known_addresses(self, nonce: int, expected: str) -> None:
        """Test addresses derived from sender and nonce."""
        assert predict_deploy_address(DEPLOYER, nonce).lower() == expected

    def test_hardhat_addresses(self, hardhat_address: str) -> None:
        """Test the familiar first Hardhat deployments, checksummed."""
        assert predict_deploy_address(hardhat_address, 0) == "0x5FbDB2315678afecb367f032d93F642f64180aa3"
        assert predict_deploy_address(hardhat_address, 1) == "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"


class TestCollectChainDeploys:
    """Test suite for deploy registration."""

    def test_deploys_use_step_nonces(self) -> None:
        """Test that each deploy is predicted at base nonce plus its index."""
        steps = [
            DeployStep(name="Token", path=("eth", "Token")),
            CallStep(name="mint", target=CallTarget("Token", DeployReference(("eth", "Token")))),
            DeployStep(name="Vault", path=("eth", "vaults", "Vault")),
        ]
        deploys: dict[str, str] = {}

        collect_chain_deploys(deploys, "eth", steps, DEPLOYER, 1)

        assert {key: value.lower() for key, value in deploys.items()} == {
            "$eth.Token": "0x343c43a37d37dff08ae8c4a11544c718abb4fcf8",
            "$eth.vaults.Vault": "0xfffd933a0bc612844eaf0c6fe3e5b8e9b6c1d19c",
        }

    def test_duplicate_deploy_rejected(self) -> None:
        """Test that a deploy path may only be registered once."""
        deploys = {"$eth.Token": "0xcd234a471b72ba2f1ccf0a70fcaba648a5eecd8d"}

        with pytest.raises(DuplicateDeployError) as exc_info:
            collect_chain_deploys(deploys, "eth", [DeployStep(name="Token", path=("eth", "Token"))], DEPLOYER, 0)
        assert exc_info.value.reference == "$eth.Token"
