"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml
from eth_account import Account

from ..errors import ConfigFileError
from .defaults import DefaultConfig, ExecutionParams, get_default_config
from .validation import ConfigValidator

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RoarConfig:
    """Validated run configuration."""
    private_key: str
    execution: ExecutionParams
    rpcs: dict[int, list[str]] = field(default_factory=dict)

    @property
    def deployer_address(self) -> str:
        """Checksummed address controlled by the configured private key."""
        return Account.from_key(self.private_key).address


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_path: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        defaults = get_default_config()
        if config_path is None:
            config_path = Path(defaults.paths.config)

        return cls(
            config_path=Path(config_path),
            defaults=defaults,
        )

    def load_config_file(self) -> dict[str, Any]:
        """Load the YAML config file, which must exist."""
        if not self.config_path.exists():
            raise ConfigFileError(
                f'Config file "{self.config_path}" does not exist',
                context={"path": str(self.config_path)}
            )

        with open(self.config_path) as f:
            content = yaml.safe_load(f)

        if content is None:
            return {}

        if not isinstance(content, dict):
            raise ConfigFileError(
                f'Config file "{self.config_path}" must contain a mapping',
                context={"path": str(self.config_path)}
            )

        return content

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Command-line overrides (highest priority)
        2. Config file
        3. Global defaults (lowest priority)
        """
        config = {"execution": self._dataclass_to_dict(self.defaults.execution)}

        config = self._deep_merge(config, self.load_config_file())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(self, overrides: Optional[dict[str, Any]] = None) -> RoarConfig:
        """Load, merge and validate the configuration."""
        config = self.merge_config(overrides)

        errors = ConfigValidator.validate_config(config)
        if errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            raise ConfigFileError(
                f'Config file "{self.config_path}" is invalid: {"; ".join(error_msgs)}',
                errors=error_msgs,
                context={"path": str(self.config_path)}
            )

        execution = config["execution"]
        rpcs = {
            chain_id: [urls] if isinstance(urls, str) else list(urls)
            for chain_id, urls in config.get("rpcs", {}).items()
        }

        loaded = RoarConfig(
            private_key=config["deployer"]["privateKey"],
            execution=ExecutionParams(
                dry_run=execution["dryRun"],
                retry_delay_ms=execution["retryDelayMs"],
                nonce_behind_retries=execution["nonceBehindRetries"],
            ),
            rpcs=rpcs,
        )

        logger.info(
            "Config loaded",
            path=str(self.config_path),
            deployer=loaded.deployer_address,
            dry_run=loaded.execution.dry_run,
            retry_delay_ms=loaded.execution.retry_delay_ms,
            nonce_behind_retries=loaded.execution.nonce_behind_retries,
            rpc_overrides=sorted(rpcs),
        )
        return loaded

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary with camelCase keys."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
                value = getattr(obj, field_name)
                key = self._camel_case(field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[key] = self._dataclass_to_dict(value)
                else:
                    result[key] = value
            return result
        return obj  # type: ignore[no-any-return]

    @staticmethod
    def _camel_case(name: str) -> str:
        head, *tail = name.split("_")
        return head + "".join(part.title() for part in tail)

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
