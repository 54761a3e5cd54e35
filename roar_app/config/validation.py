"""Configuration validation utilities."""

import re
from dataclasses import dataclass
from typing import Any

PRIVATE_KEY_PATTERN = re.compile(r"^0x[0-9a-fA-F]*$")
PRIVATE_KEY_SIZE = 32


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_execution_params(params: Any) -> list[ValidationError]:
        """Validate execution parameters."""
        if not isinstance(params, dict):
            return [ValidationError(
                field="execution",
                message="Must be a mapping",
                value=params
            )]

        errors = []

        # Validate dryRun
        if "dryRun" in params:
            value = params["dryRun"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="dryRun",
                    message="Must be a boolean",
                    value=value
                ))

        # Validate retryDelayMs
        if "retryDelayMs" in params:
            value = params["retryDelayMs"]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                errors.append(ValidationError(
                    field="retryDelayMs",
                    message="Must be a non-negative integer",
                    value=value
                ))

        # Validate nonceBehindRetries
        if "nonceBehindRetries" in params:
            value = params["nonceBehindRetries"]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                errors.append(ValidationError(
                    field="nonceBehindRetries",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_deployer_params(params: Any) -> list[ValidationError]:
        """Validate deployer parameters."""
        if not isinstance(params, dict):
            return [ValidationError(
                field="deployer",
                message="Must be a mapping",
                value=params
            )]

        value = params.get("privateKey")
        if not isinstance(value, str) or not PRIVATE_KEY_PATTERN.match(value):
            return [ValidationError(
                field="privateKey",
                message="Must be a 0x-prefixed hex string",
                value="<redacted>" if isinstance(value, str) else value
            )]

        size = (len(value) - 2) // 2
        if len(value) % 2 or size != PRIVATE_KEY_SIZE:
            return [ValidationError(
                field="privateKey",
                message=f"Must be {PRIVATE_KEY_SIZE} bytes long (got {size})",
                value="<redacted>"
            )]

        return []

    @staticmethod
    def validate_rpcs(params: Any) -> list[ValidationError]:
        """Validate RPC endpoint overrides keyed by chain id."""
        if not isinstance(params, dict):
            return [ValidationError(
                field="rpcs",
                message="Must be a mapping of chain id to URL list",
                value=params
            )]

        errors = []
        for chain_id, urls in params.items():
            if isinstance(chain_id, bool) or not isinstance(chain_id, int):
                errors.append(ValidationError(
                    field=f"rpcs.{chain_id}",
                    message="Chain id must be an integer",
                    value=chain_id
                ))
                continue

            if isinstance(urls, str):
                urls = [urls]
            if not isinstance(urls, list) or not urls or not all(isinstance(u, str) for u in urls):
                errors.append(ValidationError(
                    field=f"rpcs.{chain_id}",
                    message="Must be a URL or a non-empty list of URLs",
                    value=urls
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        errors.extend(ConfigValidator.validate_deployer_params(config.get("deployer", {})))

        if "execution" in config:
            errors.extend(ConfigValidator.validate_execution_params(config["execution"]))

        if "rpcs" in config:
            errors.extend(ConfigValidator.validate_rpcs(config["rpcs"]))

        return errors
