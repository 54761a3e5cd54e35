"""Default configuration parameters for the deployment plan engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExecutionParams:
    """Transaction execution parameters."""
    dry_run: bool = True                             # Resolve and log only, never submit
    retry_delay_ms: int = 8_000                      # Delay before any retry
    nonce_behind_retries: int = 15                   # 15 * 8 secs = 2 mins before retreat


@dataclass(frozen=True)
class PathParams:
    """Default file system locations."""
    plan: str = "plan.yaml"
    config: str = "config.yaml"
    artifacts: str = "artifacts"
    locks: str = "locks"
    spec: str = ""                                   # Empty disables spec export


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    execution: ExecutionParams
    paths: PathParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        execution=ExecutionParams(),
        paths=PathParams(),
    )
