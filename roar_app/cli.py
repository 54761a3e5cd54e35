"""
Roar command-line interface.

Usage:
    roar                                  # plan.yaml, config.yaml, artifacts/, locks/
    roar --plan deploy/plan.yaml --spec out/spec.yaml
    roar --log-level DEBUG --json-logs
"""

import argparse
import sys
from typing import Optional, Sequence

import structlog

from .config.defaults import PathParams
from .engine import DeploymentEngine
from .errors import ConfigurationError, SystemFailureError
from .logging.config import configure_logging

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    defaults = PathParams()
    parser = argparse.ArgumentParser(
        prog="roar",
        description="Deploy and call contracts across chains from a declarative plan",
    )
    parser.add_argument("-p", "--plan", default=defaults.plan, help=f"Plan path (default: {defaults.plan})")
    parser.add_argument("-c", "--config", default=defaults.config, help=f"Config path (default: {defaults.config})")
    parser.add_argument(
        "-a", "--artifacts", default=defaults.artifacts,
        help=f"Artifacts directory (default: {defaults.artifacts})",
    )
    parser.add_argument("-l", "--locks", default=defaults.locks, help=f"Locks directory (default: {defaults.locks})")
    parser.add_argument("-s", "--spec", default=defaults.spec, help="Plan spec output path (default: none)")
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parser.add_argument("--json-logs", action="store_true", help="Render logs as JSON")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run a plan; returns the process exit status."""
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level, format_json=args.json_logs)

    paths = PathParams(
        plan=args.plan,
        config=args.config,
        artifacts=args.artifacts,
        locks=args.locks,
        spec=args.spec,
    )

    try:
        result = DeploymentEngine(paths).run()
    except ConfigurationError as e:
        logger.error("Plan configuration error", error=str(e), error_type=type(e).__name__, **e.context)
        return 1
    except SystemFailureError as e:
        logger.error("System failure", error=str(e), error_type=type(e).__name__, **e.context)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130

    logger.info(
        "Plan run finished",
        deployer=result.deployer,
        chains=len(result.chain_actions),
        actions=sum(len(actions) for actions in result.chain_actions.values()),
        executed=bool(result.outcomes),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
