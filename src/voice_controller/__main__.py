"""
Command line entry point.

Usage:
    python -m voice_controller check-env [--server] [--dev] [--config PATH]

``check-env`` validates the transport credentials in the environment and
exits 0 when every required variable is present, 1 otherwise.
"""

import argparse
import sys

import structlog

from .config import load_config, log_environment_validation
from .logging_config import configure_logging, set_correlation_id

logger = structlog.get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="voice_controller", description="Voice call controller utilities")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check-env", help="Validate transport credentials in the environment")
    check.add_argument("--server", action="store_true", help="Also require server-side credentials (private key)")
    check.add_argument("--dev", action="store_true", help="Log loaded identifiers (secrets masked)")
    check.add_argument("--config", default=None, help="Optional YAML config file for timing/logging settings")
    return parser


def _check_env(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    configure_logging(log_level=config.logging.level, log_format=config.logging.format)
    set_correlation_id()

    validation = log_environment_validation(is_development=args.dev, server_side=args.server)
    if validation.is_valid:
        logger.info("Environment check passed", warnings=len(validation.warnings))
        return 0
    logger.error("Environment check failed", errors=len(validation.errors))
    return 1


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    if args.command == "check-env":
        return _check_env(args)
    return 2


if __name__ == "__main__":
    sys.exit(main())
