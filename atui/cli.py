"""Command-line front door for atui.

Parses CLI options, sets up logging, and either prints one policy document
(``--print-policy``) or starts the interactive browser.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from .aws import IamClient
from .config import load_settings
from .document import render_policy_document
from .errors import FetchError
from .models import managed_policy_type
from .palette import resolve_palette

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_FILE_ENV = "ATUI_LOG_FILE"
_CONFIGURATION_ERROR_CODES = {"ProfileNotFound", "NoRegionError", "NoCredentialsError"}

logger = logging.getLogger(__name__)


def configure_logging(log_file: str | None) -> None:
    """Send package logs to ``log_file``; stay silent without one.

    The TUI owns the terminal, so nothing is ever logged to stderr.
    """
    package_logger = logging.getLogger("atui")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    if not log_file:
        package_logger.addHandler(logging.NullHandler())
        return
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)
    package_logger.propagate = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="atui",
        description="Browse AWS IAM roles, their policies, and policy documents in the terminal.",
    )
    parser.add_argument(
        "--profile",
        default=os.environ.get("AWS_PROFILE", ""),
        help="AWS credential profile to start with (default: $AWS_PROFILE or the default chain).",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_DEFAULT_REGION"),
        help="AWS region for API calls (default: $AWS_DEFAULT_REGION).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    parser.add_argument(
        "--log-file",
        default=os.environ.get(LOG_FILE_ENV),
        help=f"Write debug logs to this file (default: ${LOG_FILE_ENV}).",
    )
    parser.add_argument(
        "--print-policy",
        metavar="ARN",
        help="Print the default version of one managed policy document and exit.",
    )
    return parser


def _exit_with_error(exc: FetchError) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    raise SystemExit(2 if exc.code in _CONFIGURATION_ERROR_CODES else 1)


def print_policy(arn: str, profile: str, region: str | None, no_color: bool) -> None:
    """Fetch, render, and print one managed policy document."""
    settings = load_settings()
    palette = resolve_palette(settings.colors, no_color=no_color or not sys.stdout.isatty())
    client = IamClient(profile, region)
    try:
        raw = client.get_policy_document(arn, managed_policy_type(arn))
        rendered = render_policy_document(raw, palette)
    except FetchError as exc:
        logger.warning("printing %s failed: %s", arn, exc)
        _exit_with_error(exc)
        return
    sys.stdout.write(rendered + "\n")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and launch atui."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_file)

    if args.print_policy:
        print_policy(args.print_policy, args.profile, args.region, args.no_color)
        return

    if not sys.stdin.isatty() or not sys.stdout.isatty():
        raise SystemExit("atui needs an interactive terminal.")

    from .runtime import run_app

    run_app(args.profile, args.region, no_color=args.no_color)
