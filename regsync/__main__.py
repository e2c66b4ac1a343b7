"""CLI interface for copying package versions between registries."""

import argparse
import sys
from typing import List, Optional

import yaml

from .common.config import SyncConfig, load_typed_config, merge_overrides
from .common.errors import SyncError
from .common.logger import setup_logger
from .sync.orchestrator import copy_package_versions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="regsync",
        description="Copy package versions missing from a target registry.",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--from", dest="from_url", help="Source registry URL")
    parser.add_argument("--to", dest="to_url", help="Target registry URL")
    parser.add_argument("--from-token", help="Source registry bearer token")
    parser.add_argument("--to-token", help="Target registry bearer token")
    parser.add_argument("--from-username", help="Source registry username")
    parser.add_argument("--from-password", help="Source registry password")
    parser.add_argument("--to-username", help="Target registry username")
    parser.add_argument("--to-password", help="Target registry password")
    parser.add_argument("--package", help="Package name, scope included")
    parser.add_argument(
        "--after",
        help="Skip versions published before this date (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--only-latest-from-each-major",
        action="store_true",
        help="Copy only the highest version of every major version",
    )
    parser.add_argument("--timeout", type=float, help="HTTP timeout in seconds")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--log-dir", help="Also write a rotating log file here")
    return parser


def resolve_config(args: argparse.Namespace) -> SyncConfig:
    """Combine the optional config file with command line flags."""
    config = load_typed_config(args.config) if args.config else SyncConfig()

    return merge_overrides(
        config,
        {
            "from": args.from_url,
            "to": args.to_url,
            "from_token": args.from_token,
            "to_token": args.to_token,
            "from_username": args.from_username,
            "from_password": args.from_password,
            "to_username": args.to_username,
            "to_password": args.to_password,
            "package": args.package,
            "after": args.after,
            "only_latest_from_each_major": args.only_latest_from_each_major,
            "timeout": args.timeout,
            "log_level": args.log_level,
            "log_dir": args.log_dir,
        },
    )


def main(argv: Optional[List[str]] = None):
    """Main entry point for the regsync CLI."""
    args = build_parser().parse_args(argv)

    try:
        config = resolve_config(args)
    except (SyncError, FileNotFoundError, TypeError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        setup_logger("regsync", config.logging)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        result = copy_package_versions(config)
    except SyncError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if result.versions_copied:
        print(f"Copied: {', '.join(result.versions_copied)}")
    if result.versions_skipped:
        print(f"Skipped: {', '.join(s.version for s in result.versions_skipped)}")
    if not result.has_changes:
        print("Nothing to copy.")

    sys.exit(0 if result.is_success else 1)


if __name__ == "__main__":
    main()
