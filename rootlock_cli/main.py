"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m rootlock_cli create-merkle-tree --csv PATH [--out PATH] [--tree-version N] [--json]
    python -m rootlock_cli proof TREE RECIPIENT [--json]
    python -m rootlock_cli verify TREE RECIPIENT [--root HEX] [--json] [--debug]
    python -m rootlock_cli verify-tree TREE [--json] [--debug]
    python -m rootlock_cli rotate --tree TREE --csv PATH [--out PATH] [--json]
    python -m rootlock_cli generate-test-csv --out PATH --num-nodes N [--seed N]
    python -m rootlock_cli config --init

Environment Variables:
    ROOTLOCK_TREE_VERSION       Version stored in built trees (default: 0)
    ROOTLOCK_OUTPUT_DIR         Directory tree files are written to
    ROOTLOCK_STRICT_MODE        Audit written trees (default: true)
    ROOTLOCK_LOG_LEVEL          Log level (default: INFO)
    ROOTLOCK_LOG_FILE           Optional log file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

import yaml

from rootlock.config import RuntimeConfig, get_default_config
from rootlock_cli.commands import rotate, tree, verify


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def load_config(path: Path | None) -> RuntimeConfig:
    """Load a YAML config file with env overrides, or the env-only default."""
    if path is None:
        return get_default_config()
    return RuntimeConfig.from_yaml(path).with_env_overrides()


def get_default_config_template() -> str:
    return yaml.safe_dump(RuntimeConfig().to_dict(), sort_keys=False)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="rootlock",
        description="rootlock CLI - Build vesting Merkle trees, extract and verify proofs, plan root rotations.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: environment only)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- create-merkle-tree command ---
    create_parser_ = subparsers.add_parser(
        "create-merkle-tree",
        help="Build a tree file from a CSV of vesting records",
        description="Commit a batch of vesting records to a Merkle root and write every proof.",
    )
    create_parser_.add_argument(
        "--csv",
        type=str,
        required=True,
        help="CSV file of vesting records",
    )
    create_parser_.add_argument(
        "--out", "-o",
        type=str,
        default=None,
        help="Output tree file (default: from config)",
    )
    create_parser_.add_argument(
        "--tree-version",
        type=int,
        default=None,
        help="Version stored in the tree (default: from config)",
    )
    create_parser_.add_argument(
        "--strict",
        dest="strict",
        action="store_true",
        default=None,
        help="Audit the written tree (default)",
    )
    create_parser_.add_argument(
        "--no-strict",
        dest="strict",
        action="store_false",
        help="Skip the audit of the written tree",
    )
    create_parser_.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    create_parser_.set_defaults(func=tree.create_tree_cmd)

    # --- proof command ---
    proof_parser = subparsers.add_parser(
        "proof",
        help="Print a recipient's record and proof",
    )
    proof_parser.add_argument("tree", type=str, help="Tree file")
    proof_parser.add_argument("recipient", type=str, help="Recipient (0x hex)")
    proof_parser.add_argument("--json", action="store_true", help="JSON output")
    proof_parser.set_defaults(func=tree.proof_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify a recipient's proof against a root",
        description="Recompute the root from a recipient's record and proof.",
    )
    verify_parser.add_argument("tree", type=str, help="Tree file")
    verify_parser.add_argument("recipient", type=str, help="Recipient (0x hex)")
    verify_parser.add_argument(
        "--root",
        type=str,
        default=None,
        help="Root to verify against (default: the tree's root)",
    )
    verify_parser.add_argument("--json", action="store_true", help="JSON output")
    verify_parser.add_argument("--debug", action="store_true", help="Include detailed checks")
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- verify-tree command ---
    verify_tree_parser = subparsers.add_parser(
        "verify-tree",
        help="Audit a tree file for internal consistency",
    )
    verify_tree_parser.add_argument("tree", type=str, help="Tree file")
    verify_tree_parser.add_argument("--json", action="store_true", help="JSON output")
    verify_tree_parser.add_argument("--debug", action="store_true", help="Include detailed checks")
    verify_tree_parser.set_defaults(func=verify.verify_tree_cmd)

    # --- rotate command ---
    rotate_parser = subparsers.add_parser(
        "rotate",
        help="Plan a root rotation for an amended record set",
    )
    rotate_parser.add_argument("--tree", type=str, required=True, help="Current tree file")
    rotate_parser.add_argument("--csv", type=str, required=True, help="CSV of the amended record set")
    rotate_parser.add_argument("--out", "-o", type=str, default=None, help="Write the new tree here")
    rotate_parser.add_argument(
        "--tree-version",
        type=int,
        default=None,
        help="Version stored in the new tree (default: current tree's)",
    )
    rotate_parser.add_argument("--json", action="store_true", help="JSON output")
    rotate_parser.set_defaults(func=rotate.rotate_cmd)

    # --- generate-test-csv command ---
    generate_parser = subparsers.add_parser(
        "generate-test-csv",
        help="Write random valid vesting records to a CSV file",
    )
    generate_parser.add_argument("--out", "-o", type=str, required=True, help="Output CSV file")
    generate_parser.add_argument("--num-nodes", type=int, required=True, help="Number of records")
    generate_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    generate_parser.set_defaults(func=tree.generate_test_csv_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage CLI configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="rootlock.yaml",
        help="Path for config file (default: rootlock.yaml)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (ROOTLOCK_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.runtime_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: rootlock config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.logging.level
    setup_logging(level=log_level, log_file=config.logging.file)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if hasattr(args, "debug") and args.debug:
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
