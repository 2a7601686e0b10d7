"""
CLI Tree Commands

Build distribution trees and read proofs out of them:
- create-merkle-tree: CSV of records -> tree JSON (root, totals, proofs)
- proof: print one recipient's record and proof from a tree JSON
- generate-test-csv: write random valid records for exercising tooling

Usage:
    rootlock create-merkle-tree --csv records.csv [--out tree.json] [--tree-version N] [--json]
    rootlock proof tree.json 0x<recipient> [--json]
    rootlock generate-test-csv --out records.csv --num-nodes 100 [--seed N]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from rootlock.config import RuntimeConfig, get_default_config
from rootlock.crypto.hashing import to_hex
from rootlock.merkle.distribution import VestingMerkleTree, generate_test_csv
from rootlock.merkle.merkle_tree import compute_tree_depth
from rootlock.schemas.errors import RootlockException


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class TreeSummary:
    """Summary of a built tree for CLI output."""
    csv_path: str = ""
    out_path: str = ""
    merkle_root: str = ""
    version: int = 0
    max_claim_amount: int = 0
    max_escrow: int = 0
    depth: int = 0
    audited: bool = False
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d["errors"]:
            del d["errors"]
        return d


def _resolve_config(args: Namespace) -> RuntimeConfig:
    return getattr(args, "runtime_config", None) or get_default_config()


def _report_error(prefix: str, e: RootlockException, output_json: bool) -> None:
    if output_json:
        print(json.dumps({"ok": False, "error": e.to_error_model().model_dump()}, indent=2, default=str))
    else:
        print(f"Error {prefix}: {e.message}", file=sys.stderr)


def create_tree_cmd(args: Namespace) -> int:
    """
    Execute the create-merkle-tree command.

    In strict mode the written file is loaded back and audited.
    """
    config = _resolve_config(args)
    csv_path = Path(args.csv)
    out_path = Path(args.out) if args.out else config.tree.output_path
    version = args.tree_version if args.tree_version is not None else config.tree.version
    strict = config.tree.strict_mode if args.strict is None else args.strict

    summary = TreeSummary(csv_path=str(csv_path), out_path=str(out_path), version=version)

    try:
        tree = VestingMerkleTree.from_csv(csv_path, version=version)
        tree.write_to_file(out_path)
    except RootlockException as e:
        _report_error("building tree", e, args.json)
        return EXIT_RUNTIME_ERROR

    summary.merkle_root = to_hex(tree.merkle_root)
    summary.max_claim_amount = tree.max_claim_amount
    summary.max_escrow = tree.max_escrow
    summary.depth = compute_tree_depth(tree.max_escrow)

    exit_code = EXIT_SUCCESS
    if strict:
        summary.audited = True
        result = VestingMerkleTree.from_file(out_path).check()
        if not result.ok:
            summary.errors = result.get_error_messages()
            logger.warning("Written tree failed its audit: %s", out_path)
            exit_code = EXIT_VERIFICATION_FAILED

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print(f"tree: {summary.out_path}")
        print(f"merkle_root: {summary.merkle_root}")
        print(f"version: {summary.version}")
        print(f"max_claim_amount: {summary.max_claim_amount}")
        print(f"max_escrow: {summary.max_escrow}")
        print(f"depth: {summary.depth}")
        for err in summary.errors:
            print(f"  ✗ {err}")

    return exit_code


def proof_cmd(args: Namespace) -> int:
    """Execute the proof command."""
    try:
        tree = VestingMerkleTree.from_file(args.tree)
        node = tree.get_node(args.recipient)
    except RootlockException as e:
        _report_error("reading proof", e, args.json)
        return EXIT_RUNTIME_ERROR

    data = node.model_dump()
    data["merkle_root"] = to_hex(tree.merkle_root)
    data["total_amount"] = node.total_amount()

    if args.json:
        print(json.dumps(data, indent=2))
    else:
        print(f"recipient: {data['recipient']}")
        print(f"merkle_root: {data['merkle_root']}")
        print(f"total_amount: {data['total_amount']}")
        print(f"proof ({len(data['proof'] or [])}):")
        for sibling in data["proof"] or []:
            print(f"  {sibling}")

    return EXIT_SUCCESS


def generate_test_csv_cmd(args: Namespace) -> int:
    """Execute the generate-test-csv command."""
    if args.num_nodes <= 0:
        print("Error: --num-nodes must be positive", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    path = generate_test_csv(args.out, args.num_nodes, seed=args.seed)
    logger.info("Generated %d test records", args.num_nodes)
    print(f"Wrote {args.num_nodes} records to {path}")
    return EXIT_SUCCESS
