"""
CLI Verify Commands

Offline verification against a tree file:
- verify: recompute a recipient's root from its record and proof
- verify-tree: audit a whole tree file for internal consistency

Usage:
    rootlock verify tree.json 0x<recipient> [--root 0x<root>] [--json] [--debug]
    rootlock verify-tree tree.json [--json] [--debug]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from typing import Any

from rootlock.crypto.hashing import hash_from_hex, to_hex
from rootlock.merkle.distribution import VestingMerkleTree
from rootlock.merkle.merkle_tree import check_record
from rootlock.schemas.errors import RootlockException
from rootlock.schemas.verification import VerificationResult


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class VerifySummary:
    """Summary of a verification run for CLI output."""
    tree_path: str = ""
    merkle_root: str = ""
    recipient: str = ""
    ok: bool = False
    checks: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d["recipient"]:
            del d["recipient"]
        if not d["checks"]:
            del d["checks"]
        if not d["errors"]:
            del d["errors"]
        return d


def build_summary(
    tree_path: str,
    root: bytes,
    result: VerificationResult,
    recipient: str = "",
    debug: bool = False,
) -> VerifySummary:
    """Build a VerifySummary from a verification result."""
    summary = VerifySummary(
        tree_path=tree_path,
        merkle_root=to_hex(root),
        recipient=recipient,
        ok=result.ok,
        errors=result.get_error_messages(),
    )
    if debug:
        summary.checks = [
            {"check_id": c.check_id, "ok": c.ok, "message": c.message}
            for c in result.checks
        ]
    return summary


def print_summary(summary: VerifySummary, output_json: bool) -> None:
    if output_json:
        print(json.dumps(summary.to_dict(), indent=2))
        return

    print(f"tree: {summary.tree_path}")
    print(f"merkle_root: {summary.merkle_root}")
    if summary.recipient:
        print(f"recipient: {summary.recipient}")
    print(f"ok: {str(summary.ok).lower()}")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors[:10]:
            print(f"  ✗ {err}")

    if summary.checks:
        passed = sum(1 for c in summary.checks if c["ok"])
        print(f"\nchecks: {passed} passed, {len(summary.checks) - passed} failed")
        for check in summary.checks:
            status = "✓" if check["ok"] else "✗"
            print(f"  {status} {check['check_id']}")


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Exit code 2 means the proof did not reproduce the root.
    """
    try:
        tree = VestingMerkleTree.from_file(args.tree)
        node = tree.get_node(args.recipient)
        root = hash_from_hex(args.root) if args.root else tree.merkle_root
    except (RootlockException, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    result = check_record(node.to_record(), node.proof or (), root)
    summary = build_summary(
        tree_path=str(args.tree),
        root=root,
        result=result,
        recipient=node.recipient_hex,
        debug=args.debug,
    )
    print_summary(summary, args.json)

    if result.ok:
        logger.info("Proof verified for %s", node.recipient_hex)
        return EXIT_SUCCESS
    return EXIT_VERIFICATION_FAILED


def verify_tree_cmd(args: Namespace) -> int:
    """Execute the verify-tree command."""
    try:
        tree = VestingMerkleTree.from_file(args.tree)
    except RootlockException as e:
        print(f"Error loading tree: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    result = tree.check()
    summary = build_summary(
        tree_path=str(args.tree),
        root=tree.merkle_root,
        result=result,
        debug=args.debug,
    )
    print_summary(summary, args.json)

    if result.ok:
        logger.info("Tree verified: %d nodes", len(tree.tree_nodes))
        return EXIT_SUCCESS
    logger.warning("Tree verification failed: %s", args.tree)
    return EXIT_VERIFICATION_FAILED
