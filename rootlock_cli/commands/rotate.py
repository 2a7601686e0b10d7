"""
CLI Rotate Command

Plan a root rotation: rebuild the tree for an amended record set and
refuse the rotation when the root does not change.

Usage:
    rootlock rotate --tree current.json --csv amended.csv [--out new.json] [--tree-version N] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path

from rootlock.merkle.distribution import VestingMerkleTree, read_records_csv
from rootlock.registry.rotation import plan_rotation
from rootlock.schemas.errors import DuplicateRootException, RootlockException


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def rotate_cmd(args: Namespace) -> int:
    """
    Execute the rotate command.

    The new tree keeps the current tree's version unless --tree-version is given.
    """
    try:
        current = VestingMerkleTree.from_file(args.tree)
        new_records = read_records_csv(args.csv, validate=True)
    except RootlockException as e:
        print(f"Error loading inputs: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    version = args.tree_version if args.tree_version is not None else current.version

    try:
        plan = plan_rotation(
            current.merkle_root,
            new_records,
            version=version,
            old_records=current.records(),
        )
    except DuplicateRootException as e:
        logger.warning("Rotation rejected: %s", e.message)
        print(f"Rotation rejected: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except RootlockException as e:
        print(f"Error building new tree: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    summary = plan.summary()
    if args.out:
        summary["out_path"] = str(plan.new_tree.write_to_file(Path(args.out)))

    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print(f"old_root: {summary['old_root']}")
        print(f"new_root: {summary['new_root']}")
        print(f"max_claim_amount: {summary['max_claim_amount']}")
        print(f"max_escrow: {summary['max_escrow']}")
        print(f"added: {len(summary['added'])}")
        for recipient in summary["added"]:
            print(f"  + {recipient}")
        print(f"removed: {len(summary['removed'])}")
        for recipient in summary["removed"]:
            print(f"  - {recipient}")
        if "out_path" in summary:
            print(f"tree: {summary['out_path']}")

    return EXIT_SUCCESS
