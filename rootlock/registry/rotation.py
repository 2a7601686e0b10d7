"""
Root Rotation
Helpers for amending a batch grant's record set and computing the root to
rotate to.

Adding a recipient = old records + new record(s), appended in order.
Removing a recipient = old records without it, survivors keep their order.
A rotation whose new root equals the current one is rejected.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from rootlock.crypto.hashing import from_hex, to_hex
from rootlock.merkle.distribution import VestingMerkleTree
from rootlock.registry.root_escrow import is_noop_rotation
from rootlock.schemas.errors import (
    DuplicateRecipientException,
    DuplicateRootException,
    RecipientNotFoundException,
)
from rootlock.schemas.record import VestingRecord


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RotationPlan:
    """
    Outcome of planning a rotation.

    Attributes:
        old_root: Root currently committed
        new_tree: Distribution tree for the amended record set
        added: Recipients present only in the new set
        removed: Recipients present only in the old set
    """
    old_root: bytes
    new_tree: VestingMerkleTree
    added: list[bytes] = field(default_factory=list)
    removed: list[bytes] = field(default_factory=list)

    @property
    def new_root(self) -> bytes:
        return self.new_tree.merkle_root

    def summary(self) -> dict:
        return {
            "old_root": to_hex(self.old_root),
            "new_root": to_hex(self.new_root),
            "version": self.new_tree.version,
            "max_claim_amount": self.new_tree.max_claim_amount,
            "max_escrow": self.new_tree.max_escrow,
            "added": [to_hex(r) for r in self.added],
            "removed": [to_hex(r) for r in self.removed],
        }


def plan_rotation(
    current_root: bytes,
    new_records: Sequence[VestingRecord],
    version: int = 0,
    old_records: Sequence[VestingRecord] | None = None,
) -> RotationPlan:
    """
    Build the tree for new_records and check it actually changes the root.

    Args:
        current_root: Root committed today
        new_records: The amended record set
        version: Version stored in the new distribution tree
        old_records: Previous record set, used only to report added/removed

    Raises:
        DuplicateRootException: If the new root equals current_root
        (plus anything VestingMerkleTree.new() raises)
    """
    new_tree = VestingMerkleTree.new(new_records, version=version)
    if is_noop_rotation(current_root, new_tree.merkle_root):
        raise DuplicateRootException(to_hex(current_root))

    added: list[bytes] = []
    removed: list[bytes] = []
    if old_records is not None:
        old_recipients = {r.recipient for r in old_records}
        new_recipients = {r.recipient for r in new_records}
        added = [r.recipient for r in new_records if r.recipient not in old_recipients]
        removed = [r.recipient for r in old_records if r.recipient not in new_recipients]

    logger.info(
        "Planned rotation %s -> %s (+%d / -%d recipients)",
        to_hex(current_root), to_hex(new_tree.merkle_root), len(added), len(removed),
    )
    return RotationPlan(
        old_root=current_root,
        new_tree=new_tree,
        added=added,
        removed=removed,
    )


def plan_rotation_from_records(
    old_records: Sequence[VestingRecord],
    new_records: Sequence[VestingRecord],
    version: int = 0,
) -> RotationPlan:
    """plan_rotation() where the current root is rebuilt from old_records."""
    old_root = VestingMerkleTree.new(old_records, version=version).merkle_root
    return plan_rotation(old_root, new_records, version=version, old_records=old_records)


def add_recipients(
    records: Sequence[VestingRecord],
    extra: Iterable[VestingRecord],
) -> list[VestingRecord]:
    """
    Append new records to a record set.

    Raises:
        DuplicateRecipientException: If a new recipient is already present
    """
    result = list(records)
    present = {r.recipient for r in result}
    for record in extra:
        if record.recipient in present:
            raise DuplicateRecipientException(record.recipient_hex)
        present.add(record.recipient)
        result.append(record)
    return result


def remove_recipients(
    records: Sequence[VestingRecord],
    recipients: Iterable[bytes | str],
) -> list[VestingRecord]:
    """
    Drop every record whose recipient is listed.

    Raises:
        RecipientNotFoundException: If a listed recipient is not in records
    """
    to_remove: set[bytes] = set()
    for recipient in recipients:
        to_remove.add(from_hex(recipient) if isinstance(recipient, str) else recipient)

    present = {r.recipient for r in records}
    for recipient in to_remove:
        if recipient not in present:
            raise RecipientNotFoundException(to_hex(recipient))

    return [r for r in records if r.recipient not in to_remove]


__all__ = [
    "RotationPlan",
    "plan_rotation",
    "plan_rotation_from_records",
    "add_recipients",
    "remove_recipients",
]
