"""
Root Rotation Unit Tests
Tests for rootlock/registry/rotation.py
"""
import pytest

from fixtures import make_record, make_records, make_recipient
from rootlock.crypto.hashing import to_hex
from rootlock.merkle.distribution import VestingMerkleTree
from rootlock.merkle.merkle_tree import verify_record
from rootlock.registry.rotation import (
    add_recipients,
    plan_rotation,
    plan_rotation_from_records,
    remove_recipients,
)
from rootlock.schemas.errors import (
    DuplicateRecipientException,
    DuplicateRootException,
    RecipientNotFoundException,
)


class TestPlanRotation:
    """Tests for plan_rotation()."""

    def test_identical_set_rejected(self, records):
        """Test rotating to the same records is rejected."""
        current = VestingMerkleTree.new(records).merkle_root
        with pytest.raises(DuplicateRootException):
            plan_rotation(current, records)

    def test_added_record_changes_root(self, records):
        """Test adding a record yields a new root."""
        old_tree = VestingMerkleTree.new(records)
        new_record = make_record(n=40)
        plan = plan_rotation(old_tree.merkle_root, add_recipients(records, [new_record]), old_records=records)

        assert plan.new_root != old_tree.merkle_root
        assert plan.added == [new_record.recipient]
        assert plan.removed == []

    def test_added_record_verifies_only_against_new_root(self, records):
        """Test an added record proves only against the new root."""
        old_tree = VestingMerkleTree.new(records)
        new_record = make_record(n=40)
        plan = plan_rotation(old_tree.merkle_root, add_recipients(records, [new_record]))
        proof = plan.new_tree.get_node(new_record.recipient).proof

        assert verify_record(new_record, proof, plan.new_root)
        assert not verify_record(new_record, proof, old_tree.merkle_root)

    def test_removed_record_fails_against_new_root(self, records):
        """Test a removed record no longer proves after rotation."""
        old_tree = VestingMerkleTree.new(records)
        removed = records[2]
        old_proof = old_tree.get_node(removed.recipient).proof

        plan = plan_rotation(
            old_tree.merkle_root,
            remove_recipients(records, [removed.recipient]),
            old_records=records,
        )

        assert verify_record(removed, old_proof, old_tree.merkle_root)
        assert not verify_record(removed, old_proof, plan.new_root)
        assert plan.removed == [removed.recipient]

    def test_survivors_verify_against_new_root(self, records):
        """Test remaining records prove against the new root."""
        plan = plan_rotation_from_records(records, remove_recipients(records, [records[0].recipient]))
        for node in plan.new_tree.tree_nodes:
            assert verify_record(node.to_record(), node.proof, plan.new_root)

    def test_summary(self, records):
        """Test the plan summary fields."""
        plan = plan_rotation_from_records(records, records[:3])
        summary = plan.summary()

        assert summary["old_root"] == to_hex(plan.old_root)
        assert summary["new_root"] == to_hex(plan.new_root)
        assert summary["max_escrow"] == 3
        assert summary["removed"] == [records[3].recipient_hex, records[4].recipient_hex]

    def test_from_records_identical_rejected(self, records):
        """Test plan_rotation_from_records rejects an unchanged set."""
        with pytest.raises(DuplicateRootException):
            plan_rotation_from_records(records, list(records))


class TestAddRemove:
    """Tests for add_recipients() and remove_recipients()."""

    def test_add_appends_in_order(self, records):
        """Test additions are appended after existing records."""
        extra = make_records(2, start=30)
        result = add_recipients(records, extra)

        assert result == records + extra

    def test_add_duplicate_rejected(self, records):
        """Test adding an existing recipient is rejected."""
        with pytest.raises(DuplicateRecipientException):
            add_recipients(records, [make_record(n=1, cliff_unlock_amount=7)])

    def test_add_duplicate_within_extra_rejected(self, records):
        """Test duplicates within the additions are rejected."""
        with pytest.raises(DuplicateRecipientException):
            add_recipients(records, [make_record(n=30), make_record(n=30)])

    def test_remove_keeps_order(self, records):
        """Test removal preserves survivor order."""
        result = remove_recipients(records, [records[1].recipient_hex, records[3].recipient])
        assert result == [records[0], records[2], records[4]]

    def test_remove_missing_rejected(self, records):
        """Test removing an unknown recipient is rejected."""
        with pytest.raises(RecipientNotFoundException):
            remove_recipients(records, [make_recipient(0x99)])
