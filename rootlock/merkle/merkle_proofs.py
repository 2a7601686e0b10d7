"""
Merkle Proofs Convenience Wrappers
Thin wrappers around the core Merkle tree functions for record batches.

This module provides class-based interfaces:
- MerkleProver: Build roots and proofs straight from records
- MerkleVerifier: Verify proofs for records or raw leaves
"""
from __future__ import annotations

from typing import Sequence

from rootlock.merkle.merkle_tree import (
    MerkleProof,
    MerkleTree,
    check_record,
    leaf_hash,
    verify_merkle_proof,
    verify_record,
)
from rootlock.schemas.record import VestingRecord
from rootlock.schemas.verification import VerificationResult


class MerkleProver:
    """
    Convenience class for generating roots and proofs.

    Example:
        >>> proof = MerkleProver.prove(records, index=1)
        >>> proof.leaf == leaf_hash(records[1])
        True
    """

    @staticmethod
    def compute_root(records: Sequence[VestingRecord]) -> bytes:
        """
        Compute the Merkle root for a record batch.

        Raises:
            EmptyInputException: If records is empty
            ValidationException: If any record is invalid
        """
        return MerkleTree.from_records(records).root

    @staticmethod
    def prove(records: Sequence[VestingRecord], index: int) -> MerkleProof:
        """
        Generate a Merkle proof for the record at the given index.

        Raises:
            EmptyInputException: If records is empty
            ValidationException: If any record is invalid
            IndexError: If index is out of range
        """
        return MerkleTree.from_records(records).build_proof(index)

    @staticmethod
    def prove_all(records: Sequence[VestingRecord]) -> tuple[bytes, list[list[bytes]]]:
        """
        Build the tree once and return (root, proofs) with one proof per record.
        """
        tree = MerkleTree.from_records(records)
        return tree.root, [tree.get_proof(i) for i in range(tree.leaf_count)]


class MerkleVerifier:
    """
    Convenience class for verifying Merkle proofs.

    Example:
        >>> MerkleVerifier.verify_record(record, proof, root)
        True
    """

    @staticmethod
    def verify(proof: MerkleProof) -> bool:
        """Verify a MerkleProof against its own root."""
        return verify_merkle_proof(proof)

    @staticmethod
    def verify_leaf_in_root(
        leaf: bytes,
        siblings: Sequence[bytes],
        root: bytes,
    ) -> bool:
        """Verify a pre-hashed leaf is included in root."""
        return verify_merkle_proof(
            MerkleProof(leaf=leaf, siblings=tuple(siblings), root=root)
        )

    @staticmethod
    def verify_record(
        record: VestingRecord,
        siblings: Sequence[bytes],
        root: bytes,
    ) -> bool:
        """Verify a record is included in root."""
        return verify_record(record, siblings, root)

    @staticmethod
    def check_record(
        record: VestingRecord,
        siblings: Sequence[bytes],
        root: bytes,
    ) -> VerificationResult:
        """Verify a record and return the detailed VerificationResult."""
        return check_record(record, siblings, root)

    @staticmethod
    def leaf_for(record: VestingRecord) -> bytes:
        return leaf_hash(record)


__all__ = [
    "MerkleProver",
    "MerkleVerifier",
]
