"""
Merkle Tree and Commitments
Deterministic commitment tree over vesting records + proof
generation/verification.

This module provides:
- leaf_hash / merkle_parent: the leaf and pair hashing rules
- MerkleTree: immutable tree built from records or leaves
- verify_record / check_record: proof verification against a root
- VestingMerkleTree: the distributable tree file with per-node proofs

Canonical Commitment Rules:
1. Leaf hashing: sha256(0x00 + sha256(encode_record(record)))
2. Parent hashing: sha256(min(a, b) + max(a, b))
3. Odd layer: last node carried up unchanged
4. Empty input: EmptyInputException
5. Single leaf: root = leaf

Usage:
    from rootlock.merkle import MerkleTree, verify_record

    tree = MerkleTree.from_records(records)
    proof = tree.get_proof(2)
    assert verify_record(records[2], proof, tree.root)
"""
from .merkle_tree import (
    LEAF_PREFIX,
    MerkleProof,
    MerkleTree,
    leaf_hash,
    merkle_parent,
    validate_records,
    fold_proof,
    verify_merkle_proof,
    verify_record,
    check_record,
    compute_tree_depth,
)

from .merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
)

from .distribution import (
    CSV_COLUMNS,
    TreeNode,
    VestingMerkleTree,
    generate_test_csv,
    read_records_csv,
    validate_batch,
    write_records_csv,
)


__all__ = [
    # Core types
    "LEAF_PREFIX",
    "MerkleProof",
    "MerkleTree",
    # Core functions
    "leaf_hash",
    "merkle_parent",
    "validate_records",
    "fold_proof",
    "verify_merkle_proof",
    "verify_record",
    "check_record",
    "compute_tree_depth",
    # Convenience classes
    "MerkleProver",
    "MerkleVerifier",
    # Distribution tree
    "CSV_COLUMNS",
    "TreeNode",
    "VestingMerkleTree",
    "generate_test_csv",
    "read_records_csv",
    "validate_batch",
    "write_records_csv",
]
