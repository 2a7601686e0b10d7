"""
Merkle Tree Implementation
Deterministic commitment tree over vesting records: leaf hashing,
sorted-pair parent hashing, tree construction, proof extraction and
verification.

Canonical Commitment Rules (Hard Contracts):
1. Leaf hashing: leaf = sha256(0x00 + sha256(encode_record(record)))
   - The 0x00 prefix separates leaves from internal nodes
2. Parent hashing: parent = sha256(min(a, b) + max(a, b))
   - Byte-wise lexicographic order, so parent(a, b) == parent(b, a)
3. Odd layer: the last node is carried up unchanged (no duplication,
   no zero padding)
4. Empty input: not a tree; raises EmptyInputException
5. Single leaf: root = leaf

Determinism Notes:
- Leaf ordering is the caller's order; this module never sorts leaves
- Proofs are plain sibling lists with no left/right markers; they prove
  membership, not position
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from rootlock.crypto.hashing import HASH_SIZE, hash_concat, hashv, sha256, to_hex
from rootlock.schemas.errors import (
    EmptyInputException,
    ProofMismatchError,
    ValidationError,
    ValidationException,
)
from rootlock.schemas.record import VestingRecord, encode_record
from rootlock.schemas.verification import CheckResult, VerificationResult


logger = logging.getLogger(__name__)


# Domain separation prefix applied to leaves only
LEAF_PREFIX: bytes = b"\x00"


@dataclass(frozen=True)
class MerkleProof:
    """
    An inclusion proof for a single leaf.

    Attributes:
        leaf: The leaf hash being proven
        siblings: Sibling hashes from the leaf layer upwards, root excluded
        root: The Merkle root this proof is against
    """
    leaf: bytes
    siblings: tuple[bytes, ...]
    root: bytes


def leaf_hash(record: VestingRecord) -> bytes:
    """
    Compute the domain-separated leaf hash of a record.

    leaf = sha256(0x00 + sha256(encode_record(record)))

    Args:
        record: The vesting record

    Returns:
        32-byte leaf hash
    """
    return hashv([LEAF_PREFIX, sha256(encode_record(record))])


def merkle_parent(a: bytes, b: bytes) -> bytes:
    """
    Compute the parent hash of two child nodes.

    The smaller input (byte-wise) always goes first, which makes the
    result independent of argument order.

    Args:
        a: One child hash
        b: The other child hash

    Returns:
        Parent hash (32 bytes)
    """
    if b < a:
        a, b = b, a
    return hash_concat(a, b)


def validate_records(records: Sequence[VestingRecord]) -> list[ValidationError]:
    """
    Run the vesting invariants over a whole batch.

    Single up-front pass: every record is checked and every violation
    reported, nothing is hashed.

    Returns:
        All validation errors, in record order (empty if the batch is valid)
    """
    errors: list[ValidationError] = []
    for index, record in enumerate(records):
        errors.extend(record.validation_errors(record_index=index))
    return errors


def _build_layers(leaves: Sequence[bytes]) -> tuple[tuple[bytes, ...], ...]:
    layers: list[tuple[bytes, ...]] = [tuple(leaves)]
    current_level = layers[0]

    while len(current_level) > 1:
        next_level: list[bytes] = []
        for i in range(0, len(current_level) - 1, 2):
            next_level.append(merkle_parent(current_level[i], current_level[i + 1]))

        # Unpaired last node moves up as-is
        if len(current_level) % 2 == 1:
            next_level.append(current_level[-1])

        current_level = tuple(next_level)
        layers.append(current_level)

    return tuple(layers)


@dataclass(frozen=True)
class MerkleTree:
    """
    Immutable Merkle tree over an ordered list of leaf hashes.

    Build from records with MerkleTree.from_records() (validates first)
    or from pre-hashed leaves with MerkleTree.from_leaves().

    Attributes:
        layers: All layers, leaf layer first, root layer last
    """
    layers: tuple[tuple[bytes, ...], ...]

    @classmethod
    def from_leaves(cls, leaves: Sequence[bytes]) -> "MerkleTree":
        """
        Build a tree from pre-hashed leaves.

        Raises:
            EmptyInputException: If leaves is empty
            ValueError: If any leaf is not 32 bytes
        """
        if len(leaves) == 0:
            raise EmptyInputException()
        for i, leaf in enumerate(leaves):
            if len(leaf) != HASH_SIZE:
                raise ValueError(
                    f"Leaf {i} must be {HASH_SIZE} bytes, got {len(leaf)}"
                )

        tree = cls(layers=_build_layers(leaves))
        logger.debug(
            "Built Merkle tree: %d leaves, %d layers, root %s",
            tree.leaf_count, len(tree.layers), to_hex(tree.root),
        )
        return tree

    @classmethod
    def from_records(cls, records: Sequence[VestingRecord]) -> "MerkleTree":
        """
        Validate a record batch, hash it and build the tree.

        The whole batch is rejected if any record is invalid; no tree is
        produced in that case.

        Raises:
            EmptyInputException: If records is empty
            ValidationException: If any record violates the vesting invariants
        """
        if len(records) == 0:
            raise EmptyInputException()

        errors = validate_records(records)
        if errors:
            first = errors[0]
            raise ValidationException(
                message=f"Record {first.record_index} is invalid: {first.message}",
                record_index=first.record_index,
                field_path=first.field_path,
                details={
                    "error_count": len(errors),
                    "errors": [e.model_dump(exclude_none=True) for e in errors],
                },
            )

        return cls.from_leaves([leaf_hash(record) for record in records])

    @property
    def leaves(self) -> tuple[bytes, ...]:
        return self.layers[0]

    @property
    def leaf_count(self) -> int:
        return len(self.layers[0])

    @property
    def root(self) -> bytes:
        return self.layers[-1][0]

    @property
    def depth(self) -> int:
        """Number of layers, leaves and root included."""
        return len(self.layers)

    def find_leaf_index(self, leaf: bytes) -> int | None:
        """Index of the first occurrence of a leaf hash, or None."""
        try:
            return self.leaves.index(leaf)
        except ValueError:
            return None

    def get_proof(self, index: int) -> list[bytes]:
        """
        Sibling path for the leaf at index.

        At each layer the other member of the node's pair is recorded;
        a layer is skipped when the node is the carried-forward odd one.

        Raises:
            IndexError: If index is out of range
        """
        if index < 0 or index >= self.leaf_count:
            raise IndexError(
                f"Leaf index {index} out of range for {self.leaf_count} leaves"
            )

        siblings: list[bytes] = []
        current_index = index
        for level in self.layers[:-1]:
            sibling_index = current_index ^ 1
            if sibling_index < len(level):
                siblings.append(level[sibling_index])
            current_index //= 2
        return siblings

    def build_proof(self, index: int) -> MerkleProof:
        """Full MerkleProof (leaf, siblings, root) for the leaf at index."""
        siblings = self.get_proof(index)
        return MerkleProof(
            leaf=self.leaves[index],
            siblings=tuple(siblings),
            root=self.root,
        )


def fold_proof(leaf: bytes, siblings: Sequence[bytes]) -> bytes:
    """Recompute a root by folding siblings into a leaf with merkle_parent."""
    current_hash = leaf
    for sibling in siblings:
        current_hash = merkle_parent(current_hash, sibling)
    return current_hash


def verify_merkle_proof(proof: MerkleProof) -> bool:
    """
    Verify a Merkle proof against its own claimed root.

    Returns:
        True if the proof is valid, False otherwise
    """
    return fold_proof(proof.leaf, proof.siblings) == proof.root


def verify_record(
    record: VestingRecord,
    siblings: Sequence[bytes],
    root: bytes,
) -> bool:
    """
    Check that a record is committed to by root.

    Args:
        record: The claimed record, exactly as committed
        siblings: Its proof path
        root: The committed root

    Returns:
        True iff the recomputed root equals root
    """
    return fold_proof(leaf_hash(record), siblings) == root


def check_record(
    record: VestingRecord,
    siblings: Sequence[bytes],
    root: bytes,
) -> VerificationResult:
    """
    Same as verify_record(), reported as a VerificationResult.

    A mismatch is a normal outcome: the result carries a
    ProofMismatchError instead of raising.
    """
    computed = fold_proof(leaf_hash(record), siblings)
    details = {
        "recipient": record.recipient_hex,
        "proof_length": len(siblings),
    }
    if computed == root:
        return VerificationResult.success(checks=[
            CheckResult.passed(
                check_id="merkle_inclusion",
                message="Record is included in root",
                details=details,
            )
        ])

    logger.warning(
        "Proof rejected for recipient %s against root %s",
        record.recipient_hex, to_hex(root),
    )
    error = ProofMismatchError(
        message="Invalid merkle proof",
        details=details,
        expected_root=to_hex(root),
        computed_root=to_hex(computed),
    )
    return VerificationResult.failure(
        checks=[
            CheckResult.failed(
                check_id="merkle_inclusion",
                message="Recomputed root does not match committed root",
                details=details,
            )
        ],
        error=error,
    )


def compute_tree_depth(num_leaves: int) -> int:
    """
    Compute the number of layers of a tree with num_leaves leaves.

    A single leaf has depth 1, two leaves have depth 2, three have 3, etc.

    Returns:
        Tree depth (0 for no leaves)
    """
    if num_leaves <= 0:
        return 0

    depth = 1
    n = num_leaves
    while n > 1:
        # Carried-forward node counts as one node in the next layer
        n = (n + 1) // 2
        depth += 1

    return depth


__all__ = [
    "LEAF_PREFIX",
    "MerkleProof",
    "MerkleTree",
    "leaf_hash",
    "merkle_parent",
    "validate_records",
    "fold_proof",
    "verify_merkle_proof",
    "verify_record",
    "check_record",
    "compute_tree_depth",
]
