"""
Merkle Tree Unit Tests
Tests for rootlock/merkle/merkle_tree.py and rootlock/merkle/merkle_proofs.py

Covers:
1. Root determinism - same records -> same root across builds
2. Odd layers - unpaired node carried forward unchanged (3 and 5 leaves)
3. Proof verification - proof for each index verifies
4. Tamper detection - mutated record or proof hash fails verification
5. Empty input - rejected
6. Single leaf - root equals leaf
7. Order-independent parent hashing
"""
import pytest

from fixtures import make_record, make_records
from rootlock.crypto.hashing import from_hex, hashv, sha256, to_hex
from rootlock.merkle.merkle_proofs import MerkleProver, MerkleVerifier
from rootlock.merkle.merkle_tree import (
    LEAF_PREFIX,
    MerkleProof,
    MerkleTree,
    check_record,
    compute_tree_depth,
    fold_proof,
    leaf_hash,
    merkle_parent,
    validate_records,
    verify_merkle_proof,
    verify_record,
)
from rootlock.schemas.errors import (
    EmptyInputException,
    ErrorCodes,
    ProofMismatchError,
    ValidationException,
)
from rootlock.schemas.record import encode_record


# sha256(0x00 + sha256(encode(make_record(n=1)))) and the same for n=2
SCENARIO_LEAF_A = from_hex("0x868420870e9a44d2fb25b495da141a7f4f56cdcaa13fe97766dcdaaa5f73eb47")
SCENARIO_LEAF_B = from_hex("0x797a91acdfde20da4e0d96432ba8e4bf8a46f27802fc41c9de6d45e9bc40e75d")
SCENARIO_ROOT_AB = from_hex("0xd7ab5353f7bafd4d9d4529e20809295402c51a8427868105c01296644063c567")


def _flip_bit(data: bytes, bit: int) -> bytes:
    buf = bytearray(data)
    buf[bit // 8] ^= 1 << (bit % 8)
    return bytes(buf)


class TestLeafHash:
    """Tests for leaf_hash()."""

    def test_leaf_hash_definition(self, record):
        """Test leaf_hash is the prefixed double hash of the encoding."""
        expected = sha256(LEAF_PREFIX + sha256(encode_record(record)))
        assert leaf_hash(record) == expected
        assert leaf_hash(record) == hashv([LEAF_PREFIX, sha256(encode_record(record))])

    def test_known_leaf_value(self):
        """Test the default record's known leaf hash."""
        assert leaf_hash(make_record(n=1)) == SCENARIO_LEAF_A
        assert leaf_hash(make_record(n=2)) == SCENARIO_LEAF_B

    def test_leaf_is_not_plain_hash(self, record):
        """Test the leaf differs from a plain hash of the encoding."""
        assert leaf_hash(record) != sha256(encode_record(record))

    def test_leaf_changes_with_any_field(self, record):
        """Test changing any field changes the leaf."""
        base = leaf_hash(record)
        variants = [
            make_record(n=2),
            make_record(vesting_start_time=1),
            make_record(cliff_time=201),
            make_record(frequency=11),
            make_record(cliff_unlock_amount=101),
            make_record(amount_per_period=101),
            make_record(number_of_period=201),
            make_record(update_recipient_mode=1),
            make_record(cancel_mode=1),
        ]
        for variant in variants:
            assert leaf_hash(variant) != base


class TestMerkleParent:
    """Tests for sorted-pair parent hashing."""

    def test_parent_is_commutative(self):
        """Test merkle_parent ignores argument order."""
        a = sha256(b"a")
        b = sha256(b"b")
        assert merkle_parent(a, b) == merkle_parent(b, a)

    def test_parent_orders_smaller_first(self):
        """Test the smaller child is hashed first."""
        low = b"\x00" * 32
        high = b"\xff" * 32
        assert merkle_parent(high, low) == sha256(low + high)

    def test_parent_of_equal_children(self):
        """Test a parent of two equal children."""
        a = sha256(b"same")
        assert merkle_parent(a, a) == sha256(a + a)


class TestEmptyInput:
    """Tests for empty input behavior."""

    def test_from_records_empty_raises(self):
        """Test building from zero records raises."""
        with pytest.raises(EmptyInputException) as exc_info:
            MerkleTree.from_records([])
        assert exc_info.value.code == ErrorCodes.EMPTY_INPUT

    def test_from_leaves_empty_raises(self):
        """Test building from zero leaves raises."""
        with pytest.raises(EmptyInputException):
            MerkleTree.from_leaves([])

    def test_prover_empty_raises(self):
        """Test MerkleProver rejects zero records."""
        with pytest.raises(EmptyInputException):
            MerkleProver.compute_root([])


class TestSingleLeaf:
    """Tests for single record trees."""

    def test_root_equals_leaf(self, record):
        """Test a single leaf is its own root."""
        tree = MerkleTree.from_records([record])
        assert tree.root == leaf_hash(record)
        assert tree.depth == 1

    def test_proof_is_empty(self, record):
        """Test a single-leaf proof is empty."""
        tree = MerkleTree.from_records([record])
        assert tree.get_proof(0) == []

    def test_scenario_verifies_with_empty_proof(self, record):
        """Test a single record verifies with an empty proof."""
        root = MerkleProver.compute_root([record])

        assert root == SCENARIO_LEAF_A
        assert verify_record(record, [], root)

    def test_scenario_rejects_other_root(self, record):
        """Test a single record fails against another root."""
        other_root = sha256(b"some other root")
        assert not verify_record(record, [], other_root)


class TestTwoLeaves:
    """Tests for the two record scenario."""

    def test_root_is_parent_of_leaves(self):
        """Test the two-leaf root matches the known value."""
        a, b = make_record(n=1), make_record(n=2)
        tree = MerkleTree.from_records([a, b])

        assert tree.root == merkle_parent(leaf_hash(a), leaf_hash(b))
        assert tree.root == SCENARIO_ROOT_AB

    def test_proofs_are_each_others_leaf(self):
        """Test each two-leaf proof is the sibling leaf."""
        a, b = make_record(n=1), make_record(n=2)
        tree = MerkleTree.from_records([a, b])

        assert tree.get_proof(0) == [leaf_hash(b)]
        assert tree.get_proof(1) == [leaf_hash(a)]

    def test_root_independent_of_pair_order(self):
        """Test swapping two records keeps the root."""
        a, b = make_record(n=1), make_record(n=2)
        assert MerkleProver.compute_root([a, b]) == MerkleProver.compute_root([b, a])


class TestOddLayers:
    """Tests for the carry-forward rule on odd layers."""

    def test_three_leaves(self):
        """Test the third leaf is carried up unchanged."""
        records = make_records(3)
        leaves = [leaf_hash(r) for r in records]
        tree = MerkleTree.from_records(records)

        p01 = merkle_parent(leaves[0], leaves[1])
        assert tree.layers[1] == (p01, leaves[2])
        assert tree.root == merkle_parent(p01, leaves[2])

    def test_three_leaves_carried_proof(self):
        """Test the carried leaf's proof skips its unpaired layer."""
        records = make_records(3)
        leaves = [leaf_hash(r) for r in records]
        tree = MerkleTree.from_records(records)

        assert tree.get_proof(2) == [merkle_parent(leaves[0], leaves[1])]
        assert tree.get_proof(0) == [leaves[1], leaves[2]]

    def test_five_leaves(self):
        """Test the five-leaf root is built with carry-forward."""
        records = make_records(5)
        leaves = [leaf_hash(r) for r in records]
        tree = MerkleTree.from_records(records)

        p01 = merkle_parent(leaves[0], leaves[1])
        p23 = merkle_parent(leaves[2], leaves[3])
        p0123 = merkle_parent(p01, p23)

        assert tree.layers[1] == (p01, p23, leaves[4])
        assert tree.layers[2] == (p0123, leaves[4])
        assert tree.root == merkle_parent(p0123, leaves[4])
        assert tree.get_proof(4) == [p0123]

    def test_no_duplication_of_last_leaf(self):
        """Test the last leaf is not paired with itself."""
        records = make_records(3)
        leaves = [leaf_hash(r) for r in records]
        tree = MerkleTree.from_records(records)

        assert tree.root != merkle_parent(
            merkle_parent(leaves[0], leaves[1]),
            merkle_parent(leaves[2], leaves[2]),
        )


class TestRootDeterminism:
    """Tests for deterministic root computation."""

    def test_same_records_same_root(self, records):
        """Test building twice gives the same root."""
        assert MerkleProver.compute_root(records) == MerkleProver.compute_root(list(records))

    def test_leaf_order_matters(self, records):
        """Test reordering leaves across pairs changes the root."""
        reordered = [records[0], records[2], records[1], records[3], records[4]]
        assert MerkleProver.compute_root(records) != MerkleProver.compute_root(reordered)


class TestProofVerification:
    """Tests for proof generation and verification."""

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 6, 7, 8, 9, 16, 17])
    def test_every_proof_verifies(self, count):
        """Test every leaf's proof verifies."""
        records = make_records(count)
        root, proofs = MerkleProver.prove_all(records)

        for record, proof in zip(records, proofs):
            assert verify_record(record, proof, root)

    @pytest.mark.parametrize("count", [1, 2, 3, 5, 8, 13])
    def test_proof_length_bounded_by_depth(self, count):
        """Test proofs are no longer than the tree depth."""
        tree = MerkleTree.from_records(make_records(count))
        for i in range(count):
            assert len(tree.get_proof(i)) <= tree.depth - 1

    def test_build_proof(self, records):
        """Test MerkleProver.prove returns a verifying proof."""
        proof = MerkleProver.prove(records, 3)

        assert proof.leaf == leaf_hash(records[3])
        assert verify_merkle_proof(proof)
        assert MerkleVerifier.verify(proof)

    def test_build_proof_out_of_range(self, records):
        """Test proving an out-of-range index raises."""
        tree = MerkleTree.from_records(records)
        with pytest.raises(IndexError):
            tree.build_proof(5)
        with pytest.raises(IndexError):
            tree.get_proof(-1)

    def test_verify_leaf_in_root(self, records):
        """Test verifying a raw leaf against the root."""
        tree = MerkleTree.from_records(records)
        leaf = MerkleVerifier.leaf_for(records[1])

        assert tree.find_leaf_index(leaf) == 1
        assert MerkleVerifier.verify_leaf_in_root(leaf, tree.get_proof(1), tree.root)

    def test_find_missing_leaf(self, records):
        """Test looking up an absent leaf returns None."""
        tree = MerkleTree.from_records(records)
        assert tree.find_leaf_index(sha256(b"missing")) is None

    def test_fold_proof_empty(self, record):
        """Test folding an empty proof returns the leaf."""
        assert fold_proof(leaf_hash(record), []) == leaf_hash(record)


class TestTamperDetection:
    """Tests that any single-bit change breaks verification."""

    def test_mutated_record_fails(self, records):
        """Test a changed amount fails verification."""
        root, proofs = MerkleProver.prove_all(records)
        mutated = records[2].model_copy(update={"cliff_unlock_amount": records[2].cliff_unlock_amount ^ 1})

        assert not verify_record(mutated, proofs[2], root)

    def test_mutated_recipient_bit_fails(self, records):
        """Test a flipped recipient bit fails verification."""
        root, proofs = MerkleProver.prove_all(records)
        for bit in range(0, 256, 17):
            mutated = records[0].model_copy(update={"recipient": _flip_bit(records[0].recipient, bit)})
            assert not verify_record(mutated, proofs[0], root)

    def test_every_proof_bit_flip_fails(self):
        """Test flipping any proof bit fails verification."""
        records = make_records(3)
        root, proofs = MerkleProver.prove_all(records)
        proof = proofs[0]

        for position in range(len(proof)):
            for bit in range(256):
                tampered = list(proof)
                tampered[position] = _flip_bit(tampered[position], bit)
                assert not verify_record(records[0], tampered, root)

    def test_wrong_root_fails(self, records):
        """Test a valid proof fails against a different root."""
        root, proofs = MerkleProver.prove_all(records)
        assert not verify_record(records[0], proofs[0], _flip_bit(root, 0))

    def test_tampered_merkle_proof_object(self, records):
        """Test a MerkleProof with a swapped sibling fails."""
        proof = MerkleProver.prove(records, 1)
        tampered = MerkleProof(leaf=_flip_bit(proof.leaf, 3), siblings=proof.siblings, root=proof.root)
        assert not verify_merkle_proof(tampered)


class TestCheckRecord:
    """Tests for the VerificationResult form of verification."""

    def test_check_passes(self, records, assert_check_passed):
        """Test check_record reports a passing inclusion check."""
        root, proofs = MerkleProver.prove_all(records)
        result = check_record(records[1], proofs[1], root)

        assert result.ok
        assert result.error is None
        assert_check_passed(result, "merkle_inclusion")

    def test_check_mismatch_is_returned_not_raised(self, records, assert_check_failed):
        """Test a mismatch comes back as a failed result."""
        root, proofs = MerkleProver.prove_all(records)
        result = MerkleVerifier.check_record(records[1], proofs[2], root)

        assert not result.ok
        assert_check_failed(result, "merkle_inclusion")
        assert isinstance(result.error, ProofMismatchError)
        assert result.error.code == ErrorCodes.MERKLE_PROOF_INVALID
        assert result.error.expected_root == to_hex(root)
        assert result.error.computed_root != to_hex(root)


class TestRecordValidation:
    """Tests for batch validation before hashing."""

    def test_validate_records_collects_all(self):
        """Test validate_records reports every invalid record."""
        records = [
            make_record(n=1),
            make_record(n=2, frequency=0),
            make_record(n=3, vesting_start_time=500),
        ]
        errors = validate_records(records)

        assert [e.record_index for e in errors] == [1, 2]

    def test_invalid_record_rejects_batch(self):
        """Test one invalid record rejects the whole batch."""
        records = [make_record(n=1), make_record(n=2, frequency=0)]
        with pytest.raises(ValidationException) as exc_info:
            MerkleTree.from_records(records)

        assert exc_info.value.record_index == 1
        assert exc_info.value.field_path == "frequency"
        assert exc_info.value.details["error_count"] == 1

    def test_from_leaves_rejects_bad_length(self):
        """Test leaves must be 32 bytes."""
        with pytest.raises(ValueError):
            MerkleTree.from_leaves([b"\x00" * 31])


class TestComputeTreeDepth:
    """Tests for compute_tree_depth()."""

    @pytest.mark.parametrize(
        "num_leaves,expected",
        [(0, 0), (1, 1), (2, 2), (3, 3), (4, 3), (5, 4), (8, 4), (9, 5)],
    )
    def test_depth(self, num_leaves, expected):
        """Test compute_tree_depth for known sizes."""
        assert compute_tree_depth(num_leaves) == expected

    @pytest.mark.parametrize("count", [1, 2, 3, 5, 8, 9])
    def test_depth_matches_tree(self, count):
        """Test compute_tree_depth matches a built tree."""
        tree = MerkleTree.from_records(make_records(count))
        assert tree.depth == compute_tree_depth(count)
