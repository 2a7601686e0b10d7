"""
Distribution Tree
The issuance-side tree file: every record of a batch grant together with
its proof, the committed root and the batch totals that the root registry
entry is created with.

File format (JSON, written by write_to_file):

    {
      "merkle_root": "0x…",
      "version": 0,
      "max_claim_amount": 123,
      "max_escrow": 2,
      "tree_nodes": [{"recipient": "0x…", …, "proof": ["0x…", …]}, …]
    }

CSV input columns are listed in CSV_COLUMNS; recipients are 0x hex.
"""
from __future__ import annotations

import csv
import logging
import random
from pathlib import Path
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic import ValidationError as PydanticValidationError

from rootlock.crypto.hashing import from_hex, hash_from_hex, to_hex
from rootlock.merkle.merkle_tree import MerkleTree, verify_record
from rootlock.schemas.errors import (
    DuplicateRecipientException,
    EmptyInputException,
    InvalidParamsException,
    MathOverflowException,
    RecipientNotFoundException,
    RootlockException,
    TreeFileException,
    TreeValidationException,
)
from rootlock.schemas.record import U64_MAX, VestingRecord
from rootlock.schemas.verification import CheckResult, VerificationResult


logger = logging.getLogger(__name__)


CSV_COLUMNS: tuple[str, ...] = (
    "recipient",
    "vesting_start_time",
    "cliff_time",
    "frequency",
    "cliff_unlock_amount",
    "amount_per_period",
    "number_of_period",
    "update_recipient_mode",
    "cancel_mode",
)

# A tree can be at most height 32
MAX_NODES: int = 2**32 - 1


class TreeNode(VestingRecord):
    """A committed record plus the proof its recipient claims with."""

    proof: tuple[bytes, ...] | None = Field(
        default=None,
        description="Sibling hashes from leaf layer upwards (0x hex in JSON)",
    )

    @field_validator("proof", mode="before")
    @classmethod
    def _parse_proof(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            return tuple(from_hex(v) if isinstance(v, str) else v for v in value)
        return value

    @field_serializer("proof")
    def _serialize_proof(self, value: tuple[bytes, ...] | None) -> list[str] | None:
        if value is None:
            return None
        return [to_hex(v) for v in value]

    @classmethod
    def from_record(cls, record: VestingRecord, proof: Sequence[bytes] | None = None) -> "TreeNode":
        data = dict(record)
        data.pop("proof", None)
        return cls(**data, proof=tuple(proof) if proof is not None else None)

    def to_record(self) -> VestingRecord:
        """The bare record, without its proof."""
        data = dict(self)
        data.pop("proof")
        return VestingRecord(**data)


def sum_claim_amount(records: Sequence[VestingRecord]) -> int:
    """
    Sum of total_amount() over records.

    Raises:
        MathOverflowException: If a record total or the sum exceeds u64
    """
    total = 0
    for record in records:
        total += record.total_amount()
        if total > U64_MAX:
            raise MathOverflowException(
                message="Total claim amount overflows u64",
                details={"recipient": record.recipient_hex},
            )
    return total


def validate_batch(records: Sequence[VestingRecord]) -> None:
    """
    Issuance-side checks applied to a batch before it becomes a tree.

    - no recipient appears twice
    - every record satisfies the vesting invariants
    - every record entitles its recipient to a non-zero amount

    Raises:
        DuplicateRecipientException, ValidationException,
        InvalidParamsException, MathOverflowException
    """
    seen: set[bytes] = set()
    for index, record in enumerate(records):
        if record.recipient in seen:
            raise DuplicateRecipientException(record.recipient_hex)
        seen.add(record.recipient)

        errors = record.validation_errors(record_index=index)
        if errors:
            raise errors[0].to_exception()

        if record.total_amount() == 0:
            raise InvalidParamsException(
                message=f"{record.recipient_hex} has a zero total amount",
                details={"record_index": index, "recipient": record.recipient_hex},
            )


class VestingMerkleTree(BaseModel):
    """
    A batch grant's distributable tree.

    Build with VestingMerkleTree.new() (or from_csv()); load a previously
    written tree with from_file(). The node order is the input order.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    merkle_root: bytes = Field(..., description="Committed root (0x hex in JSON)")
    version: int = Field(default=0, ge=0, le=U64_MAX)
    max_claim_amount: int = Field(..., ge=0, le=U64_MAX)
    max_escrow: int = Field(..., ge=0, le=U64_MAX)
    tree_nodes: list[TreeNode] = Field(default_factory=list)

    @field_validator("merkle_root", mode="before")
    @classmethod
    def _parse_root(cls, value: object) -> object:
        if isinstance(value, str):
            return hash_from_hex(value)
        return value

    @field_serializer("merkle_root")
    def _serialize_root(self, value: bytes) -> str:
        return to_hex(value)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def new(cls, records: Sequence[VestingRecord], version: int = 0) -> "VestingMerkleTree":
        """
        Build the tree, attach a proof to every node and compute totals.

        Raises:
            EmptyInputException: If records is empty
            DuplicateRecipientException: If a recipient appears twice
            ValidationException: If any record is invalid
            InvalidParamsException: If a record has a zero total amount
            MathOverflowException: If the total claim amount overflows u64
            TreeValidationException: If the built tree fails validate()
        """
        if len(records) == 0:
            raise EmptyInputException()
        validate_batch(records)

        tree = MerkleTree.from_records(records)
        nodes = [
            TreeNode.from_record(record, tree.get_proof(i))
            for i, record in enumerate(records)
        ]

        distribution = cls(
            merkle_root=tree.root,
            version=version,
            max_claim_amount=sum_claim_amount(records),
            max_escrow=len(nodes),
            tree_nodes=nodes,
        )

        logger.info(
            "Created vesting tree version %d with %d escrows and total claim amount %d root %s",
            version, distribution.max_escrow, distribution.max_claim_amount,
            to_hex(distribution.merkle_root),
        )
        distribution.validate()
        return distribution

    @classmethod
    def from_csv(cls, path: str | Path, version: int = 0) -> "VestingMerkleTree":
        """
        Load records from a CSV file and build the tree.

        Raises:
            TreeFileException: If the file is missing or a row cannot be parsed
        """
        return cls.new(read_records_csv(path, validate=False), version=version)

    @classmethod
    def from_file(cls, path: str | Path) -> "VestingMerkleTree":
        """
        Load a tree previously written with write_to_file().

        Raises:
            TreeFileException: If the file is missing or malformed
        """
        path = Path(path)
        if not path.exists():
            raise TreeFileException(f"Tree file not found: {path}", path=str(path))
        try:
            return cls.model_validate_json(path.read_text(encoding="utf-8"))
        except PydanticValidationError as e:
            raise TreeFileException(
                f"Malformed tree file: {path}",
                path=str(path),
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

    def write_to_file(self, path: str | Path) -> Path:
        """Write the tree as pretty-printed JSON, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        logger.info("Wrote vesting tree to %s", path)
        return path

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def records(self) -> list[VestingRecord]:
        return [node.to_record() for node in self.tree_nodes]

    def merkle_tree(self) -> MerkleTree:
        """Rebuild the full MerkleTree from the stored nodes."""
        return MerkleTree.from_records(self.records())

    def get_node(self, recipient: bytes | str) -> TreeNode:
        """
        Find a recipient's node.

        Raises:
            RecipientNotFoundException: If the recipient is not in the tree
        """
        key = from_hex(recipient) if isinstance(recipient, str) else recipient
        for node in self.tree_nodes:
            if node.recipient == key:
                return node
        raise RecipientNotFoundException(
            recipient if isinstance(recipient, str) else to_hex(recipient)
        )

    def to_recipient_map(self) -> dict[bytes, TreeNode]:
        return {node.recipient: node for node in self.tree_nodes}

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def check(self) -> VerificationResult:
        """
        Audit the tree for internal consistency.

        Checks node count limits, duplicate recipients, the claim total,
        the root and every stored proof. Never raises.
        """
        result = VerificationResult.success()

        if self.max_escrow > MAX_NODES:
            result.add_check(CheckResult.failed(
                "node_limit",
                f"Max num nodes {self.max_escrow} is greater than 2^32 - 1",
            ))
        else:
            result.add_check(CheckResult.passed("node_limit"))

        if len(self.tree_nodes) != self.max_escrow:
            result.add_check(CheckResult.failed(
                "node_count",
                f"Tree nodes length {len(self.tree_nodes)} does not match max_escrow {self.max_escrow}",
            ))
        else:
            result.add_check(CheckResult.passed("node_count"))

        if len({node.recipient for node in self.tree_nodes}) != len(self.tree_nodes):
            result.add_check(CheckResult.failed("unique_recipients", "Duplicate recipient found"))
        else:
            result.add_check(CheckResult.passed("unique_recipients"))

        try:
            claim_amount = sum_claim_amount(self.tree_nodes)
        except MathOverflowException as e:
            result.add_check(CheckResult.failed("claim_amount", e.message))
        else:
            if claim_amount != self.max_claim_amount:
                result.add_check(CheckResult.failed(
                    "claim_amount",
                    f"Tree nodes max_claim_amount {claim_amount} does not match {self.max_claim_amount}",
                ))
            else:
                result.add_check(CheckResult.passed("claim_amount"))

        try:
            rebuilt_root = self.merkle_tree().root
        except RootlockException as e:
            result.add_check(CheckResult.failed("merkle_root", e.message))
        else:
            if rebuilt_root != self.merkle_root:
                result.add_check(CheckResult.failed(
                    "merkle_root",
                    "Merkle root is invalid given nodes",
                    details={"expected": to_hex(self.merkle_root), "actual": to_hex(rebuilt_root)},
                ))
            else:
                result.add_check(CheckResult.passed("merkle_root"))

        bad_proofs = [
            node.recipient_hex
            for node in self.tree_nodes
            if node.proof is None or not verify_record(node, node.proof, self.merkle_root)
        ]
        if bad_proofs:
            result.add_check(CheckResult.failed(
                "node_proofs",
                f"{len(bad_proofs)} node(s) carry an invalid merkle proof",
                details={"recipients": bad_proofs},
            ))
        else:
            result.add_check(CheckResult.passed("node_proofs"))

        return result

    def validate(self) -> None:
        """
        Raise if check() reports any failure.

        Raises:
            TreeValidationException: With every failed check message
        """
        result = self.check()
        if not result.ok:
            messages = result.get_error_messages()
            raise TreeValidationException(
                message=messages[0],
                details={"errors": messages},
            )


def read_records_csv(path: str | Path, validate: bool = True) -> list[VestingRecord]:
    """
    Parse a CSV file of vesting records.

    Args:
        path: CSV file with a header row containing CSV_COLUMNS
        validate: Run validate_batch() over the parsed records

    Raises:
        TreeFileException: If the file is missing, lacks columns,
            or a row cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise TreeFileException(f"CSV file not found: {path}", path=str(path))

    records: list[VestingRecord] = []
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = [c for c in CSV_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise TreeFileException(
                f"CSV file is missing columns: {', '.join(missing)}",
                path=str(path),
            )
        for line_number, row in enumerate(reader, start=2):
            # DictReader pads short rows with None
            if any(row[c] is None for c in CSV_COLUMNS):
                raise TreeFileException(
                    f"Invalid row at line {line_number}: missing values",
                    path=str(path),
                    details={"line": line_number},
                )
            try:
                records.append(VestingRecord(**{c: row[c].strip() for c in CSV_COLUMNS}))
            except PydanticValidationError as e:
                raise TreeFileException(
                    f"Invalid row at line {line_number}: {e.error_count()} error(s)",
                    path=str(path),
                    details={
                        "line": line_number,
                        "errors": e.errors(include_url=False, include_context=False),
                    },
                ) from e

    if validate:
        validate_batch(records)
    return records


def write_records_csv(path: str | Path, records: Sequence[VestingRecord]) -> Path:
    """Write records to CSV using CSV_COLUMNS."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)
        for record in records:
            data = record.model_dump()
            writer.writerow([data[c] for c in CSV_COLUMNS])
    return path


def generate_test_records(num_nodes: int, seed: int | None = None) -> list[VestingRecord]:
    """Random but valid records, for exercising tooling."""
    rng = random.Random(seed)
    records: list[VestingRecord] = []
    for _ in range(num_nodes):
        vesting_start_time = rng.randrange(0, 1000)
        records.append(VestingRecord(
            recipient=rng.randbytes(32),
            vesting_start_time=vesting_start_time,
            cliff_time=vesting_start_time + rng.randrange(1, 1000),
            frequency=rng.randrange(1, 100),
            cliff_unlock_amount=rng.randrange(0, 1000),
            amount_per_period=rng.randrange(1, 1000),
            number_of_period=rng.randrange(1, 1000),
            update_recipient_mode=rng.randrange(0, 4),
            cancel_mode=rng.randrange(0, 4),
        ))
    return records


def generate_test_csv(path: str | Path, num_nodes: int, seed: int | None = None) -> Path:
    """Write generate_test_records() output to a CSV file."""
    return write_records_csv(path, generate_test_records(num_nodes, seed=seed))


__all__ = [
    "CSV_COLUMNS",
    "MAX_NODES",
    "TreeNode",
    "VestingMerkleTree",
    "sum_claim_amount",
    "validate_batch",
    "read_records_csv",
    "write_records_csv",
    "generate_test_records",
    "generate_test_csv",
]
