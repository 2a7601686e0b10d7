"""
Root Registry Entry
The persisted state of one batch grant: the committed root, its issuer and
the funding / distribution counters that bound what can be created from it.

Lifecycle:
    create()                  -> Active(root)
    fund()                    -> tokens reserved up to max_claim_amount
    create_escrow_from_root() -> one escrow per recipient, proof-checked
    rotate()                  -> Active(new_root), creator only, no-op rejected
    cancel()                  -> frozen; no further rotation

The hosting environment serializes calls (single writer); this class does
no locking.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from rootlock.crypto.hashing import HASH_SIZE, to_hex
from rootlock.merkle.distribution import VestingMerkleTree
from rootlock.merkle.merkle_tree import check_record
from rootlock.schemas.errors import (
    AlreadyCancelledException,
    AmountIsZeroException,
    DuplicateRootException,
    ErrorCodes,
    EscrowAlreadyCreatedException,
    InvalidParamsException,
    MerkleVerificationException,
    NotPermittedException,
    RegistryLimitException,
)
from rootlock.schemas.record import U64_MAX, VestingRecord
from rootlock.schemas.verification import VerificationResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RootUpdated:
    """Emitted by a successful rotation."""
    signer: bytes
    old_root: bytes
    new_root: bytes


@dataclass(frozen=True)
class EscrowCreated:
    """Emitted when a recipient's escrow is created from the root."""
    recipient: bytes
    total_deposit: int
    record: VestingRecord


@dataclass(frozen=True)
class RootFunded:
    funded_amount: int
    total_funded_amount: int


def is_noop_rotation(current_root: bytes, new_root: bytes) -> bool:
    """True when rotating to new_root would leave the commitment unchanged."""
    return current_root == new_root


@dataclass
class RootEscrow:
    """
    One batch grant's committed root plus its counters.

    Attributes:
        creator: Issuer identity; the only signer allowed to rotate
        root: Currently committed Merkle root
        max_claim_amount: Ceiling on the total amount distributed
        max_escrow: Ceiling on the number of escrows created
        version: Batch version chosen by the issuer
        total_funded_amount: Tokens funded so far
        total_escrow_created: Escrows created so far
        total_distribute_amount: Tokens moved into escrows so far
        cancelled: Set once the grant is cancelled
        created_recipients: Recipients whose escrow already exists
    """
    creator: bytes
    root: bytes
    max_claim_amount: int
    max_escrow: int
    version: int = 0
    total_funded_amount: int = 0
    total_escrow_created: int = 0
    total_distribute_amount: int = 0
    cancelled: bool = False
    created_recipients: set[bytes] = field(default_factory=set)

    @classmethod
    def create(
        cls,
        creator: bytes,
        root: bytes,
        max_claim_amount: int,
        max_escrow: int,
        version: int = 0,
    ) -> "RootEscrow":
        """
        Create a registry entry.

        Raises:
            InvalidParamsException: If either ceiling is zero or out of range,
                or root is not a 32-byte hash
        """
        if not (0 < max_claim_amount <= U64_MAX and 0 < max_escrow <= U64_MAX):
            raise InvalidParamsException(
                "max_claim_amount and max_escrow must be positive u64 values",
                details={"max_claim_amount": max_claim_amount, "max_escrow": max_escrow},
            )
        if len(root) != HASH_SIZE:
            raise InvalidParamsException(
                f"root must be {HASH_SIZE} bytes, got {len(root)}",
            )

        escrow = cls(
            creator=creator,
            root=root,
            max_claim_amount=max_claim_amount,
            max_escrow=max_escrow,
            version=version,
        )
        logger.info(
            "Created root escrow version %d: root %s, max_claim_amount %d, max_escrow %d",
            version, to_hex(root), max_claim_amount, max_escrow,
        )
        return escrow

    @classmethod
    def from_tree(cls, tree: VestingMerkleTree, creator: bytes) -> "RootEscrow":
        """Create a registry entry from a distribution tree's root and totals."""
        return cls.create(
            creator=creator,
            root=tree.merkle_root,
            max_claim_amount=tree.max_claim_amount,
            max_escrow=tree.max_escrow,
            version=tree.version,
        )

    def fund(self, max_amount: int) -> RootFunded:
        """
        Fund the entry with at most max_amount, never beyond max_claim_amount.

        Raises:
            AmountIsZeroException: If nothing is left to fund or max_amount is 0
        """
        funded_amount = min(self.max_claim_amount - self.total_funded_amount, max_amount)
        if funded_amount <= 0:
            raise AmountIsZeroException()

        self.total_funded_amount += funded_amount
        logger.info(
            "Funded root escrow with %d (total %d / %d)",
            funded_amount, self.total_funded_amount, self.max_claim_amount,
        )
        return RootFunded(
            funded_amount=funded_amount,
            total_funded_amount=self.total_funded_amount,
        )

    def verify(self, record: VestingRecord, proof: Sequence[bytes]) -> VerificationResult:
        """Check a record's proof against the currently committed root."""
        return check_record(record, proof, self.root)

    def create_escrow_from_root(
        self,
        record: VestingRecord,
        proof: Sequence[bytes],
    ) -> EscrowCreated:
        """
        Create a recipient's escrow after checking its proof.

        Raises:
            MerkleVerificationException: If the proof does not verify
                against the current root
            EscrowAlreadyCreatedException: If the recipient already has one
            RegistryLimitException: If max_escrow, max_claim_amount or the
                funded amount would be exceeded
            AlreadyCancelledException: If the entry is cancelled
            ValidationException: If the record breaks a vesting invariant
        """
        if self.cancelled:
            raise AlreadyCancelledException()

        errors = record.validation_errors()
        if errors:
            raise errors[0].to_exception()

        result = self.verify(record, proof)
        if not result.ok:
            raise MerkleVerificationException(
                "Invalid merkle proof",
                recipient=record.recipient_hex,
                details=result.error.model_dump() if result.error else None,
            )

        if record.recipient in self.created_recipients:
            raise EscrowAlreadyCreatedException(record.recipient_hex)

        if self.total_escrow_created >= self.max_escrow:
            raise RegistryLimitException(
                f"All {self.max_escrow} escrows already created",
                code=ErrorCodes.ESCROW_LIMIT_REACHED,
            )

        total_deposit = record.total_amount()
        new_distribute_amount = self.total_distribute_amount + total_deposit
        if new_distribute_amount > self.max_claim_amount:
            raise RegistryLimitException(
                f"Distributing {total_deposit} exceeds max_claim_amount {self.max_claim_amount}",
                code=ErrorCodes.CLAIM_CEILING_EXCEEDED,
                details={"total_distribute_amount": self.total_distribute_amount},
            )
        if new_distribute_amount > self.total_funded_amount:
            raise RegistryLimitException(
                f"Distributing {total_deposit} exceeds funded amount {self.total_funded_amount}",
                code=ErrorCodes.INSUFFICIENT_FUNDS,
                details={"total_distribute_amount": self.total_distribute_amount},
            )

        self.created_recipients.add(record.recipient)
        self.total_escrow_created += 1
        self.total_distribute_amount = new_distribute_amount

        logger.info(
            "Created escrow for %s from root %s (deposit %d)",
            record.recipient_hex, to_hex(self.root), total_deposit,
        )
        return EscrowCreated(
            recipient=record.recipient,
            total_deposit=total_deposit,
            record=record,
        )

    def is_noop_rotation(self, new_root: bytes) -> bool:
        return is_noop_rotation(self.root, new_root)

    def rotate(self, new_root: bytes, signer: bytes) -> RootUpdated:
        """
        Replace the committed root.

        Escrows already created stay created; records absent from the new
        tree simply stop verifying.

        Raises:
            NotPermittedException: If signer is not the creator
            AlreadyCancelledException: If the entry is cancelled
            InvalidParamsException: If new_root is not a 32-byte hash
            DuplicateRootException: If new_root equals the current root
        """
        if signer != self.creator:
            raise NotPermittedException()
        if self.cancelled:
            raise AlreadyCancelledException()
        if len(new_root) != HASH_SIZE:
            raise InvalidParamsException(
                f"root must be {HASH_SIZE} bytes, got {len(new_root)}",
            )
        if self.is_noop_rotation(new_root):
            raise DuplicateRootException(to_hex(new_root))

        old_root = self.root
        self.root = new_root
        logger.info("Rotated root %s -> %s", to_hex(old_root), to_hex(new_root))
        return RootUpdated(signer=signer, old_root=old_root, new_root=new_root)

    def cancel(self, signer: bytes) -> None:
        """
        Cancel the grant.

        Raises:
            NotPermittedException: If signer is not the creator
            AlreadyCancelledException: If already cancelled
        """
        if signer != self.creator:
            raise NotPermittedException()
        if self.cancelled:
            raise AlreadyCancelledException()
        self.cancelled = True
        logger.info("Cancelled root escrow with root %s", to_hex(self.root))


__all__ = [
    "RootEscrow",
    "RootUpdated",
    "RootFunded",
    "EscrowCreated",
    "is_noop_rotation",
]
