"""
Schemas
File: record.py

Purpose: The vesting entitlement record (one Merkle leaf payload per
recipient) and its canonical byte encoding.

Encoding layout (82 bytes, little-endian, no padding, no length prefixes):

    recipient               32 bytes
    vesting_start_time       8 bytes  u64
    cliff_time               8 bytes  u64
    frequency                8 bytes  u64
    cliff_unlock_amount      8 bytes  u64
    amount_per_period        8 bytes  u64
    number_of_period         8 bytes  u64
    update_recipient_mode    1 byte   u8
    cancel_mode              1 byte   u8
"""

from __future__ import annotations

import struct
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from rootlock.crypto.hashing import from_hex, to_hex

from .errors import MathOverflowException, ValidationError


U64_MAX: int = 2**64 - 1
U8_MAX: int = 2**8 - 1
RECIPIENT_SIZE: int = 32

# Numeric tail of the encoding: six u64 fields then two u8 fields
_NUMERIC_LAYOUT = struct.Struct("<QQQQQQBB")

ENCODED_RECORD_SIZE: int = RECIPIENT_SIZE + _NUMERIC_LAYOUT.size


class UpdateRecipientMode(IntEnum):
    """Who may change the recipient of an escrow created from this record."""

    NEITHER_CREATOR_OR_RECIPIENT = 0
    ONLY_CREATOR = 1
    ONLY_RECIPIENT = 2
    EITHER_CREATOR_AND_RECIPIENT = 3


class CancelMode(IntEnum):
    """Who may cancel an escrow created from this record."""

    NEITHER_CREATOR_OR_RECIPIENT = 0
    ONLY_CREATOR = 1
    ONLY_RECIPIENT = 2
    EITHER_CREATOR_AND_RECIPIENT = 3


class VestingRecord(BaseModel):
    """
    One recipient's vesting entitlement inside a batch grant.

    Records are immutable. Field ranges (u64 / u8 / 32-byte recipient) are
    enforced on construction; the vesting invariants
    (vesting_start_time < cliff_time, frequency > 0) are checked separately
    by validation_errors() so that encoding stays total over the type.

    The two mode fields are opaque bytes: unknown values pass through
    unchanged and are hashed as given.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    recipient: bytes = Field(
        ...,
        description="32-byte recipient account (0x hex in JSON)",
    )
    vesting_start_time: int = Field(..., ge=0, le=U64_MAX)
    cliff_time: int = Field(..., ge=0, le=U64_MAX)
    frequency: int = Field(..., ge=0, le=U64_MAX)
    cliff_unlock_amount: int = Field(default=0, ge=0, le=U64_MAX)
    amount_per_period: int = Field(default=0, ge=0, le=U64_MAX)
    number_of_period: int = Field(default=0, ge=0, le=U64_MAX)
    update_recipient_mode: int = Field(default=0, ge=0, le=U8_MAX)
    cancel_mode: int = Field(default=0, ge=0, le=U8_MAX)

    @field_validator("recipient", mode="before")
    @classmethod
    def _parse_recipient(cls, value: object) -> object:
        if isinstance(value, str):
            return from_hex(value)
        return value

    @field_validator("recipient")
    @classmethod
    def _check_recipient_size(cls, value: bytes) -> bytes:
        if len(value) != RECIPIENT_SIZE:
            raise ValueError(
                f"recipient must be {RECIPIENT_SIZE} bytes, got {len(value)}"
            )
        return value

    @field_serializer("recipient")
    def _serialize_recipient(self, value: bytes) -> str:
        return to_hex(value)

    @property
    def recipient_hex(self) -> str:
        return to_hex(self.recipient)

    def encode(self) -> bytes:
        """Canonical byte encoding of this record."""
        return encode_record(self)

    def total_amount(self) -> int:
        """
        Total amount the record entitles its recipient to.

        cliff_unlock_amount + amount_per_period * number_of_period

        Raises:
            MathOverflowException: If any step leaves the u64 range
        """
        periodic = self.amount_per_period * self.number_of_period
        if periodic > U64_MAX:
            raise MathOverflowException(
                details={"recipient": self.recipient_hex, "step": "amount_per_period * number_of_period"},
            )
        total = self.cliff_unlock_amount + periodic
        if total > U64_MAX:
            raise MathOverflowException(
                details={"recipient": self.recipient_hex, "step": "cliff_unlock_amount + periodic"},
            )
        return total

    def validation_errors(self, record_index: int | None = None) -> list[ValidationError]:
        """
        Check the vesting invariants.

        Returns:
            Empty list if the record is valid, otherwise one
            ValidationError per violated invariant.
        """
        errors: list[ValidationError] = []
        if self.vesting_start_time >= self.cliff_time:
            errors.append(ValidationError(
                message=(
                    f"vesting_start_time ({self.vesting_start_time}) must be "
                    f"before cliff_time ({self.cliff_time})"
                ),
                record_index=record_index,
                field_path="cliff_time",
                expected=f"> {self.vesting_start_time}",
                actual=str(self.cliff_time),
                details={"recipient": self.recipient_hex},
            ))
        if self.frequency == 0:
            errors.append(ValidationError(
                message="Frequency is zero",
                record_index=record_index,
                field_path="frequency",
                expected="> 0",
                actual="0",
                details={"recipient": self.recipient_hex},
            ))
        return errors


def encode_record(record: VestingRecord) -> bytes:
    """
    Serialize a record into its canonical fixed-layout byte string.

    Encoding is total over VestingRecord: any constructed record
    encodes, valid or not.

    Args:
        record: The record to encode

    Returns:
        ENCODED_RECORD_SIZE bytes
    """
    return record.recipient + _NUMERIC_LAYOUT.pack(
        record.vesting_start_time,
        record.cliff_time,
        record.frequency,
        record.cliff_unlock_amount,
        record.amount_per_period,
        record.number_of_period,
        record.update_recipient_mode,
        record.cancel_mode,
    )


__all__ = [
    "U64_MAX",
    "U8_MAX",
    "RECIPIENT_SIZE",
    "ENCODED_RECORD_SIZE",
    "UpdateRecipientMode",
    "CancelMode",
    "VestingRecord",
    "encode_record",
]
