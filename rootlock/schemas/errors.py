"""
Schemas
File: errors.py

Purpose: Standard error taxonomy for the vesting commitment scheme.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the package."""

    # Record & Batch Errors
    RECORD_VALIDATION_ERROR = "RECORD_VALIDATION_ERROR"
    EMPTY_INPUT = "EMPTY_INPUT"
    INVALID_PARAMS = "INVALID_PARAMS"
    DUPLICATE_RECIPIENT = "DUPLICATE_RECIPIENT"
    RECIPIENT_NOT_FOUND = "RECIPIENT_NOT_FOUND"
    MATH_OVERFLOW = "MATH_OVERFLOW"

    # Merkle & Commitment Errors
    MERKLE_PROOF_INVALID = "MERKLE_PROOF_INVALID"
    TREE_VALIDATION_ERROR = "TREE_VALIDATION_ERROR"
    TREE_FILE_ERROR = "TREE_FILE_ERROR"

    # Root Registry Errors
    DUPLICATE_ROOT = "DUPLICATE_ROOT"
    NOT_PERMITTED = "NOT_PERMITTED"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    AMOUNT_IS_ZERO = "AMOUNT_IS_ZERO"
    ESCROW_ALREADY_CREATED = "ESCROW_ALREADY_CREATED"
    ESCROW_LIMIT_REACHED = "ESCROW_LIMIT_REACHED"
    CLAIM_CEILING_EXCEEDED = "CLAIM_CEILING_EXCEEDED"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class RootlockError(BaseModel):
    """
    Base error model for structured error communication.

    Used where an outcome is reported as data rather than raised,
    e.g. a rejected inclusion proof.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.RECORD_VALIDATION_ERROR],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )

    def to_exception(self) -> "RootlockException":
        """Convert this error model to a raised exception."""
        return RootlockException(
            code=self.code,
            message=self.message,
            details=self.details,
        )


class ValidationError(RootlockError):
    """Error model for a vesting record that violates its invariants."""

    code: str = Field(default=ErrorCodes.RECORD_VALIDATION_ERROR)
    record_index: int | None = Field(
        default=None,
        description="Position of the offending record in the input batch",
    )
    field_path: str | None = Field(
        default=None,
        description="Field that failed validation",
    )
    expected: str | None = Field(default=None)
    actual: str | None = Field(default=None)

    def to_exception(self) -> "ValidationException":
        return ValidationException(
            message=self.message,
            record_index=self.record_index,
            field_path=self.field_path,
            details=self.details,
        )


class ProofMismatchError(RootlockError):
    """Error model for a proof whose recomputed root does not match."""

    code: str = Field(default=ErrorCodes.MERKLE_PROOF_INVALID)
    expected_root: str | None = Field(
        default=None,
        description="Root the proof was checked against (0x hex)",
    )
    computed_root: str | None = Field(
        default=None,
        description="Root recomputed from the record and proof (0x hex)",
    )


class DuplicateRootError(RootlockError):
    """Error model for a rotation that would not change the root."""

    code: str = Field(default=ErrorCodes.DUPLICATE_ROOT)
    root: str | None = Field(default=None)


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class RootlockException(Exception):
    """
    Base exception for all rootlock errors.

    Carries structured error information and can be converted
    to a RootlockError model.
    """

    def __init__(
        self,
        message: str,
        code: str = "ROOTLOCK_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_error_model(self) -> RootlockError:
        """Convert this exception to a RootlockError model."""
        return RootlockError(
            code=self.code,
            message=self.message,
            details=self.details,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ValidationException(RootlockException):
    """Raised when a record batch fails validation before hashing."""

    def __init__(
        self,
        message: str,
        record_index: int | None = None,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = dict(details or {})
        if record_index is not None:
            full_details["record_index"] = record_index
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(
            message=message,
            code=ErrorCodes.RECORD_VALIDATION_ERROR,
            details=full_details,
        )
        self.record_index = record_index
        self.field_path = field_path


class EmptyInputException(RootlockException):
    """Raised when a tree is requested over zero records."""

    def __init__(self, message: str = "Cannot build a Merkle tree from zero records") -> None:
        super().__init__(message=message, code=ErrorCodes.EMPTY_INPUT)


class InvalidParamsException(RootlockException):
    """Raised when registry or batch parameters are out of range."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_PARAMS,
            details=details,
        )


class DuplicateRecipientException(RootlockException):
    """Raised when a batch lists the same recipient twice."""

    def __init__(self, recipient: str) -> None:
        super().__init__(
            message=f"Duplicate recipient {recipient}",
            code=ErrorCodes.DUPLICATE_RECIPIENT,
            details={"recipient": recipient},
        )
        self.recipient = recipient


class RecipientNotFoundException(RootlockException):
    """Raised when a recipient has no node in a tree."""

    def __init__(self, recipient: str) -> None:
        super().__init__(
            message=f"Recipient {recipient} not found in tree",
            code=ErrorCodes.RECIPIENT_NOT_FOUND,
            details={"recipient": recipient},
        )
        self.recipient = recipient


class MathOverflowException(RootlockException):
    """Raised when an amount leaves the unsigned 64-bit range."""

    def __init__(
        self,
        message: str = "Math operation overflow",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.MATH_OVERFLOW,
            details=details,
        )


class MerkleVerificationException(RootlockException):
    """Raised when an operation requires a valid proof and gets a rejected one."""

    def __init__(
        self,
        message: str,
        recipient: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = dict(details or {})
        if recipient:
            full_details["recipient"] = recipient
        super().__init__(
            message=message,
            code=ErrorCodes.MERKLE_PROOF_INVALID,
            details=full_details,
        )


class TreeValidationException(RootlockException):
    """Raised when a distribution tree is internally inconsistent."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.TREE_VALIDATION_ERROR,
            details=details,
        )


class TreeFileException(RootlockException):
    """Raised when a tree file or CSV cannot be read or parsed."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = dict(details or {})
        if path:
            full_details["path"] = path
        super().__init__(
            message=message,
            code=ErrorCodes.TREE_FILE_ERROR,
            details=full_details,
        )


class DuplicateRootException(RootlockException):
    """Raised when a rotation targets the root that is already committed."""

    def __init__(self, root: str) -> None:
        super().__init__(
            message=f"New root {root} is identical to the current root",
            code=ErrorCodes.DUPLICATE_ROOT,
            details={"root": root},
        )
        self.root = root

    def to_error_model(self) -> DuplicateRootError:
        return DuplicateRootError(
            message=self.message,
            details=self.details,
            root=self.root,
        )


class NotPermittedException(RootlockException):
    """Raised when the signer is not allowed to perform an action."""

    def __init__(
        self,
        message: str = "Not permit to do this action",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.NOT_PERMITTED,
            details=details,
        )


class AlreadyCancelledException(RootlockException):
    """Raised when a cancelled registry entry is mutated."""

    def __init__(self, message: str = "Already cancelled") -> None:
        super().__init__(message=message, code=ErrorCodes.ALREADY_CANCELLED)


class AmountIsZeroException(RootlockException):
    """Raised when a funding call would move zero tokens."""

    def __init__(self, message: str = "Amount is zero") -> None:
        super().__init__(message=message, code=ErrorCodes.AMOUNT_IS_ZERO)


class EscrowAlreadyCreatedException(RootlockException):
    """Raised when a recipient's escrow was already created from a root."""

    def __init__(self, recipient: str) -> None:
        super().__init__(
            message=f"Escrow already created for recipient {recipient}",
            code=ErrorCodes.ESCROW_ALREADY_CREATED,
            details={"recipient": recipient},
        )
        self.recipient = recipient


class RegistryLimitException(RootlockException):
    """Raised when a registry ceiling (escrow count or claim amount) is hit."""

    def __init__(
        self,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)
