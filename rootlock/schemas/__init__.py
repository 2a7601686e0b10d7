"""
Schemas
File: __init__.py

Purpose: Export the public API for the schemas module.
"""

from .errors import (
    AlreadyCancelledException,
    AmountIsZeroException,
    DuplicateRecipientException,
    DuplicateRootError,
    DuplicateRootException,
    EmptyInputException,
    ErrorCodes,
    EscrowAlreadyCreatedException,
    InvalidParamsException,
    MathOverflowException,
    MerkleVerificationException,
    NotPermittedException,
    ProofMismatchError,
    RecipientNotFoundException,
    RegistryLimitException,
    RootlockError,
    RootlockException,
    TreeFileException,
    TreeValidationException,
    ValidationError,
    ValidationException,
)

from .record import (
    ENCODED_RECORD_SIZE,
    RECIPIENT_SIZE,
    U64_MAX,
    U8_MAX,
    CancelMode,
    UpdateRecipientMode,
    VestingRecord,
    encode_record,
)

from .verification import (
    CheckResult,
    VerificationResult,
)


__all__ = [
    # Errors
    "ErrorCodes",
    "RootlockError",
    "ValidationError",
    "ProofMismatchError",
    "DuplicateRootError",
    "RootlockException",
    "ValidationException",
    "EmptyInputException",
    "InvalidParamsException",
    "DuplicateRecipientException",
    "RecipientNotFoundException",
    "MathOverflowException",
    "MerkleVerificationException",
    "TreeValidationException",
    "TreeFileException",
    "DuplicateRootException",
    "NotPermittedException",
    "AlreadyCancelledException",
    "AmountIsZeroException",
    "EscrowAlreadyCreatedException",
    "RegistryLimitException",
    # Records
    "U64_MAX",
    "U8_MAX",
    "RECIPIENT_SIZE",
    "ENCODED_RECORD_SIZE",
    "UpdateRecipientMode",
    "CancelMode",
    "VestingRecord",
    "encode_record",
    # Verification
    "CheckResult",
    "VerificationResult",
]
