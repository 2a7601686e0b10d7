"""
Hashing Utilities
Byte-level hashing primitives for vesting record commitments.

This module provides:
- SHA-256 hashing for raw bytes
- Multi-part hashing (hash of concatenated parts)
- Hex encoding/decoding with 0x prefix

Security/Determinism Notes:
- Always hash raw bytes exactly as given
- Multi-part hashing concatenates without separators or length prefixes
- All operations are deterministic
"""
from __future__ import annotations

import hashlib
from typing import Iterable


# Size of every node in the commitment tree
HASH_SIZE: int = 32


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte SHA-256 digest

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def hashv(parts: Iterable[bytes]) -> bytes:
    """
    Hash several byte strings as if they were one concatenated buffer.

    hashv([a, b, c]) == sha256(a + b + c)

    Args:
        parts: Byte strings to feed into the hash in order

    Returns:
        32-byte SHA-256 digest
    """
    hasher = hashlib.sha256()
    for part in parts:
        hasher.update(part)
    return hasher.digest()


def hash_concat(left: bytes, right: bytes) -> bytes:
    """
    Hash the concatenation of two byte sequences.

    Args:
        left: First byte sequence
        right: Second byte sequence

    Returns:
        32-byte SHA-256 digest of concatenation
    """
    return sha256(left + right)


def to_hex(data: bytes) -> str:
    """Lowercase hex with a 0x prefix; used for roots, leaves and recipients in files."""
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Decode a 0x-prefixed hex string.

    Upper- and lowercase digits are accepted; the prefix is mandatory so
    that a bare decimal amount can never be mistaken for a key.

    Raises:
        ValueError: Missing prefix, odd digit count or a non-hex digit
    """
    if not hex_string.startswith("0x"):
        raise ValueError(f"Expected 0x-prefixed hex, got {hex_string[:12]!r}")

    digits = hex_string[2:]
    if len(digits) % 2:
        raise ValueError(f"Hex string must have even length, got {len(digits)} digits")

    try:
        return bytes.fromhex(digits)
    except ValueError as e:
        raise ValueError(f"Invalid hex digits in {hex_string[:12]!r}") from e


def hash_from_hex(hex_string: str) -> bytes:
    """
    Decode a 0x-prefixed hex string that must hold exactly one 32-byte hash.

    Raises:
        ValueError: If the string is not valid hex or not 32 bytes long
    """
    data = from_hex(hex_string)
    if len(data) != HASH_SIZE:
        raise ValueError(f"Expected a {HASH_SIZE}-byte hash, got {len(data)} bytes")
    return data


__all__ = [
    "HASH_SIZE",
    "sha256",
    "hashv",
    "hash_concat",
    "to_hex",
    "from_hex",
    "hash_from_hex",
]
