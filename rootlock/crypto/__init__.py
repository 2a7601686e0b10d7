"""
Core cryptographic utilities.

Hashing primitives shared by the record encoder and the commitment tree.
"""
from .hashing import (
    HASH_SIZE,
    sha256,
    hashv,
    hash_concat,
    to_hex,
    from_hex,
    hash_from_hex,
)

__all__ = [
    "HASH_SIZE",
    "sha256",
    "hashv",
    "hash_concat",
    "to_hex",
    "from_hex",
    "hash_from_hex",
]
