"""
rootlock - Merkle commitments for batch vesting grants.

A batch of vesting records is committed to a single 32-byte root; each
recipient later proves inclusion of its record against that root.
"""

__version__ = "0.1.0"
