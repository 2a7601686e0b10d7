"""
Test fixtures package for rootlock tests.

Usage:
    from fixtures import make_record, make_records

    def test_something():
        record = make_record(n=7, cliff_unlock_amount=0)
"""

from .records import (
    make_recipient,
    make_record,
    make_records,
)

__all__ = [
    "make_recipient",
    "make_record",
    "make_records",
]
