"""
rootlock CLI

Command-line interface for building and checking vesting Merkle trees.

Usage:
    python -m rootlock_cli create-merkle-tree --csv records.csv --out tree.json
    python -m rootlock_cli proof tree.json 0x<recipient>
    python -m rootlock_cli verify tree.json 0x<recipient>
    python -m rootlock_cli verify-tree tree.json
    python -m rootlock_cli rotate --tree tree.json --csv amended.csv
"""

__version__ = "0.1.0"
