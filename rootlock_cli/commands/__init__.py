"""
CLI command modules.
"""

from rootlock_cli.commands import rotate, tree, verify

__all__ = ["tree", "verify", "rotate"]
