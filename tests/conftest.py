"""
Pytest configuration and shared fixtures for rootlock tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_records = importlib.import_module("fixtures.records")

make_recipient = _records.make_recipient
make_record = _records.make_record
make_records = _records.make_records


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def record():
    """Provide the default single-record scenario."""
    return make_record()


@pytest.fixture
def records():
    """Provide five valid records with distinct recipients."""
    return make_records(5)


@pytest.fixture
def creator():
    """Provide a creator account distinct from every fixture recipient."""
    return make_recipient(0xC0)


@pytest.fixture(autouse=True)
def _reset_default_config():
    """Keep the process-wide default config from leaking between tests."""
    from rootlock.config import set_default_config
    set_default_config(None)
    yield
    set_default_config(None)


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

def _single_check(result, check_id: str):
    matching = [c for c in result.checks if c.check_id == check_id]
    assert len(matching) == 1, f"Check '{check_id}' ran {len(matching)} times; ran: {[c.check_id for c in result.checks]}"
    assert result.get_check(check_id) is matching[0]
    return matching[0]


@pytest.fixture
def assert_check_passed():
    """Assert that check_id ran exactly once in a VerificationResult and held."""
    def _assert(result, check_id: str):
        check = _single_check(result, check_id)
        assert check.ok, f"Check '{check_id}' failed: {check.message}"
    return _assert


@pytest.fixture
def assert_check_failed():
    """Assert that check_id ran exactly once in a VerificationResult and failed."""
    def _assert(result, check_id: str):
        check = _single_check(result, check_id)
        assert not check.ok, f"Check '{check_id}' unexpectedly passed"
        assert check_id in [c.check_id for c in result.get_failed_checks()]
    return _assert
