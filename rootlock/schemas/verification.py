"""
Schemas
File: verification.py

Purpose: Outcome of proof checks and tree audits.

A rejected inclusion proof or an inconsistent tree file is a normal
answer, not a failure of the caller; both come back as a
VerificationResult listing every named check that ran. Exceptions are
reserved for inputs that cannot be checked at all.

Check ids in use:
    merkle_inclusion   record + proof reproduce the committed root
    node_limit         tree holds at most 2^32 - 1 nodes
    node_count         max_escrow equals the number of stored nodes
    unique_recipients  no recipient has two nodes
    claim_amount       max_claim_amount equals the sum of record totals
    merkle_root        root rebuilt from the nodes equals merkle_root
    node_proofs        every stored proof verifies against merkle_root
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .errors import RootlockError


class CheckResult(BaseModel):
    """One named check and whether it held."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    check_id: str = Field(..., min_length=1)
    ok: bool
    message: str = ""
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def passed(
        cls,
        check_id: str,
        message: str = "ok",
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        return cls(check_id=check_id, ok=True, message=message, details=details or {})

    @classmethod
    def failed(
        cls,
        check_id: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        return cls(check_id=check_id, ok=False, message=message, details=details or {})


class VerificationResult(BaseModel):
    """
    Ordered checks plus an overall verdict.

    ok is False as soon as one check fails. error optionally carries the
    structured reason for the first failure (e.g. a ProofMismatchError
    with the expected and recomputed roots).
    """

    model_config = ConfigDict(extra="forbid")

    ok: bool = True
    checks: list[CheckResult] = Field(default_factory=list)
    error: RootlockError | None = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, checks: list[CheckResult] | None = None) -> "VerificationResult":
        return cls(ok=True, checks=checks or [])

    @classmethod
    def failure(
        cls,
        checks: list[CheckResult],
        error: RootlockError | None = None,
    ) -> "VerificationResult":
        return cls(ok=False, checks=checks, error=error)

    def add_check(self, check: CheckResult) -> None:
        self.checks.append(check)
        if not check.ok:
            self.ok = False

    def get_check(self, check_id: str) -> CheckResult | None:
        """First check with this id, or None if it did not run."""
        for check in self.checks:
            if check.check_id == check_id:
                return check
        return None

    def get_failed_checks(self) -> list[CheckResult]:
        return [check for check in self.checks if not check.ok]

    def get_error_messages(self) -> list[str]:
        """Messages of failed checks, in the order the checks ran."""
        return [check.message for check in self.get_failed_checks()]
