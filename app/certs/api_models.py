"""
Certificate verifier data and API models.

Covers the certificate document shape, the per-check outcome values and
the /verify request/response bodies.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Certificate Document
# =============================================================================

class Signature(BaseModel):
    """Merkle proof record carried in the certificate's `signature` block."""
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    type: Optional[str] = None
    # Hash fields stay untyped here so a malformed value fails only the
    # checks that use it, as a VALIDATION_ERROR outcome
    target_hash: Optional[Any] = Field(default=None, alias="targetHash")
    merkle_root: Optional[Any] = Field(default=None, alias="merkleRoot")
    proof: Optional[Any] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class Privacy(BaseModel):
    """Hashes of fields removed from `data` by selective disclosure."""
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    obfuscated_data: List[str] = Field(default_factory=list, alias="obfuscatedData")


class VerificationInfo(BaseModel):
    """Where the certificate's Merkle root was published."""
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    type: Optional[str] = None
    contract_address: Optional[str] = Field(default=None, alias="contractAddress")


class Certificate(BaseModel):
    """Signed certificate document.

    `data` is opaque to the pipeline apart from the integrity recomputation.
    Any field may be missing at parse time; the checks report missing
    fields as validation failures instead of rejecting the document here.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    data: Dict[str, Any] = Field(default_factory=dict)
    signature: Optional[Signature] = None
    privacy: Optional[Privacy] = None
    verification: Optional[VerificationInfo] = None

    @property
    def contract_address(self) -> Optional[str]:
        if self.verification is None:
            return None
        return self.verification.contract_address


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode:
    """Error code registry for check failures."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTEGRITY_MISMATCH = "INTEGRITY_MISMATCH"
    NOT_ISSUED = "NOT_ISSUED"
    REVOKED = "REVOKED"
    BACKEND_ERROR = "BACKEND_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Check Outcomes
# =============================================================================

class CheckName(str, Enum):
    """The three independent verification facets."""
    HASH_INTEGRITY = "hash_integrity"
    ISSUANCE = "issuance"
    REVOCATION = "revocation"


class OutcomeStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    CANCELLED = "CANCELLED"  # Run cancelled before the check resolved


class CheckOutcome(BaseModel):
    """Result of a single check. One instance per check per run."""
    model_config = ConfigDict(frozen=True)

    check: CheckName
    status: OutcomeStatus
    code: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, check: CheckName) -> "CheckOutcome":
        return cls(check=check, status=OutcomeStatus.SUCCESS)

    @classmethod
    def failure(cls, check: CheckName, code: str, message: str) -> "CheckOutcome":
        return cls(check=check, status=OutcomeStatus.FAILURE, code=code, message=message)

    @classmethod
    def cancelled(cls, check: CheckName) -> "CheckOutcome":
        return cls(check=check, status=OutcomeStatus.CANCELLED)

    @property
    def passed(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS


class CompletionSignal(BaseModel):
    """All three outcomes of a finished run.

    The orchestrator makes no pass/fail judgment; all_passed() is the
    caller-side conjunction.
    """
    model_config = ConfigDict(frozen=True)

    hash_integrity: CheckOutcome
    issuance: CheckOutcome
    revocation: CheckOutcome

    def outcomes(self) -> Tuple[CheckOutcome, CheckOutcome, CheckOutcome]:
        return (self.hash_integrity, self.issuance, self.revocation)

    def all_passed(self) -> bool:
        return all(o.passed for o in self.outcomes())


# =============================================================================
# /verify Request and Response
# =============================================================================

class VerifyRequest(BaseModel):
    """Request body for /verify endpoint"""
    certificate: Certificate


class VerifyResponse(BaseModel):
    """Response body for /verify endpoint"""
    request_id: str
    network_id: str
    contract_address: str
    valid: bool
    hash_integrity: CheckOutcome
    issuance: CheckOutcome
    revocation: CheckOutcome
