"""Merkle-anchored certificate verification.

Three independent checks run concurrently per certificate:
- hash integrity: document content reproduces the declared Merkle root
- issuance: the root is recorded as issued in the certificate store
- revocation: no hash on the leaf-to-root path is revoked
"""

from .api_models import (
    Certificate,
    CheckName,
    CheckOutcome,
    CompletionSignal,
    ErrorCode,
    OutcomeStatus,
    Signature,
)
from .chain import RevocationChain, build_revocation_chain
from .checks import check_hash_integrity, check_issuance, check_revocation
from .exceptions import (
    BackendError,
    CertificateError,
    IntegrityMismatchError,
    NotIssuedError,
    RevokedError,
    ValidationError,
)
from .hashing import keccak256, normalize_hash, pair_hash
from .integrity import DocumentIntegrityVerifier, MerkleProofVerifier, digest_document
from .store import ChainBackend, JsonRpcCertificateStore, StoreBinding, bind_certificate_store
from .verify import (
    CheckResolved,
    RunState,
    VerificationCancelled,
    VerificationComplete,
    VerificationRun,
    verify_certificate,
)

__all__ = [
    # Models
    "Certificate",
    "Signature",
    "CheckName",
    "CheckOutcome",
    "CompletionSignal",
    "ErrorCode",
    "OutcomeStatus",
    # Exceptions
    "CertificateError",
    "ValidationError",
    "IntegrityMismatchError",
    "NotIssuedError",
    "RevokedError",
    "BackendError",
    # Hashing and chain
    "keccak256",
    "normalize_hash",
    "pair_hash",
    "RevocationChain",
    "build_revocation_chain",
    # Checks
    "check_hash_integrity",
    "check_issuance",
    "check_revocation",
    "DocumentIntegrityVerifier",
    "MerkleProofVerifier",
    "digest_document",
    # Store
    "ChainBackend",
    "StoreBinding",
    "JsonRpcCertificateStore",
    "bind_certificate_store",
    # Orchestration
    "VerificationRun",
    "RunState",
    "CheckResolved",
    "VerificationComplete",
    "VerificationCancelled",
    "verify_certificate",
]
