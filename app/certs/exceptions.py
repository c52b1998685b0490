"""Certificate verification exceptions mapped to check error codes.

Each check converts these into a FAILURE outcome scoped to that check;
none of them escapes the orchestrator.
"""

from typing import Optional

from app.certs.api_models import ErrorCode


class CertificateError(Exception):
    """Base exception for certificate verification.

    Carries an error code that maps to ErrorCode constants.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class ValidationError(CertificateError):
    """Certificate is malformed: missing or unparseable hash, proof or address."""

    def __init__(self, message: str = "Certificate is malformed"):
        super().__init__(ErrorCode.VALIDATION_ERROR, message)

    @classmethod
    def missing(cls, what: str) -> "ValidationError":
        """Factory for an absent required field."""
        return cls(f"Certificate {what} is missing")


class IntegrityMismatchError(CertificateError):
    """Recomputed document or path hash does not match the declared root,
    or the declared integrity scheme is unsupported."""

    def __init__(self, message: str = "Certificate integrity check failed"):
        super().__init__(ErrorCode.INTEGRITY_MISMATCH, message)


class NotIssuedError(CertificateError):
    """Merkle root is not recorded as issued in the certificate store."""

    def __init__(self, message: str = "Certificate has not been issued"):
        super().__init__(ErrorCode.NOT_ISSUED, message)


class RevokedError(CertificateError):
    """A hash on the certificate's proof path is marked revoked."""

    def __init__(self, revoked_hash: str, message: Optional[str] = None):
        self.revoked_hash = revoked_hash
        super().__init__(
            ErrorCode.REVOKED,
            message or f"Certificate has been revoked, revoked hash: {revoked_hash}",
        )


class BackendError(CertificateError):
    """Network or protocol failure talking to the certificate store.

    Never retried here; retry policy belongs to the caller.
    """

    def __init__(self, message: str = "Certificate store query failed"):
        super().__init__(ErrorCode.BACKEND_ERROR, message)
