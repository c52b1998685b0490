"""The three independent certificate checks.

Each check returns a CheckOutcome and never raises for verification
failures: any exception inside a check becomes a FAILURE outcome for that
check alone. Cancellation is not an exception here and always propagates.
"""

import asyncio
import logging
from typing import Optional, Sequence

from .api_models import Certificate, CheckName, CheckOutcome, ErrorCode
from .chain import build_revocation_chain
from .exceptions import NotIssuedError, RevokedError, ValidationError
from .hashing import normalize_hash
from .integrity import DocumentIntegrityVerifier
from .store import ChainBackend

log = logging.getLogger(__name__)


def to_failure(check: CheckName, exc: Exception) -> CheckOutcome:
    """Convert an exception raised inside a check to its FAILURE outcome.

    Domain exceptions carry their own code; anything else is INTERNAL_ERROR.
    """
    code = getattr(exc, "code", ErrorCode.INTERNAL_ERROR)
    message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
    return CheckOutcome.failure(check, code, message)


async def check_hash_integrity(
    certificate: Certificate,
    verifier: DocumentIntegrityVerifier,
) -> CheckOutcome:
    """Confirm the document content reproduces its declared Merkle root.

    Recomputation is CPU work, so the verifier runs in a worker thread to
    keep the other two checks' queries moving.
    """
    check = CheckName.HASH_INTEGRITY
    try:
        if certificate.signature is None or certificate.signature.is_empty():
            raise ValidationError.missing("signature")
        await asyncio.to_thread(verifier.verify, certificate)
    except Exception as e:
        log.info(f"hash_integrity: FAILURE {type(e).__name__}: {e}")
        return to_failure(check, e)
    log.info("hash_integrity: SUCCESS")
    return CheckOutcome.success(check)


async def check_issuance(merkle_root: Optional[str], backend: ChainBackend) -> CheckOutcome:
    """Confirm the Merkle root is recorded as issued in the store."""
    check = CheckName.ISSUANCE
    try:
        if merkle_root is None:
            raise ValidationError.missing("merkle root")
        if not await backend.is_issued(normalize_hash(merkle_root)):
            raise NotIssuedError()
    except Exception as e:
        log.info(f"issuance: FAILURE {type(e).__name__}: {e}")
        return to_failure(check, e)
    log.info("issuance: SUCCESS")
    return CheckOutcome.success(check)


async def check_revocation(
    target_hash: Optional[str],
    proof: Optional[Sequence[str]],
    backend: ChainBackend,
) -> CheckOutcome:
    """Confirm no hash on the path from leaf to root is revoked.

    Queries run one at a time in chain order and stop at the first revoked
    hash, which is the one named in the failure message.
    """
    check = CheckName.REVOCATION
    try:
        chain = build_revocation_chain(target_hash, proof)
        log.info(f"revocation: checking {len(chain)} hash(es)")
        for i, hash_value in enumerate(chain):
            if await backend.is_revoked(hash_value):
                log.info(f"  chain[{i}] revoked: {hash_value}")
                raise RevokedError(hash_value)
    except Exception as e:
        log.info(f"revocation: FAILURE {type(e).__name__}: {e}")
        return to_failure(check, e)
    log.info("revocation: SUCCESS")
    return CheckOutcome.success(check)
