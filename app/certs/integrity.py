"""Document integrity verification for Merkle-proof certificates.

Recomputes the certificate's target hash from its data and the Merkle
root from its proof, and compares both against what the signature block
declares. Works entirely offline.

Digest algorithm (SHA3MerkleProof scheme):
1. Flatten `data` into path keys ("a.b.0.c") mapped to leaf values.
2. Hash each {key: value} pair as compact JSON with keccak-256.
3. Append the hashes listed in privacy.obfuscatedData (redacted fields).
4. Sort the hex hashes and keccak-256 the compact JSON array of them.
"""

import json
import logging
from typing import Any, Dict, List, Protocol, Sequence

from app.core.config import SUPPORTED_SIGNATURE_TYPES

from .api_models import Certificate
from .chain import build_revocation_chain
from .exceptions import IntegrityMismatchError, ValidationError
from .hashing import hashes_equal, keccak256_hex, normalize_hash

log = logging.getLogger(__name__)


class DocumentIntegrityVerifier(Protocol):
    """Capability that confirms a certificate's content reproduces its root.

    verify() returns None on success and raises on any mismatch.
    """

    def verify(self, certificate: Certificate) -> None:
        ...


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def flatten_data(data: Any, prefix: str = "") -> Dict[str, Any]:
    """Flatten nested dicts and lists into dotted path keys.

    List indices become path components. Empty containers are kept as
    leaf values so they still contribute to the digest.
    """
    flat: Dict[str, Any] = {}
    if isinstance(data, dict) and data:
        items = data.items()
    elif isinstance(data, list) and data:
        items = ((str(i), v) for i, v in enumerate(data))
    else:
        if prefix:
            flat[prefix] = data
        return flat

    for key, value in items:
        path = f"{prefix}.{key}" if prefix else str(key)
        flat.update(flatten_data(value, path))
    return flat


def digest_document(certificate: Certificate) -> str:
    """Compute the target hash a certificate's data should carry."""
    flat = flatten_data(certificate.data)
    hashes: List[str] = [keccak256_hex(_compact_json({k: v})) for k, v in flat.items()]
    if certificate.privacy is not None:
        hashes.extend(normalize_hash(h) for h in certificate.privacy.obfuscated_data)
    return keccak256_hex(_compact_json(sorted(hashes)))


def compute_merkle_root(target_hash: str, proof: Sequence[str]) -> str:
    """Walk the proof from the leaf to the root it commits to.

    Raises:
        ValidationError: If the target hash or a proof element is not a
            32-byte hex hash, or proof is not a list.
    """
    return build_revocation_chain(target_hash, proof)[-1]


class MerkleProofVerifier:
    """Stateless verifier for the SHA3MerkleProof scheme."""

    def verify(self, certificate: Certificate) -> None:
        """Raise unless the certificate's data and proof reproduce its root.

        Raises:
            ValidationError: Signature block or one of its fields is missing
                or malformed.
            IntegrityMismatchError: Unsupported scheme, data tampered, or the
                proof does not lead to the declared root.
        """
        signature = certificate.signature
        if signature is None or signature.is_empty():
            raise ValidationError.missing("signature")

        if signature.type not in SUPPORTED_SIGNATURE_TYPES:
            raise IntegrityMismatchError(f"Signature type {signature.type} is not supported")
        if signature.target_hash is None:
            raise ValidationError.missing("target hash")
        if signature.merkle_root is None:
            raise ValidationError.missing("merkle root")
        if signature.proof is None:
            raise ValidationError.missing("proof")

        root = compute_merkle_root(signature.target_hash, signature.proof)
        digest = digest_document(certificate)
        if not hashes_equal(digest, signature.target_hash):
            log.info(f"integrity: digest mismatch computed={digest[:16]}...")
            raise IntegrityMismatchError("Certificate data does not match target hash")

        if not hashes_equal(root, signature.merkle_root):
            log.info(f"integrity: root mismatch computed={root[:16]}...")
            raise IntegrityMismatchError("Merkle root does not match proof")
