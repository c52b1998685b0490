"""Revocation chain reconstruction from a Merkle proof.

The chain is every hash from the leaf up to (and including) the root the
proof reconstructs. Any of them being revoked revokes the certificate,
since revoking an intermediate node revokes the whole subtree below it.
"""

from typing import Optional, Sequence, Tuple

from .exceptions import ValidationError
from .hashing import normalize_hash, pair_hash


RevocationChain = Tuple[str, ...]


def build_revocation_chain(
    target_hash: Optional[str],
    proof: Optional[Sequence[str]],
) -> RevocationChain:
    """Fold the proof over the target hash, keeping every intermediate.

    chain[0] is the target hash and chain[i] = pair_hash(chain[i-1], proof[i-1]),
    so the result has len(proof) + 1 entries. An empty proof yields just
    the target hash.

    Args:
        target_hash: Leaf hash of the certificate.
        proof: Sibling hashes in root-ward order.

    Returns:
        Tuple of normalised hex hashes, leaf first.

    Raises:
        ValidationError: If target_hash or proof is absent or malformed.
    """
    if target_hash is None:
        raise ValidationError.missing("target hash")
    if proof is None:
        raise ValidationError.missing("proof")
    if isinstance(proof, (str, bytes)) or not isinstance(proof, Sequence):
        raise ValidationError("Certificate proof must be a list of hashes")

    chain = [normalize_hash(target_hash)]
    for sibling in proof:
        chain.append(pair_hash(chain[-1], sibling))
    return tuple(chain)
