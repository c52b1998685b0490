"""Keccak-256 helpers and the commutative pair hash used for Merkle paths.

Hashes travel as lowercase hex without a 0x prefix. Every public helper
accepts either form and normalises before comparing or combining.
"""

from Crypto.Hash import keccak

from .exceptions import ValidationError


HASH_SIZE_BYTES = 32


def keccak256(data: bytes) -> bytes:
    """Raw keccak-256 digest (the Ethereum variant, not NIST SHA3-256)."""
    h = keccak.new(digest_bits=256)
    h.update(data)
    return h.digest()


def keccak256_hex(text: str) -> str:
    """Hex keccak-256 digest of a UTF-8 string."""
    return keccak256(text.encode("utf-8")).hex()


def normalize_hash(value: str) -> str:
    """Return `value` as 64 lowercase hex chars.

    Raises:
        ValidationError: If value is not a hex-encoded 32-byte hash.
    """
    if not isinstance(value, str):
        raise ValidationError(f"Hash must be a hex string, got {type(value).__name__}")
    text = value[2:] if value[:2].lower() == "0x" else value
    try:
        raw = bytes.fromhex(text)
    except ValueError:
        raise ValidationError(f"Hash is not valid hex: {value}")
    if len(raw) != HASH_SIZE_BYTES:
        raise ValidationError(
            f"Hash must be {HASH_SIZE_BYTES} bytes, got {len(raw)}: {value}"
        )
    return raw.hex()


def hashes_equal(a: str, b: str) -> bool:
    """Byte-wise hash equality."""
    return normalize_hash(a) == normalize_hash(b)


def pair_hash(a: str, b: str) -> str:
    """Combine two sibling hashes into their parent hash.

    The two inputs are sorted as byte strings before hashing, so the result
    is the same whichever side each sibling sat on. Proofs do not record
    sibling order, so this is what makes path reconstruction possible.
    """
    left = bytes.fromhex(normalize_hash(a))
    right = bytes.fromhex(normalize_hash(b))
    first, second = sorted((left, right))
    return keccak256(first + second).hex()
