"""Certificate builders and an in-memory store double shared by the test modules."""

import asyncio
from typing import Iterable, List, Optional

from app.certs.api_models import Certificate
from app.certs.hashing import keccak256
from app.certs.integrity import compute_merkle_root, digest_document

CONTRACT_ADDRESS = "0x" + "ab" * 20


def sibling(label: str) -> str:
    """Deterministic 32-byte hex hash for use as a proof element."""
    return keccak256(label.encode()).hex()


def make_certificate(
    data: Optional[dict] = None,
    proof: Optional[List[str]] = None,
    signature_type: str = "SHA3MerkleProof",
    obfuscated: Iterable[str] = (),
) -> Certificate:
    """Build a certificate whose signature block matches its data."""
    data = data if data is not None else {
        "id": "6c2b9a1c:string:CERT-0042",
        "recipient": {"name": "5e1f0d22:string:Ada Lovelace"},
        "transcript": [
            {"grade": "0b7f6e91:string:A"},
            {"grade": "9a3c4d10:string:B+"},
        ],
    }
    proof = proof if proof is not None else [sibling("left-1"), sibling("right-2")]
    unsigned = Certificate(data=data, privacy={"obfuscatedData": list(obfuscated)})
    target_hash = digest_document(unsigned)
    return Certificate(
        data=data,
        privacy={"obfuscatedData": list(obfuscated)},
        verification={"type": "ETHEREUM", "contractAddress": CONTRACT_ADDRESS},
        signature={
            "type": signature_type,
            "targetHash": target_hash,
            "proof": proof,
            "merkleRoot": compute_merkle_root(target_hash, proof),
        },
    )


class FakeStore:
    """In-memory ChainBackend recording every query it receives."""

    def __init__(
        self,
        issued: Iterable[str] = (),
        revoked: Iterable[str] = (),
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.issued = set(issued)
        self.revoked = set(revoked)
        self.error = error
        self.delay = delay
        self.issued_queries: List[str] = []
        self.revoked_queries: List[str] = []

    def __repr__(self) -> str:
        return "FakeStore()"

    async def is_issued(self, root_hash: str) -> bool:
        self.issued_queries.append(root_hash)
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return root_hash in self.issued

    async def is_revoked(self, hash_value: str) -> bool:
        self.revoked_queries.append(hash_value)
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return hash_value in self.revoked

