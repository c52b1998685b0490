"""
Certificate store backend: read-only queries against the ledger contract
that records issued Merkle roots and revoked hashes.

Uses direct JSON-RPC `eth_call` requests, so no web3 client library or
contract ABI file is needed. Only the two read methods are supported.
"""

import itertools
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from app.core.config import (
    IS_ISSUED_METHOD,
    IS_REVOKED_METHOD,
    LEDGER_RPC_URL,
    LEDGER_TIMEOUT_SECONDS,
    NETWORK_ID,
)

from .api_models import Certificate
from .exceptions import BackendError, ValidationError
from .hashing import HASH_SIZE_BYTES, keccak256, normalize_hash

log = logging.getLogger(__name__)


_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class ChainBackend(Protocol):
    """Read-only capability over one deployed certificate store.

    Must be safe to share between concurrently running checks.
    Both methods raise BackendError on transport or protocol failure.
    """

    async def is_issued(self, root_hash: str) -> bool:
        ...

    async def is_revoked(self, hash_value: str) -> bool:
        ...


@dataclass(frozen=True)
class StoreBinding:
    """Which store to query: network, contract address and RPC endpoint.

    Built fresh for each certificate; never shared or mutated.
    """
    network_id: str
    contract_address: str
    rpc_url: str


def bind_certificate_store(
    certificate: Certificate,
    network_id: Optional[str] = None,
    rpc_url: Optional[str] = None,
) -> StoreBinding:
    """Build the store binding named by a certificate's verification block.

    Args:
        certificate: Certificate carrying verification.contractAddress.
        network_id: Overrides CERT_NETWORK_ID.
        rpc_url: Overrides CERT_LEDGER_RPC_URL.

    Raises:
        ValidationError: If the contract address is missing or malformed.
    """
    address = certificate.contract_address
    if not address:
        raise ValidationError.missing("store contract address")
    if not _ADDRESS_RE.match(address):
        raise ValidationError(f"Certificate store contract address is invalid: {address}")
    return StoreBinding(
        network_id=network_id or NETWORK_ID,
        contract_address=address,
        rpc_url=rpc_url or LEDGER_RPC_URL,
    )


def function_selector(method_signature: str) -> bytes:
    """First 4 bytes of keccak-256 over the Solidity method signature."""
    return keccak256(method_signature.encode("ascii"))[:4]


IS_ISSUED_SELECTOR = function_selector(IS_ISSUED_METHOD)
IS_REVOKED_SELECTOR = function_selector(IS_REVOKED_METHOD)


def encode_bytes32_call(selector: bytes, hash_value: str) -> str:
    """ABI-encode a single-bytes32-argument call as 0x-prefixed calldata."""
    return "0x" + selector.hex() + normalize_hash(hash_value)


def decode_bool_result(result: Any) -> bool:
    """Decode an ABI-encoded bool return value.

    Raises:
        BackendError: If the result is not a single 32-byte word holding 0 or 1.
    """
    if not isinstance(result, str) or not result.startswith("0x"):
        raise BackendError(f"Unexpected eth_call result: {result!r}")
    try:
        raw = bytes.fromhex(result[2:])
    except ValueError:
        raise BackendError(f"eth_call result is not hex: {result!r}")
    if len(raw) != HASH_SIZE_BYTES:
        # Empty result means no contract code at the bound address
        raise BackendError(
            f"eth_call returned {len(raw)} bytes, expected {HASH_SIZE_BYTES}"
        )
    value = int.from_bytes(raw, "big")
    if value not in (0, 1):
        raise BackendError(f"eth_call result is not a bool: {result}")
    return value == 1


class JsonRpcCertificateStore:
    """ChainBackend speaking Ethereum JSON-RPC to a node.

    A fresh httpx client is opened per query, so one instance can serve
    any number of concurrent checks.
    """

    def __init__(self, binding: StoreBinding, timeout: float = LEDGER_TIMEOUT_SECONDS):
        self.binding = binding
        self.timeout = timeout
        self._ids = itertools.count(1)

    def __repr__(self) -> str:
        return (
            f"JsonRpcCertificateStore(network={self.binding.network_id}, "
            f"contract={self.binding.contract_address})"
        )

    async def is_issued(self, root_hash: str) -> bool:
        result = await self._eth_call(encode_bytes32_call(IS_ISSUED_SELECTOR, root_hash))
        issued = decode_bool_result(result)
        log.info(f"is_issued: root={normalize_hash(root_hash)[:16]}... issued={issued}")
        return issued

    async def is_revoked(self, hash_value: str) -> bool:
        result = await self._eth_call(encode_bytes32_call(IS_REVOKED_SELECTOR, hash_value))
        revoked = decode_bool_result(result)
        log.info(f"is_revoked: hash={normalize_hash(hash_value)[:16]}... revoked={revoked}")
        return revoked

    async def _eth_call(self, data: str) -> Any:
        """Send one eth_call against the bound contract and return `result`."""
        payload: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "eth_call",
            "params": [{"to": self.binding.contract_address, "data": data}, "latest"],
        }
        url = self.binding.rpc_url
        log.debug(f"    eth_call: {url} data={data[:18]}...")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload)
        except httpx.TimeoutException:
            raise BackendError(f"Certificate store query timed out after {self.timeout}s")
        except httpx.RequestError as e:
            raise BackendError(f"Certificate store network error: {e}")

        if resp.status_code >= 400:
            raise BackendError(f"Certificate store query failed: HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError:
            raise BackendError("Certificate store returned invalid JSON")

        if not isinstance(body, dict):
            raise BackendError("Certificate store returned malformed JSON-RPC response")
        error = body.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise BackendError(f"Certificate store query failed: {message}")
        if "result" not in body:
            raise BackendError("Certificate store response has no result")
        return body["result"]
