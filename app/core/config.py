"""
Certificate verifier configuration constants.

Constants are organized into:
- NORMATIVE: Fixed by the certificate format, cannot change without breaking
  compatibility with issued certificates
- OPERATIONAL: Deployment-specific settings (env vars)
"""

import os

# =============================================================================
# NORMATIVE CONSTANTS (fixed by the certificate format)
# =============================================================================

# Integrity schemes the document verifier understands.
# SHA3MerkleProof: keccak-256 field digest + sorted-pair Merkle path
SUPPORTED_SIGNATURE_TYPES: frozenset[str] = frozenset({"SHA3MerkleProof"})

# Certificate store contract read methods (Solidity signatures).
# Selectors are derived from these at import time.
IS_ISSUED_METHOD: str = "isCertificateIssued(bytes32)"
IS_REVOKED_METHOD: str = "isRevoked(bytes32)"

# =============================================================================
# OPERATIONAL SETTINGS (deployment-specific, via environment variables)
# =============================================================================

# Network the certificate store is deployed on.
# Default 5777 is the local development chain id.
NETWORK_ID: str = os.getenv("CERT_NETWORK_ID", "5777")

# JSON-RPC endpoint of a node on NETWORK_ID
LEDGER_RPC_URL: str = os.getenv("CERT_LEDGER_RPC_URL", "http://127.0.0.1:7545")

# Per-request timeout for certificate store queries.
# Failed queries are not retried.
LEDGER_TIMEOUT_SECONDS: float = float(os.getenv("CERT_LEDGER_TIMEOUT", "10.0"))

# Admin endpoint visibility
# Default: True for dev, set to False in production deployments
# Controls whether /admin endpoint returns configuration data
ADMIN_ENDPOINT_ENABLED: bool = os.getenv("ADMIN_ENDPOINT_ENABLED", "true").lower() == "true"
