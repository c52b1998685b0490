import logging
import os
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.logging_config import configure_logging, set_service_log_level
from app.certs.api_models import VerifyRequest, VerifyResponse
from app.certs.exceptions import ValidationError
from app.certs.store import JsonRpcCertificateStore, bind_certificate_store
from app.certs.verify import verify_certificate

configure_logging()
log = logging.getLogger("app")

app = FastAPI(title="Certificate Verifier", version="0.1.0")


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.middleware("http")
async def req_log(request: Request, call_next):
    start = time.time()
    route = request.url.path
    remote = request.client.host if request.client else "-"
    resp = await call_next(request)
    duration_ms = int((time.time() - start) * 1000)
    log.info(f"request_complete status={resp.status_code} duration_ms={duration_ms}",
             extra={"request_id": "-", "route": route, "remote_addr": remote})
    return resp


@app.post("/verify")
async def verify(req: VerifyRequest, request: Request):
    """Verify a certificate's integrity, issuance and revocation status.

    The three outcomes are reported independently; `valid` is their
    conjunction. Store query failures show up as failed outcomes, not
    HTTP errors.
    """
    req_id = str(uuid.uuid4())
    try:
        binding = bind_certificate_store(req.certificate)
    except ValidationError as e:
        return JSONResponse(
            status_code=400,
            content={"detail": e.message, "code": e.code, "request_id": req_id}
        )

    store = JsonRpcCertificateStore(binding)
    signal = await verify_certificate(req.certificate, store)

    resp = VerifyResponse(
        request_id=req_id,
        network_id=binding.network_id,
        contract_address=binding.contract_address,
        valid=signal.all_passed(),
        hash_integrity=signal.hash_integrity,
        issuance=signal.issuance,
        revocation=signal.revocation,
    )
    log.info("verify_called", extra={"request_id": req_id, "route": "/verify",
                                     "network_id": binding.network_id,
                                     "remote_addr": request.client.host if request.client else "-"})
    return JSONResponse(resp.model_dump(mode="json"))


@app.get("/version")
def version():
    # GIT_SHA is injected at deploy time
    return {"git_sha": os.getenv("GIT_SHA", "unknown")}


@app.get("/admin")
def admin():
    """Return all configurable items for operator visibility.

    Gated by ADMIN_ENDPOINT_ENABLED (default: True for dev, False for prod).
    """
    from app.core.config import (
        SUPPORTED_SIGNATURE_TYPES,
        IS_ISSUED_METHOD,
        IS_REVOKED_METHOD,
        NETWORK_ID,
        LEDGER_RPC_URL,
        LEDGER_TIMEOUT_SECONDS,
        ADMIN_ENDPOINT_ENABLED,
    )

    if not ADMIN_ENDPOINT_ENABLED:
        return JSONResponse(
            status_code=404,
            content={"detail": "Admin endpoint disabled"}
        )

    return {
        "normative": {
            "supported_signature_types": sorted(SUPPORTED_SIGNATURE_TYPES),
            "store_methods": [IS_ISSUED_METHOD, IS_REVOKED_METHOD],
        },
        "ledger": {
            "network_id": NETWORK_ID,
            "rpc_url": LEDGER_RPC_URL,
            "timeout_seconds": LEDGER_TIMEOUT_SECONDS,
        },
        "features": {
            "admin_endpoint_enabled": ADMIN_ENDPOINT_ENABLED,
        },
        "environment": {
            "log_level": logging.getLogger().getEffectiveLevel(),
            "log_level_name": logging.getLevelName(logging.getLogger().getEffectiveLevel()),
        },
    }


class LogLevelRequest(BaseModel):
    level: str


@app.post("/admin/log-level")
def set_log_level(req: LogLevelRequest):
    """Switch the service loggers to another level without a restart."""
    from app.core.config import ADMIN_ENDPOINT_ENABLED

    if not ADMIN_ENDPOINT_ENABLED:
        return JSONResponse(
            status_code=404,
            content={"detail": "Admin endpoint disabled"}
        )

    try:
        applied = set_service_log_level(req.level)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"detail": str(e)})

    log.info(f"admin: log level now {applied}")
    return {"success": True, "log_level": applied}
