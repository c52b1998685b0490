"""Certificate verification orchestration.

Runs the hash-integrity, issuance and revocation checks concurrently
against the same read-only inputs, waits for all three, and emits a
single completion signal carrying the three outcomes.

Run lifecycle:
    PENDING -> RUNNING (3, 2, 1, 0 checks outstanding) -> COMPLETE
    PENDING -> RUNNING -> CANCELLED

A failing check never cancels its siblings. Only cancel() (or cancelling
the task awaiting run()) stops checks early, and then no completion
signal is produced.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple, Union

from .api_models import Certificate, CheckName, CheckOutcome, CompletionSignal
from .checks import check_hash_integrity, check_issuance, check_revocation
from .integrity import DocumentIntegrityVerifier, MerkleProofVerifier
from .store import ChainBackend

log = logging.getLogger(__name__)


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class CheckResolved:
    """One check produced its outcome."""
    outcome: CheckOutcome


@dataclass(frozen=True)
class VerificationComplete:
    """All three checks resolved. Emitted exactly once per completed run."""
    signal: CompletionSignal


@dataclass(frozen=True)
class VerificationCancelled:
    """Run was cancelled. Unresolved checks carry CANCELLED outcomes."""
    outcomes: Tuple[CheckOutcome, ...]


VerificationEvent = Union[CheckResolved, VerificationComplete, VerificationCancelled]
Listener = Callable[[VerificationEvent], None]


class RunState(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETE = "COMPLETE"
    CANCELLED = "CANCELLED"


# =============================================================================
# Orchestrator
# =============================================================================


class VerificationRun:
    """A single verification of one certificate against one store.

    Not reusable: run() may be awaited once.
    """

    def __init__(
        self,
        certificate: Certificate,
        backend: ChainBackend,
        integrity_verifier: Optional[DocumentIntegrityVerifier] = None,
        listener: Optional[Listener] = None,
    ):
        self.run_id = uuid.uuid4().hex[:12]
        self.certificate = certificate
        self.backend = backend
        self.integrity_verifier = integrity_verifier or MerkleProofVerifier()
        self._listener = listener
        self._state = RunState.PENDING
        self._outcomes: Dict[CheckName, CheckOutcome] = {}
        self._tasks: Dict[CheckName, asyncio.Task] = {}

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def outstanding(self) -> int:
        """Number of checks still running (3 before start)."""
        return len(CheckName) - len(self._outcomes)

    def outcome(self, check: CheckName) -> Optional[CheckOutcome]:
        return self._outcomes.get(check)

    def cancel(self) -> bool:
        """Cancel all in-flight checks.

        Returns:
            True if the run was RUNNING with checks still outstanding and
            cancellation was requested. Once all three checks have reported
            the run completes regardless.
        """
        if self._state != RunState.RUNNING or self.outstanding == 0:
            return False
        log.info(f"run {self.run_id}: cancel requested", extra={"run_id": self.run_id})
        for task in self._tasks.values():
            if not task.done():
                task.cancel()
        return True

    async def run(self) -> CompletionSignal:
        """Fan out the three checks, join them, and emit completion.

        Raises:
            RuntimeError: If the run was already started.
            asyncio.CancelledError: If the run was cancelled; state is then
                CANCELLED and unresolved checks report CANCELLED.
        """
        if self._state != RunState.PENDING:
            raise RuntimeError(f"Verification run {self.run_id} already started")
        self._state = RunState.RUNNING

        cert = self.certificate
        signature = cert.signature
        merkle_root = signature.merkle_root if signature else None
        target_hash = signature.target_hash if signature else None
        proof = signature.proof if signature else None

        log.info(
            f"run {self.run_id}: verifying root={merkle_root} against {self.backend!r}",
            extra={"run_id": self.run_id},
        )

        checks = {
            CheckName.HASH_INTEGRITY: check_hash_integrity(cert, self.integrity_verifier),
            CheckName.ISSUANCE: check_issuance(merkle_root, self.backend),
            CheckName.REVOCATION: check_revocation(target_hash, proof, self.backend),
        }
        self._tasks = {
            name: asyncio.create_task(self._run_check(name, coro), name=f"{self.run_id}:{name.value}")
            for name, coro in checks.items()
        }

        try:
            await asyncio.gather(*self._tasks.values())
        except asyncio.CancelledError:
            await self._finish_cancelled()
            raise

        signal = CompletionSignal(
            hash_integrity=self._outcomes[CheckName.HASH_INTEGRITY],
            issuance=self._outcomes[CheckName.ISSUANCE],
            revocation=self._outcomes[CheckName.REVOCATION],
        )
        self._state = RunState.COMPLETE
        log.info(
            f"run {self.run_id}: complete "
            + " ".join(f"{o.check.value}={o.status.value}" for o in signal.outcomes()),
            extra={"run_id": self.run_id},
        )
        self._emit(VerificationComplete(signal))
        return signal

    async def _run_check(self, name: CheckName, coro) -> CheckOutcome:
        outcome = await coro
        self._outcomes[name] = outcome
        log.debug(
            f"run {self.run_id}: {name.value} resolved, {self.outstanding} outstanding",
            extra={"run_id": self.run_id, "check": name.value},
        )
        self._emit(CheckResolved(outcome))
        return outcome

    async def _finish_cancelled(self) -> None:
        for task in self._tasks.values():
            task.cancel()
        # Let every task unwind so no check is left mid-query
        await asyncio.gather(*self._tasks.values(), return_exceptions=True)

        for name in CheckName:
            self._outcomes.setdefault(name, CheckOutcome.cancelled(name))
        self._state = RunState.CANCELLED
        log.info(f"run {self.run_id}: cancelled", extra={"run_id": self.run_id})
        self._emit(VerificationCancelled(tuple(self._outcomes[name] for name in CheckName)))

    def _emit(self, event: VerificationEvent) -> None:
        if self._listener is None:
            return
        try:
            self._listener(event)
        except Exception:
            log.exception(
                f"run {self.run_id}: listener failed on {type(event).__name__}",
                extra={"run_id": self.run_id},
            )


async def verify_certificate(
    certificate: Certificate,
    backend: ChainBackend,
    integrity_verifier: Optional[DocumentIntegrityVerifier] = None,
    listener: Optional[Listener] = None,
) -> CompletionSignal:
    """Run all three checks on a certificate and return their outcomes."""
    run = VerificationRun(certificate, backend, integrity_verifier, listener)
    return await run.run()
