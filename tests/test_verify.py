"""Tests for verification orchestration."""

import asyncio

import pytest
from unittest.mock import MagicMock

from app.certs.api_models import Certificate, CheckName, ErrorCode, OutcomeStatus
from app.certs.chain import build_revocation_chain
from app.certs.exceptions import BackendError
from app.certs.verify import (
    CheckResolved,
    RunState,
    VerificationCancelled,
    VerificationComplete,
    VerificationRun,
    verify_certificate,
)

from helpers import FakeStore


class EventRecorder:
    """Listener that keeps every event it receives."""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def of_type(self, cls):
        return [e for e in self.events if isinstance(e, cls)]


class TestVerifyCertificate:

    @pytest.mark.asyncio
    async def test_all_checks_pass(self, certificate, issued_store):
        signal = await verify_certificate(certificate, issued_store)

        assert [o.status for o in signal.outcomes()] == [OutcomeStatus.SUCCESS] * 3
        assert signal.all_passed()

    @pytest.mark.asyncio
    async def test_outcomes_are_slotted_by_check(self, certificate, issued_store):
        signal = await verify_certificate(certificate, issued_store)

        assert signal.hash_integrity.check == CheckName.HASH_INTEGRITY
        assert signal.issuance.check == CheckName.ISSUANCE
        assert signal.revocation.check == CheckName.REVOCATION

    @pytest.mark.asyncio
    async def test_not_issued_does_not_affect_other_checks(self, certificate):
        signal = await verify_certificate(certificate, FakeStore())

        assert signal.issuance.code == ErrorCode.NOT_ISSUED
        assert signal.hash_integrity.passed
        assert signal.revocation.passed
        assert not signal.all_passed()

    @pytest.mark.asyncio
    async def test_revoked_intermediate_hash(self, certificate):
        sig = certificate.signature
        chain = build_revocation_chain(sig.target_hash, sig.proof)
        store = FakeStore(issued=[sig.merkle_root], revoked=[chain[1]])

        signal = await verify_certificate(certificate, store)

        assert signal.revocation.code == ErrorCode.REVOKED
        assert chain[1] in signal.revocation.message
        assert chain[2] not in store.revoked_queries
        assert signal.issuance.passed

    @pytest.mark.asyncio
    async def test_backend_down_leaves_integrity_result(self, certificate):
        store = FakeStore(error=BackendError("Certificate store network error: refused"))

        signal = await verify_certificate(certificate, store)

        assert signal.hash_integrity.passed
        assert signal.issuance.code == ErrorCode.BACKEND_ERROR
        assert signal.revocation.code == ErrorCode.BACKEND_ERROR

    @pytest.mark.asyncio
    async def test_missing_proof_fails_integrity_and_revocation(self, certificate, issued_store):
        payload = certificate.model_dump(by_alias=True)
        del payload["signature"]["proof"]
        cert = Certificate.model_validate(payload)

        signal = await verify_certificate(cert, issued_store)

        assert signal.revocation.code == ErrorCode.VALIDATION_ERROR
        assert signal.revocation.message == "Certificate proof is missing"
        assert signal.hash_integrity.code == ErrorCode.VALIDATION_ERROR
        assert signal.issuance.passed

    @pytest.mark.asyncio
    async def test_certificate_without_signature(self):
        signal = await verify_certificate(Certificate(data={"x": "1"}), FakeStore())

        assert all(o.code == ErrorCode.VALIDATION_ERROR for o in signal.outcomes())

    @pytest.mark.asyncio
    async def test_custom_integrity_verifier(self, certificate, issued_store):
        verifier = MagicMock()

        signal = await verify_certificate(certificate, issued_store, integrity_verifier=verifier)

        assert signal.hash_integrity.passed
        verifier.verify.assert_called_once_with(certificate)


class TestVerificationEvents:

    @pytest.mark.asyncio
    async def test_one_event_per_check_then_complete(self, certificate, issued_store):
        recorder = EventRecorder()

        signal = await verify_certificate(certificate, issued_store, listener=recorder)

        resolved = recorder.of_type(CheckResolved)
        assert {e.outcome.check for e in resolved} == set(CheckName)
        assert len(resolved) == 3
        assert isinstance(recorder.events[-1], VerificationComplete)
        assert len(recorder.of_type(VerificationComplete)) == 1
        assert recorder.events[-1].signal == signal

    @pytest.mark.asyncio
    async def test_complete_once_with_mixed_results(self, certificate):
        recorder = EventRecorder()
        store = FakeStore(revoked=[certificate.signature.target_hash])

        await verify_certificate(certificate, store, listener=recorder)

        assert len(recorder.of_type(VerificationComplete)) == 1
        assert recorder.events.index(recorder.of_type(VerificationComplete)[0]) == 3

    @pytest.mark.asyncio
    async def test_completion_waits_for_slowest_check(self, certificate):
        recorder = EventRecorder()
        store = FakeStore(issued=[certificate.signature.merkle_root], delay=0.05)

        await verify_certificate(certificate, store, listener=recorder)

        kinds = [type(e) for e in recorder.events]
        assert kinds == [CheckResolved, CheckResolved, CheckResolved, VerificationComplete]

    @pytest.mark.asyncio
    async def test_listener_failure_does_not_break_run(self, certificate, issued_store):
        listener = MagicMock(side_effect=RuntimeError("ui gone"))

        signal = await verify_certificate(certificate, issued_store, listener=listener)

        assert signal.all_passed()
        assert listener.call_count == 4


class TestVerificationRunLifecycle:

    @pytest.mark.asyncio
    async def test_states(self, certificate, issued_store):
        run = VerificationRun(certificate, issued_store)
        assert run.state == RunState.PENDING
        assert run.outstanding == 3

        await run.run()

        assert run.state == RunState.COMPLETE
        assert run.outstanding == 0
        assert run.outcome(CheckName.ISSUANCE).passed

    @pytest.mark.asyncio
    async def test_run_only_once(self, certificate, issued_store):
        run = VerificationRun(certificate, issued_store)
        await run.run()

        with pytest.raises(RuntimeError):
            await run.run()

    @pytest.mark.asyncio
    async def test_outstanding_counts_down(self, certificate):
        store = FakeStore(issued=[certificate.signature.merkle_root], delay=0.05)
        seen = []
        run = VerificationRun(certificate, store, listener=lambda e: seen.append(run.outstanding))

        await run.run()

        assert seen == [2, 1, 0, 0]

    def test_cancel_before_start_is_noop(self, certificate, issued_store):
        run = VerificationRun(certificate, issued_store)
        assert run.cancel() is False
        assert run.state == RunState.PENDING


class TestVerificationCancellation:

    @pytest.mark.asyncio
    async def test_cancel_stops_in_flight_queries(self, certificate):
        recorder = EventRecorder()
        store = FakeStore(issued=[certificate.signature.merkle_root], delay=10)
        run = VerificationRun(certificate, store, listener=recorder)

        task = asyncio.create_task(run.run())
        await asyncio.sleep(0.05)
        assert run.state == RunState.RUNNING
        assert run.cancel() is True

        with pytest.raises(asyncio.CancelledError):
            await task

        assert run.state == RunState.CANCELLED
        assert run.outcome(CheckName.ISSUANCE).status == OutcomeStatus.CANCELLED
        assert run.outcome(CheckName.REVOCATION).status == OutcomeStatus.CANCELLED
        # Revocation scan stopped after its first query
        assert len(store.revoked_queries) == 1
        assert recorder.of_type(VerificationComplete) == []
        assert len(recorder.of_type(VerificationCancelled)) == 1

    @pytest.mark.asyncio
    async def test_resolved_checks_keep_their_outcome(self, certificate):
        store = FakeStore(issued=[certificate.signature.merkle_root], delay=10)
        run = VerificationRun(certificate, store)

        task = asyncio.create_task(run.run())
        await asyncio.sleep(0.2)
        run.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        # Integrity needs no store query, so it resolved before the cancel
        assert run.outcome(CheckName.HASH_INTEGRITY).status == OutcomeStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_cancel_after_last_check_resolved_is_refused(self, certificate, issued_store):
        recorder = EventRecorder()
        refused = []

        def listener(event):
            recorder(event)
            if isinstance(event, CheckResolved) and run.outstanding == 0:
                refused.append(run.cancel())

        run = VerificationRun(certificate, issued_store, listener=listener)
        signal = await run.run()

        assert refused == [False]
        assert run.state == RunState.COMPLETE
        assert signal.all_passed()
        assert len(recorder.of_type(VerificationComplete)) == 1
        assert recorder.of_type(VerificationCancelled) == []

    @pytest.mark.asyncio
    async def test_cancel_after_completion_is_noop(self, certificate, issued_store):
        run = VerificationRun(certificate, issued_store)
        await run.run()

        assert run.cancel() is False
        assert run.state == RunState.COMPLETE

    @pytest.mark.asyncio
    async def test_cancelling_awaiting_task(self, certificate):
        store = FakeStore(delay=10)
        run = VerificationRun(certificate, store)

        task = asyncio.create_task(run.run())
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert run.state == RunState.CANCELLED
        assert run.outcome(CheckName.ISSUANCE).status == OutcomeStatus.CANCELLED
