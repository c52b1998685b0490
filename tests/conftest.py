"""Shared fixtures: a well-formed certificate and a store that issued it."""

import pytest

from app.certs.api_models import Certificate

from helpers import FakeStore, make_certificate


@pytest.fixture
def certificate() -> Certificate:
    return make_certificate()


@pytest.fixture
def issued_store(certificate) -> FakeStore:
    """Store that has issued the fixture certificate and revoked nothing."""
    return FakeStore(issued=[certificate.signature.merkle_root])
