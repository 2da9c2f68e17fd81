from __future__ import annotations

import pytest

from lendrelay.api.app import create_app
from lendrelay.relay.executors import LedgerExecutor
from lendrelay.relay.keys import RelayKey
from lendrelay.relay.rate_limit import RateLimiter
from lendrelay.relay.service import RelayService
from tests.support import RELAYER_KEY


class SpyExecutor:
    """Wraps an executor and records every envelope forwarded to it."""

    def __init__(self, inner):
        self.inner = inner
        self.chain_id = inner.chain_id
        self.submitted = []

    def submit(self, envelope):
        self.submitted.append(envelope)
        return self.inner.submit(envelope)

    def nonce_of(self, address):
        return self.inner.nonce_of(address)


@pytest.fixture
def executor(pool, clock):
    return SpyExecutor(LedgerExecutor(pool, clock=clock))


@pytest.fixture
def service(executor, clock):
    return RelayService(executor, RelayKey(RELAYER_KEY), clock=clock)


@pytest.fixture
def limiter(clock):
    return RateLimiter(limit=100, window=900, clock=clock)


@pytest.fixture
def client(service, limiter):
    """
    Flask test client (no real server).
    """
    app = create_app(service=service, limiter=limiter)
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client
