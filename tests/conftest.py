# tests/conftest.py
from __future__ import annotations

from typing import Optional

import pytest
from eth_account import Account
from loguru import logger

from lendrelay.core.actions import DelegatedAction, SignedEnvelope
from lendrelay.core.digest import Eip712Domain, sign_typed
from lendrelay.core.ledger import Ledger
from lendrelay.core.pool import AssetRegistry, LendingPool
from lendrelay.core.tokens import InMemoryAssetToken, InMemoryToken
from lendrelay.core.verifier import SignatureVerifier

from tests.support import (
    ALICE_KEY,
    BOB_KEY,
    DUSD_ADDRESS,
    NOW,
    ONE,
    POOL_ADDRESS,
    RWA_ADDRESS,
    CHAIN_ID,
    FakeClock,
)


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="session")
def alice():
    return Account.from_key(ALICE_KEY)


@pytest.fixture(scope="session")
def bob():
    return Account.from_key(BOB_KEY)


@pytest.fixture(scope="session")
def domain() -> Eip712Domain:
    return Eip712Domain(chain_id=CHAIN_ID, verifying_contract=POOL_ADDRESS)


@pytest.fixture
def ledger() -> Ledger:
    return Ledger()


@pytest.fixture
def verifier(domain) -> SignatureVerifier:
    return SignatureVerifier(domain)


@pytest.fixture
def token(ledger, alice, bob) -> InMemoryToken:
    """dUSD with 1000 units for alice and bob, pool approved for all of it."""
    token = InMemoryToken(ledger, DUSD_ADDRESS)
    for account in (alice, bob):
        token.mint(account.address, 1000 * ONE)
        token.approve(account.address, POOL_ADDRESS, 1000 * ONE)
    return token


@pytest.fixture
def asset(ledger) -> InMemoryAssetToken:
    return InMemoryAssetToken(ledger, RWA_ADDRESS)


@pytest.fixture
def pool(ledger, token, asset, verifier) -> LendingPool:
    return LendingPool(ledger, token, verifier, assets=AssetRegistry([asset]), start_time=NOW)


@pytest.fixture
def sign(domain):
    """
    sign(account, action, actor=None, asset=None) -> SignedEnvelope
    """

    def _sign(account, action: DelegatedAction, actor: Optional[str] = None,
              asset: Optional[str] = None, signing_domain: Optional[Eip712Domain] = None) -> SignedEnvelope:
        signature = sign_typed(account.key, signing_domain or domain, action)
        return SignedEnvelope(action=action, signature=signature, actor=actor, asset=asset)

    return _sign
