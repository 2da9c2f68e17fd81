from __future__ import annotations

import threading
from dataclasses import replace

import pytest
from hypothesis import given, settings, strategies as st

from lendrelay.core.actions import (
    BurnAssetAction,
    DepositAction,
    MintAssetAction,
    TransferAssetAction,
    WithdrawAction,
)
from lendrelay.core.accrual import RAY
from lendrelay.core.digest import Eip712Domain
from lendrelay.core.interfaces import AssetMinter, AssetTransferer
from lendrelay.core.ledger import POOL, PRINCIPAL, SCALED, Ledger
from lendrelay.core.pool import AssetRegistry, LendingPool
from lendrelay.core.tokens import InMemoryToken
from lendrelay.core.verifier import SignatureVerifier
from lendrelay.utils.errors import (
    ExecutionError,
    ExpiryError,
    InsufficientStateError,
    InvalidAddress,
    InvalidAmount,
    ReplayError,
)
from tests.support import CHAIN_ID, DUSD_ADDRESS, NOW, ONE, POOL_ADDRESS, RWA_ADDRESS

DEADLINE = NOW + 600


def _mint(to, nonce=0, amount=ONE):
    return MintAssetAction(
        to=to,
        amount=amount,
        content_id="bafkreihdwdcefgh4dqkjv67uzcmw7ojee6xedzdetojuzjevtenxquvyku",
        name="Invoice 1042",
        description="Receivable, net 60",
        valuation=125_000,
        merkle_root=bytes(32),
        nonce=nonce,
        deadline=DEADLINE,
    )


def test_delegated_deposit_moves_tokens_and_nonce(pool, token, sign, alice):
    result = pool.execute(sign(alice, DepositAction(amount=10 * ONE, nonce=0, deadline=DEADLINE)), NOW)

    assert result.signer == alice.address
    assert result.kind == "deposit"
    assert result.writes > 0
    assert result.events[0]["event"] == "DepositAction"

    account = pool.ledger.account(alice.address)
    assert account.nonce == 1
    assert account.deposit_principal == 10 * ONE
    assert account.scaled_deposit == 10 * ONE
    assert token.balance_of(alice.address) == 990 * ONE
    assert token.balance_of(POOL_ADDRESS) == 10 * ONE


def test_resubmitted_envelope_is_replay(pool, sign, alice):
    envelope = sign(alice, DepositAction(amount=ONE, nonce=0, deadline=DEADLINE))
    pool.execute(envelope, NOW)

    with pytest.raises(ReplayError):
        pool.execute(envelope, NOW)
    assert pool.nonces(alice.address) == 1
    assert pool.ledger.read(PRINCIPAL, alice.address) == ONE


def test_expired_envelope_changes_nothing(pool, token, sign, alice):
    envelope = sign(alice, DepositAction(amount=ONE, nonce=0, deadline=NOW))
    with pytest.raises(ExpiryError):
        pool.execute(envelope, NOW + 1)
    assert pool.nonces(alice.address) == 0
    assert token.balance_of(alice.address) == 1000 * ONE


def test_failed_effect_rolls_back_nonce(pool, token, sign, alice):
    """Deposit more than the balance: transfer fails, nonce and pool state unchanged."""
    envelope = sign(alice, DepositAction(amount=5000 * ONE, nonce=0, deadline=DEADLINE))

    with pytest.raises(ExecutionError):
        pool.execute(envelope, NOW)

    assert pool.nonces(alice.address) == 0
    assert pool.ledger.read(SCALED, alice.address) == 0
    assert token.balance_of(alice.address) == 1000 * ONE

    # same nonce still usable after the failure
    pool.execute(sign(alice, DepositAction(amount=ONE, nonce=0, deadline=DEADLINE)), NOW)
    assert pool.nonces(alice.address) == 1


def test_withdraw_limited_to_principal(pool, token, sign, alice):
    pool.execute(sign(alice, DepositAction(amount=10 * ONE, nonce=0, deadline=DEADLINE)), NOW)

    with pytest.raises(InsufficientStateError) as exc:
        pool.execute(sign(alice, WithdrawAction(amount=11 * ONE, nonce=1, deadline=DEADLINE)), NOW)
    assert exc.value.code == "INSUFFICIENT_PRINCIPAL"
    assert pool.nonces(alice.address) == 1

    pool.execute(sign(alice, WithdrawAction(amount=4 * ONE, nonce=1, deadline=DEADLINE)), NOW)
    account = pool.ledger.account(alice.address)
    assert account.nonce == 2
    assert account.deposit_principal == 6 * ONE
    assert account.scaled_deposit == 6 * ONE
    assert token.balance_of(alice.address) == 994 * ONE


def test_full_withdraw_clears_scaled_balance(pool, sign, alice):
    pool.execute(sign(alice, DepositAction(amount=3 * ONE, nonce=0, deadline=DEADLINE)), NOW)
    pool.execute(sign(alice, WithdrawAction(amount=3 * ONE, nonce=1, deadline=DEADLINE)), NOW + 100)
    assert pool.ledger.read(SCALED, alice.address) == 0
    assert pool.ledger.read(PRINCIPAL, alice.address) == 0


def test_withdraw_keeps_interest_on_the_rest(pool, sign, alice):
    pool.execute(sign(alice, DepositAction(amount=100 * ONE, nonce=0, deadline=DEADLINE)), NOW)
    pool.ledger.write(POOL, "state", replace(pool.state, index=2 * RAY))
    assert pool.preview_balance(alice.address, NOW) == 200 * ONE

    pool.execute(sign(alice, DepositAction(amount=100 * ONE, nonce=1, deadline=DEADLINE)), NOW)
    pool.execute(sign(alice, WithdrawAction(amount=100 * ONE, nonce=2, deadline=DEADLINE)), NOW)

    assert pool.preview_balance(alice.address, NOW) == 200 * ONE
    assert pool.ledger.read(PRINCIPAL, alice.address) == 100 * ONE
    assert pool.ledger.read(SCALED, alice.address) == 100 * ONE


def test_partial_withdraw_burns_scaled_value_at_index(pool, sign, alice):
    pool.execute(sign(alice, DepositAction(amount=100 * ONE, nonce=0, deadline=DEADLINE)), NOW)
    pool.ledger.write(POOL, "state", replace(pool.state, index=2 * RAY))

    pool.execute(sign(alice, WithdrawAction(amount=40 * ONE, nonce=1, deadline=DEADLINE)), NOW)

    # 100 scaled at 2 ray is a 200 claim; taking 40 out leaves 160
    assert pool.ledger.read(SCALED, alice.address) == 80 * ONE
    assert pool.preview_balance(alice.address, NOW) == 160 * ONE


@settings(max_examples=50, deadline=None)
@given(
    existing=st.integers(min_value=1, max_value=10**24),
    amount=st.integers(min_value=1, max_value=10**24),
    index=st.integers(min_value=RAY, max_value=50 * RAY),
)
def test_same_instant_round_trip_keeps_claim(existing, amount, index):
    ledger = Ledger()
    token = InMemoryToken(ledger, DUSD_ADDRESS)
    actor = "0x" + "0b" * 20
    token.mint(actor, existing + amount)
    token.approve(actor, POOL_ADDRESS, existing + amount)
    pool = LendingPool(ledger, token, SignatureVerifier(Eip712Domain(CHAIN_ID, POOL_ADDRESS)), start_time=NOW)

    pool.deposit(actor, existing, NOW)
    ledger.write(POOL, "state", replace(pool.state, index=index))
    before = pool.preview_balance(actor, NOW)

    pool.deposit(actor, amount, NOW)
    pool.withdraw(actor, amount, NOW)

    assert pool.preview_balance(actor, NOW) == before
    assert ledger.read(PRINCIPAL, actor) == existing


def test_direct_deposit_shares_accounting(pool, alice):
    pool.deposit(alice.address, 2 * ONE, NOW)
    assert pool.ledger.read(PRINCIPAL, alice.address) == 2 * ONE
    # direct calls never consume the delegated nonce
    assert pool.nonces(alice.address) == 0


def test_zero_amount_rolls_back(pool, sign, alice):
    with pytest.raises(InvalidAmount):
        pool.execute(sign(alice, DepositAction(amount=0, nonce=0, deadline=DEADLINE)), NOW)
    assert pool.nonces(alice.address) == 0


# ---------------------------------------------------------
# asset actions
# ---------------------------------------------------------
def test_mint_transfer_burn_asset(pool, asset, sign, alice, bob):
    pool.execute(sign(alice, _mint(alice.address), asset=RWA_ADDRESS), NOW)
    assert asset.balance_of(alice.address) == ONE
    record = asset.records()[0]
    assert record["to"] == alice.address
    assert record["metadata"].valuation == 125_000

    pool.execute(
        sign(alice, TransferAssetAction(to=bob.address, amount=ONE // 4, nonce=1, deadline=DEADLINE),
             asset=RWA_ADDRESS),
        NOW,
    )
    assert asset.balance_of(bob.address) == ONE // 4

    pool.execute(
        sign(bob, BurnAssetAction(source=bob.address, amount=ONE // 4, nonce=0, deadline=DEADLINE),
             asset=RWA_ADDRESS),
        NOW,
    )
    assert asset.balance_of(bob.address) == 0
    assert asset.total_supply() == 3 * ONE // 4
    assert pool.nonces(alice.address) == 2
    assert pool.nonces(bob.address) == 1


def test_unknown_asset_leaves_nonce(pool, sign, alice):
    with pytest.raises(InvalidAddress):
        pool.execute(sign(alice, _mint(alice.address), asset="0x" + "99" * 20), NOW)
    assert pool.nonces(alice.address) == 0


def test_registry_checks_capability():
    class MintOnly:
        address = "0x" + "77" * 20

        def mint_asset(self, to, amount, metadata):
            pass

    registry = AssetRegistry([MintOnly()])
    assert isinstance(registry.resolve("0x" + "77" * 20, "mint"), AssetMinter)
    assert not isinstance(MintOnly(), AssetTransferer)
    with pytest.raises(InvalidAddress):
        registry.resolve("0x" + "77" * 20, "transfer")


def test_burn_more_than_balance_rolls_back(pool, asset, sign, alice):
    pool.execute(sign(alice, _mint(alice.address), asset=RWA_ADDRESS), NOW)
    with pytest.raises(ExecutionError):
        pool.execute(
            sign(alice, BurnAssetAction(source=alice.address, amount=2 * ONE, nonce=1, deadline=DEADLINE),
                 asset=RWA_ADDRESS),
            NOW,
        )
    assert pool.nonces(alice.address) == 1
    assert asset.balance_of(alice.address) == ONE


# ---------------------------------------------------------
# concurrency
# ---------------------------------------------------------
def test_concurrent_same_nonce_only_one_wins(pool, sign, alice):
    envelopes = [
        sign(alice, DepositAction(amount=(i + 1) * ONE, nonce=0, deadline=DEADLINE)) for i in range(8)
    ]
    outcomes = []
    barrier = threading.Barrier(len(envelopes))

    def submit(envelope):
        barrier.wait()
        try:
            pool.execute(envelope, NOW)
            outcomes.append("ok")
        except ReplayError:
            outcomes.append("replay")

    threads = [threading.Thread(target=submit, args=(e,)) for e in envelopes]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("replay") == 7
    assert pool.nonces(alice.address) == 1
