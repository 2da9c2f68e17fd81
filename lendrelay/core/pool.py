#!filepath: lendrelay/core/pool.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lendrelay import logs
from lendrelay.core.accrual import PoolState, ray_div
from lendrelay.core.actions import SignedEnvelope
from lendrelay.core.interfaces import AssetBurner, AssetMetadata, AssetMinter, AssetTransferer, TokenLedger
from lendrelay.core.ledger import PRINCIPAL, POOL, SCALED, Ledger
from lendrelay.core.verifier import SignatureVerifier
from lendrelay.core import rules
from lendrelay.utils.errors import ExecutionError, InsufficientPrincipal, InvalidAddress, RelayError

_CAPABILITY = {
    "mint": AssetMinter,
    "transfer": AssetTransferer,
    "burn": AssetBurner,
}


class AssetRegistry:
    """Asset contracts the pool may act on, resolved by address at configuration time."""

    def __init__(self, assets=()):
        self._assets: Dict[str, Any] = {}
        for asset in assets:
            self.register(asset)

    def register(self, asset) -> None:
        self._assets[asset.address.lower()] = asset

    def resolve(self, address: Optional[str], kind: str):
        asset = self._assets.get((address or "").lower())
        if asset is None or not isinstance(asset, _CAPABILITY[kind]):
            raise InvalidAddress("rwaToken")
        return asset


@dataclass
class ExecutionResult:
    signer: str
    kind: str
    writes: int
    events: List[Dict[str, Any]] = field(default_factory=list)


class LendingPool:
    """
    Deposit pool with a linear ray index and delegated (signed) entry points.

    Direct ``deposit``/``withdraw`` and the ``execute_*`` entry points share
    the same accrual and balance code; the delegated ones additionally run
    the signature/nonce state machine inside the same ledger transaction.
    """

    def __init__(
        self,
        ledger: Ledger,
        token: TokenLedger,
        verifier: SignatureVerifier,
        rate_per_second: int = 0,
        assets: AssetRegistry | None = None,
        start_time: int = 0,
    ):
        self.ledger = ledger
        self.token = token
        self.verifier = verifier
        self.address = verifier.domain.verifying_contract
        self.assets = assets or AssetRegistry()
        if self.ledger.read(POOL, "state", None) is None:
            self.ledger.write(POOL, "state", PoolState(last_update=start_time, rate_per_second=rate_per_second))

    # ---------------------------------------------------------
    # index
    # ---------------------------------------------------------
    @property
    def state(self) -> PoolState:
        return self.ledger.read(POOL, "state")

    @property
    def index(self) -> int:
        return self.state.index

    def accrue(self, now: int) -> int:
        with self.ledger.lock:
            state = self.state
            updated = state.accrue(now)
            if updated is not state:
                self.ledger.write(POOL, "state", updated)
            return updated.index

    def preview_index(self, now: int) -> int:
        return self.state.preview_index(now)

    def preview_balance(self, actor: str, now: int) -> int:
        return self.state.to_face(self.ledger.read(SCALED, actor), now=now)

    def nonces(self, actor: str) -> int:
        return self.ledger.nonce_of(actor)

    # ---------------------------------------------------------
    # direct entry points
    # ---------------------------------------------------------
    def deposit(self, actor: str, amount: int, now: int) -> None:
        with self.ledger.transaction():
            self._deposit(actor, amount, now)

    def withdraw(self, actor: str, amount: int, now: int) -> None:
        with self.ledger.transaction():
            self._withdraw(actor, amount, now)

    def _deposit(self, actor: str, amount: int, now: int) -> None:
        rules.check_amount(amount)
        index = self.accrue(now)
        scaled = ray_div(amount, index)
        self.ledger.add(SCALED, actor, scaled)
        self.ledger.add(PRINCIPAL, actor, amount)
        self.token.transfer_from(self.address, actor, self.address, amount)

    def _withdraw(self, actor: str, amount: int, now: int) -> None:
        rules.check_amount(amount)
        index = self.accrue(now)
        principal = self.ledger.read(PRINCIPAL, actor)
        if principal < amount:
            raise InsufficientPrincipal(principal, amount)
        scaled = self.ledger.read(SCALED, actor)
        # scaled value of amount at the current index
        scaled_delta = scaled if amount == principal else min(scaled, ray_div(amount, index))
        self.ledger.write(SCALED, actor, scaled - scaled_delta)
        self.ledger.write(PRINCIPAL, actor, principal - amount)
        self.token.transfer(self.address, actor, amount)

    # ---------------------------------------------------------
    # delegated entry points
    # ---------------------------------------------------------
    def execute(self, envelope: SignedEnvelope, now: int) -> ExecutionResult:
        handler = {
            "deposit": self.execute_deposit,
            "withdraw": self.execute_withdraw,
            "mint": self.execute_mint_asset,
            "transfer": self.execute_transfer_asset,
            "burn": self.execute_burn_asset,
        }[envelope.kind]
        return handler(envelope, now)

    def execute_deposit(self, envelope: SignedEnvelope, now: int) -> ExecutionResult:
        return self._delegated(envelope, now, lambda signer, action: self._deposit(signer, action.amount, now))

    def execute_withdraw(self, envelope: SignedEnvelope, now: int) -> ExecutionResult:
        return self._delegated(envelope, now, lambda signer, action: self._withdraw(signer, action.amount, now))

    def execute_mint_asset(self, envelope: SignedEnvelope, now: int) -> ExecutionResult:
        asset: AssetMinter = self.assets.resolve(envelope.asset, "mint")

        def effect(signer, action):
            rules.check_amount(action.amount)
            rules.check_amount(action.valuation, "valuation")
            metadata = AssetMetadata(
                content_id=action.content_id,
                name=action.name,
                description=action.description,
                valuation=action.valuation,
                merkle_root=action.merkle_root,
            )
            asset.mint_asset(action.to, action.amount, metadata)

        return self._delegated(envelope, now, effect)

    def execute_transfer_asset(self, envelope: SignedEnvelope, now: int) -> ExecutionResult:
        asset: AssetTransferer = self.assets.resolve(envelope.asset, "transfer")

        def effect(signer, action):
            rules.check_amount(action.amount)
            asset.transfer_asset(signer, action.to, action.amount)

        return self._delegated(envelope, now, effect)

    def execute_burn_asset(self, envelope: SignedEnvelope, now: int) -> ExecutionResult:
        asset: AssetBurner = self.assets.resolve(envelope.asset, "burn")

        def effect(signer, action):
            rules.check_amount(action.amount)
            asset.burn_asset(signer, action.amount)

        return self._delegated(envelope, now, effect)

    def _delegated(self, envelope: SignedEnvelope, now: int, effect) -> ExecutionResult:
        """
        checks -> nonce++ -> effect, as one ledger transaction.
        """
        action = envelope.action
        try:
            with self.ledger.transaction() as txn:
                signer = self.verifier.authorize(self.ledger, envelope, now)
                effect(signer, action)
                txn.emit(type(action).__name__, signer=signer, nonce=action.nonce, amount=action.amount)
        except RelayError:
            raise
        except Exception as exc:
            logs.exception(f"[Pool] {envelope.kind} effect failed")
            raise ExecutionError(f"{envelope.kind} execution failed") from exc

        logs.info(f"[Pool] executed {envelope.kind} signer={signer} nonce={action.nonce}")
        return ExecutionResult(signer=signer, kind=envelope.kind, writes=txn.writes, events=txn.events)
