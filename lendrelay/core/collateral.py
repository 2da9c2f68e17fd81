#!filepath: lendrelay/core/collateral.py
"""
Collateral vault collaborator: collateral/debt positions gated by one
loan-to-value check. Not part of the delegated-action path.
"""
from __future__ import annotations

from dataclasses import dataclass

from lendrelay.core.interfaces import PriceOracle, TokenLedger
from lendrelay.core.ledger import Ledger
from lendrelay.core import rules
from lendrelay.utils.errors import InsufficientStateError

PRICE_SCALE = 10**18
BPS = 10_000

COLLATERAL = "vault:collateral"
DEBT = "vault:debt"


class FixedPriceOracle:
    def __init__(self, price: int = PRICE_SCALE):
        self.price = price

    def get_price(self) -> int:
        return self.price


@dataclass(frozen=True)
class Position:
    collateral: int = 0
    debt: int = 0


class CollateralVault:
    def __init__(
        self,
        ledger: Ledger,
        collateral_token: TokenLedger,
        debt_token: TokenLedger,
        oracle: PriceOracle,
        address: str,
        ltv_bps: int = 5000,
    ):
        self.ledger = ledger
        self.collateral_token = collateral_token
        self.debt_token = debt_token
        self.oracle = oracle
        self.address = address
        self.ltv_bps = ltv_bps

    def position(self, actor: str) -> Position:
        return Position(
            collateral=self.ledger.read(COLLATERAL, actor),
            debt=self.ledger.read(DEBT, actor),
        )

    def max_debt(self, collateral: int) -> int:
        value = collateral * self.oracle.get_price() // PRICE_SCALE
        return value * self.ltv_bps // BPS

    def deposit(self, actor: str, amount: int) -> None:
        rules.check_amount(amount)
        with self.ledger.transaction():
            self.collateral_token.transfer_from(self.address, actor, self.address, amount)
            self.ledger.add(COLLATERAL, actor, amount)

    def borrow(self, actor: str, amount: int) -> None:
        rules.check_amount(amount)
        with self.ledger.transaction():
            pos = self.position(actor)
            if pos.debt + amount > self.max_debt(pos.collateral):
                raise InsufficientStateError("Exceeds LTV", code="INSUFFICIENT_COLLATERAL")
            self.ledger.add(DEBT, actor, amount)
            self.debt_token.mint(actor, amount)

    def repay(self, actor: str, amount: int) -> None:
        rules.check_amount(amount)
        with self.ledger.transaction():
            debt = self.ledger.read(DEBT, actor)
            if amount > debt:
                raise InsufficientStateError(
                    f"Repay exceeds debt: have {debt}, requested {amount}", code="INSUFFICIENT_DEBT"
                )
            self.debt_token.transfer_from(self.address, actor, self.address, amount)
            self.debt_token.burn(self.address, amount)
            self.ledger.write(DEBT, actor, debt - amount)

    def withdraw(self, actor: str, amount: int) -> None:
        rules.check_amount(amount)
        with self.ledger.transaction():
            pos = self.position(actor)
            if amount > pos.collateral:
                raise InsufficientStateError("Withdraw exceeds collateral", code="INSUFFICIENT_COLLATERAL")
            remaining = pos.collateral - amount
            if pos.debt > self.max_debt(remaining):
                raise InsufficientStateError("Withdraw would breach LTV", code="INSUFFICIENT_COLLATERAL")
            self.ledger.write(COLLATERAL, actor, remaining)
            self.collateral_token.transfer(self.address, actor, amount)
