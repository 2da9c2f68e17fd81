#!filepath: lendrelay/core/tokens.py
"""
In-memory token collaborators backed by the ledger.

Balances live in ledger tables, so a token move made inside a
``Ledger.transaction()`` is rolled back together with the nonce and pool
writes around it.
"""
from __future__ import annotations

from typing import Dict, List

from lendrelay.core.interfaces import AssetMetadata
from lendrelay.core.ledger import Ledger
from lendrelay.utils.errors import ExecutionError


class InMemoryToken:
    """Fungible token: balances, allowances, mint/burn."""

    def __init__(self, ledger: Ledger, address: str, symbol: str = "dUSD"):
        self.ledger = ledger
        self.address = address
        self.symbol = symbol
        self._balances = f"balance:{address}"
        self._allowances = f"allowance:{address}"
        self._supply = f"supply:{address}"

    def balance_of(self, owner: str) -> int:
        return self.ledger.read(self._balances, owner)

    def allowance(self, owner: str, spender: str) -> int:
        return self.ledger.read(self._allowances, f"{owner}:{spender}")

    def total_supply(self) -> int:
        return self.ledger.read(self._supply, "total")

    def approve(self, owner: str, spender: str, amount: int) -> None:
        self.ledger.write(self._allowances, f"{owner}:{spender}", amount)

    def transfer(self, sender: str, to: str, amount: int) -> None:
        with self.ledger.transaction():
            self._move(sender, to, amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        with self.ledger.transaction():
            allowed = self.allowance(owner, spender)
            if allowed < amount:
                raise ExecutionError(
                    f"{self.symbol}: insufficient allowance ({allowed} < {amount})"
                )
            self.ledger.write(self._allowances, f"{owner}:{spender}", allowed - amount)
            self._move(owner, to, amount)

    def mint(self, to: str, amount: int) -> None:
        with self.ledger.transaction():
            self.ledger.add(self._balances, to, amount)
            self.ledger.add(self._supply, "total", amount)

    def burn(self, owner: str, amount: int) -> None:
        with self.ledger.transaction():
            self._debit(owner, amount)
            self.ledger.add(self._supply, "total", -amount)

    def _move(self, sender: str, to: str, amount: int) -> None:
        self._debit(sender, amount)
        self.ledger.add(self._balances, to, amount)

    def _debit(self, owner: str, amount: int) -> None:
        balance = self.balance_of(owner)
        if balance < amount:
            raise ExecutionError(
                f"{self.symbol}: transfer amount exceeds balance ({balance} < {amount})"
            )
        self.ledger.write(self._balances, owner, balance - amount)


class InMemoryAssetToken(InMemoryToken):
    """
    Real-world-asset token: a fungible balance plus one metadata record per
    mint. Implements AssetMinter, AssetTransferer and AssetBurner.
    """

    def __init__(self, ledger: Ledger, address: str, symbol: str = "RWA"):
        super().__init__(ledger, address, symbol)
        self._records = f"asset:{address}"

    def mint_asset(self, to: str, amount: int, metadata: AssetMetadata) -> None:
        with self.ledger.transaction():
            seq = self.ledger.read(self._records, "count")
            self.ledger.write(self._records, str(seq), {"to": to, "amount": amount, "metadata": metadata})
            self.ledger.write(self._records, "count", seq + 1)
            self.mint(to, amount)

    def transfer_asset(self, sender: str, to: str, amount: int) -> None:
        self.transfer(sender, to, amount)

    def burn_asset(self, owner: str, amount: int) -> None:
        self.burn(owner, amount)

    def records(self) -> List[Dict]:
        count = self.ledger.read(self._records, "count")
        return [self.ledger.read(self._records, str(i), None) for i in range(count)]
