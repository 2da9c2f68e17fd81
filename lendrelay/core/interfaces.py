#!filepath: lendrelay/core/interfaces.py
"""
Collaborator contracts the lending core calls into.

Token transfers raise ``ExecutionError`` on failure (the boolean-or-revert
semantics of the token standard collapsed into one failure path).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class AssetMetadata:
    """Descriptive record stored by an asset token at mint time."""
    content_id: str
    name: str
    description: str
    valuation: int
    merkle_root: bytes


@runtime_checkable
class TokenLedger(Protocol):
    address: str

    def balance_of(self, owner: str) -> int: ...

    def transfer(self, sender: str, to: str, amount: int) -> None: ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None: ...

    def mint(self, to: str, amount: int) -> None: ...

    def burn(self, owner: str, amount: int) -> None: ...


@runtime_checkable
class AssetMinter(Protocol):
    address: str

    def mint_asset(self, to: str, amount: int, metadata: AssetMetadata) -> None: ...


@runtime_checkable
class AssetTransferer(Protocol):
    address: str

    def transfer_asset(self, sender: str, to: str, amount: int) -> None: ...


@runtime_checkable
class AssetBurner(Protocol):
    address: str

    def burn_asset(self, owner: str, amount: int) -> None: ...


@runtime_checkable
class PriceOracle(Protocol):
    def get_price(self) -> int: ...
