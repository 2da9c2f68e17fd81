#!filepath: lendrelay/client/signing.py
"""
Wallet-side helpers: build the typed data a user signs for each delegated
action, sign it, and shape the relay request body.

Amounts are decimal strings in token units ("1.5"), as a user types them;
the signed message carries the 18-decimal integer.
"""
from __future__ import annotations

import time
from typing import Any, Dict, Optional

from eth_account import Account

from lendrelay.core.actions import (
    BurnAssetAction,
    DelegatedAction,
    DepositAction,
    MintAssetAction,
    TransferAssetAction,
    WithdrawAction,
)
from lendrelay.core.digest import Eip712Domain, typed_data
from lendrelay.utils.units import normalize_address, parse_bytes32, parse_units


def get_deadline(minutes: int = 30, now: Optional[float] = None) -> int:
    """Unix seconds ``minutes`` from now."""
    return int(now if now is not None else time.time()) + minutes * 60


# ---------------------------------------------------------
# typed messages
# ---------------------------------------------------------
def create_deposit_message(domain: Eip712Domain, amount: str, nonce: int, deadline: int) -> Dict[str, Any]:
    return typed_data(domain, DepositAction(parse_units(amount), int(nonce), int(deadline)))


def create_withdraw_message(domain: Eip712Domain, amount: str, nonce: int, deadline: int) -> Dict[str, Any]:
    return typed_data(domain, WithdrawAction(parse_units(amount), int(nonce), int(deadline)))


def create_mint_asset_message(
    domain: Eip712Domain,
    to: str,
    amount: str,
    content_id: str,
    name: str,
    description: str,
    valuation: int,
    merkle_root,
    nonce: int,
    deadline: int,
) -> Dict[str, Any]:
    action = MintAssetAction(
        to=normalize_address(to, "to"),
        amount=parse_units(amount),
        content_id=content_id,
        name=name,
        description=description,
        valuation=int(valuation),
        merkle_root=parse_bytes32(merkle_root, "merkleRoot"),
        nonce=int(nonce),
        deadline=int(deadline),
    )
    return typed_data(domain, action)


def create_transfer_asset_message(domain: Eip712Domain, to: str, amount: str, nonce: int,
                                  deadline: int) -> Dict[str, Any]:
    action = TransferAssetAction(normalize_address(to, "to"), parse_units(amount), int(nonce), int(deadline))
    return typed_data(domain, action)


def create_burn_asset_message(domain: Eip712Domain, source: str, amount: str, nonce: int,
                              deadline: int) -> Dict[str, Any]:
    action = BurnAssetAction(normalize_address(source, "from"), parse_units(amount), int(nonce), int(deadline))
    return typed_data(domain, action)


def sign_typed_message(private_key, typed: Dict[str, Any]) -> str:
    """Sign a full typed-data document; returns the 0x-prefixed 65-byte signature."""
    signed = Account.sign_typed_data(private_key, full_message=typed)
    return "0x" + bytes(signed.signature).hex()


def sign_action(private_key, domain: Eip712Domain, action: DelegatedAction) -> str:
    return sign_typed_message(private_key, typed_data(domain, action))


# ---------------------------------------------------------
# request bodies
# ---------------------------------------------------------
def action_payload(typed: Dict[str, Any], amount: str, signature: str) -> Dict[str, str]:
    """
    Relay request body for a signed typed message: every member as a string,
    the amount in the caller's original decimal form.
    """
    payload: Dict[str, str] = {}
    for name, value in typed["message"].items():
        payload[name] = "0x" + value.hex() if isinstance(value, bytes) else str(value)
    payload["amount"] = amount
    payload["signature"] = signature
    return payload
