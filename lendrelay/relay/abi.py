#!filepath: lendrelay/relay/abi.py
"""
LendingPool ABI fragments used by the relay, derived from the action layouts
so the tuple components cannot drift from the signed struct.
"""
from __future__ import annotations

from lendrelay.core.actions import (
    BurnAssetAction,
    DepositAction,
    MintAssetAction,
    TransferAssetAction,
    WithdrawAction,
)

# kind -> (contract function, action class, takes an asset address)
ENTRY_POINTS = {
    "deposit": ("executeDeposit", DepositAction, False),
    "withdraw": ("executeWithdraw", WithdrawAction, False),
    "mint": ("executeMintRWA", MintAssetAction, True),
    "transfer": ("executeTransferRWA", TransferAssetAction, True),
    "burn": ("executeBurnRWA", BurnAssetAction, True),
}


def _execute_fragment(function_name: str, action_cls, with_asset: bool) -> dict:
    inputs = [
        {
            "components": [
                {"internalType": sol, "name": name, "type": sol}
                for name, sol, _ in action_cls.FIELDS
            ],
            "internalType": f"struct LendingPool.{action_cls.TYPE_NAME}",
            "name": "action",
            "type": "tuple",
        },
        {"internalType": "bytes", "name": "signature", "type": "bytes"},
    ]
    if with_asset:
        inputs.append({"internalType": "address", "name": "rwaToken", "type": "address"})
    return {
        "inputs": inputs,
        "name": function_name,
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    }


NONCES_FRAGMENT = {
    "inputs": [{"internalType": "address", "name": "", "type": "address"}],
    "name": "nonces",
    "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
    "stateMutability": "view",
    "type": "function",
}

LENDING_POOL_ABI = [
    _execute_fragment(fn, cls, with_asset) for fn, cls, with_asset in ENTRY_POINTS.values()
] + [NONCES_FRAGMENT]
