#!filepath: lendrelay/core/actions.py
"""
Typed delegated actions.

Each action class fixes its EIP-712 layout in ``FIELDS``:
(typed-data name, solidity type, attribute). The order is part of the type
hash and must never change for a released version.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Tuple, Type

_Field = Tuple[str, str, str]


@dataclass(frozen=True)
class DelegatedAction:
    KIND: ClassVar[str] = ""
    TYPE_NAME: ClassVar[str] = ""
    FIELDS: ClassVar[Tuple[_Field, ...]] = ()

    @classmethod
    def encode_type(cls) -> str:
        members = ",".join(f"{sol} {name}" for name, sol, _ in cls.FIELDS)
        return f"{cls.TYPE_NAME}({members})"

    @classmethod
    def eip712_types(cls) -> list:
        return [{"name": name, "type": sol} for name, sol, _ in cls.FIELDS]

    def message(self) -> Dict[str, Any]:
        return {name: getattr(self, attr) for name, _, attr in self.FIELDS}

    @property
    def claimed_signer(self) -> Optional[str]:
        """Actor named inside the action itself, if the layout has one."""
        return None


@dataclass(frozen=True)
class DepositAction(DelegatedAction):
    KIND: ClassVar[str] = "deposit"
    TYPE_NAME: ClassVar[str] = "DepositAction"
    FIELDS: ClassVar[Tuple[_Field, ...]] = (
        ("amount", "uint256", "amount"),
        ("nonce", "uint256", "nonce"),
        ("deadline", "uint256", "deadline"),
    )

    amount: int
    nonce: int
    deadline: int


@dataclass(frozen=True)
class WithdrawAction(DelegatedAction):
    KIND: ClassVar[str] = "withdraw"
    TYPE_NAME: ClassVar[str] = "WithdrawAction"
    FIELDS: ClassVar[Tuple[_Field, ...]] = (
        ("amount", "uint256", "amount"),
        ("nonce", "uint256", "nonce"),
        ("deadline", "uint256", "deadline"),
    )

    amount: int
    nonce: int
    deadline: int


@dataclass(frozen=True)
class MintAssetAction(DelegatedAction):
    KIND: ClassVar[str] = "mint"
    TYPE_NAME: ClassVar[str] = "MintRWAAction"
    FIELDS: ClassVar[Tuple[_Field, ...]] = (
        ("to", "address", "to"),
        ("amount", "uint256", "amount"),
        ("ipfsCid", "string", "content_id"),
        ("name", "string", "name"),
        ("description", "string", "description"),
        ("valuation", "uint256", "valuation"),
        ("merkleRoot", "bytes32", "merkle_root"),
        ("nonce", "uint256", "nonce"),
        ("deadline", "uint256", "deadline"),
    )

    to: str
    amount: int
    content_id: str
    name: str
    description: str
    valuation: int
    merkle_root: bytes
    nonce: int
    deadline: int


@dataclass(frozen=True)
class TransferAssetAction(DelegatedAction):
    KIND: ClassVar[str] = "transfer"
    TYPE_NAME: ClassVar[str] = "TransferRWAAction"
    FIELDS: ClassVar[Tuple[_Field, ...]] = (
        ("to", "address", "to"),
        ("amount", "uint256", "amount"),
        ("nonce", "uint256", "nonce"),
        ("deadline", "uint256", "deadline"),
    )

    to: str
    amount: int
    nonce: int
    deadline: int


@dataclass(frozen=True)
class BurnAssetAction(DelegatedAction):
    KIND: ClassVar[str] = "burn"
    TYPE_NAME: ClassVar[str] = "BurnRWAAction"
    FIELDS: ClassVar[Tuple[_Field, ...]] = (
        ("from", "address", "source"),
        ("amount", "uint256", "amount"),
        ("nonce", "uint256", "nonce"),
        ("deadline", "uint256", "deadline"),
    )

    source: str
    amount: int
    nonce: int
    deadline: int

    @property
    def claimed_signer(self) -> Optional[str]:
        return self.source


ACTION_TYPES: Dict[str, Type[DelegatedAction]] = {
    cls.KIND: cls
    for cls in (DepositAction, WithdrawAction, MintAssetAction, TransferAssetAction, BurnAssetAction)
}

ASSET_KINDS = frozenset({"mint", "transfer", "burn"})


@dataclass(frozen=True)
class SignedEnvelope:
    """
    An action plus its 65-byte signature. Consumed exactly once.

    ``actor``: the address the submitter claims signed it (None -> whoever
    the signature recovers to). ``asset``: target asset contract for
    mint/transfer/burn.
    """
    action: DelegatedAction
    signature: bytes = field(repr=False)
    actor: Optional[str] = None
    asset: Optional[str] = None

    @property
    def kind(self) -> str:
        return self.action.KIND

    @property
    def claimed_actor(self) -> Optional[str]:
        return self.action.claimed_signer or self.actor
