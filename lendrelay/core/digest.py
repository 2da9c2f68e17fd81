#!filepath: lendrelay/core/digest.py
"""
EIP-712 digest builder and secp256k1 signer recovery.

    digest = keccak256(0x19 0x01 || domainSeparator || hashStruct(action))

The domain binds name, version, chain id and verifying contract, so a
signature made for one deployment, chain or action type never verifies
against another. Struct hashing and signer recovery go through eth_account's
typed-data encoder, the same one wallets use; the domain separator is kept
here so it can be logged and compared on its own.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from eth_abi import encode
from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_keys.constants import SECPK1_N
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError
from eth_utils import keccak, to_checksum_address

from lendrelay.core.actions import DelegatedAction
from lendrelay.utils.errors import InvalidSignature

DOMAIN_NAME = "LendingPool"
DOMAIN_VERSION = "1"

EIP712_DOMAIN_FIELDS = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]
EIP712_DOMAIN_TYPE = "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"

SIGNATURE_LENGTH = 65
_HALF_N = SECPK1_N // 2


@dataclass(frozen=True)
class Eip712Domain:
    chain_id: int
    verifying_contract: str
    name: str = DOMAIN_NAME
    version: str = DOMAIN_VERSION

    def separator(self) -> bytes:
        return keccak(
            encode(
                ["bytes32", "bytes32", "bytes32", "uint256", "address"],
                [
                    keccak(text=EIP712_DOMAIN_TYPE),
                    keccak(text=self.name),
                    keccak(text=self.version),
                    self.chain_id,
                    to_checksum_address(self.verifying_contract),
                ],
            )
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": to_checksum_address(self.verifying_contract),
        }


# the struct hash does not depend on the domain; any valid one will do
_STRUCT_DOMAIN = Eip712Domain(chain_id=1, verifying_contract="0x" + "00" * 20)


def typed_data(domain: Eip712Domain, action: DelegatedAction) -> Dict[str, Any]:
    """Full typed-data document, as handed to a wallet's signTypedData."""
    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_FIELDS,
            action.TYPE_NAME: action.eip712_types(),
        },
        "primaryType": action.TYPE_NAME,
        "domain": domain.as_dict(),
        "message": action.message(),
    }


def signable_message(domain: Eip712Domain, action: DelegatedAction) -> SignableMessage:
    return encode_typed_data(full_message=typed_data(domain, action))


def hash_struct(action: DelegatedAction) -> bytes:
    return bytes(signable_message(_STRUCT_DOMAIN, action).body)


def typed_digest(domain: Eip712Domain, action: DelegatedAction) -> bytes:
    signable = signable_message(domain, action)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


# ---------------------------------------------------------
# signatures
# ---------------------------------------------------------
def canonical_signature(signature: bytes) -> bytes:
    """
    r || s || v (65 bytes), v in {0, 1, 27, 28} -> r || s || v with v in {27, 28}.

    Rejects high-s signatures so a signature cannot be replayed in its
    malleated form.
    """
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignature(f"expected {SIGNATURE_LENGTH} bytes, got {len(signature)}")

    v = signature[64]
    if v < 27:
        v += 27
    if v not in (27, 28):
        raise InvalidSignature("bad recovery id")
    if int.from_bytes(signature[32:64], "big") > _HALF_N:
        raise InvalidSignature("non-canonical s value")
    return bytes(signature[:64]) + bytes([v])


def recover_signer(signable: SignableMessage, signature: bytes) -> str:
    """Checksum address that produced ``signature`` over ``signable``."""
    standard = canonical_signature(signature)
    try:
        return Account.recover_message(signable, signature=standard)
    except (BadSignature, KeyValidationError, ValueError) as exc:
        raise InvalidSignature(f"unrecoverable ({exc.__class__.__name__})")


def sign_typed(private_key, domain: Eip712Domain, action: DelegatedAction) -> bytes:
    """Wallet-equivalent signature over the action; r || s || v with v in {27, 28}."""
    return bytes(Account.sign_message(signable_message(domain, action), private_key).signature)
