#!filepath: lendrelay/relay/executors.py
"""
Authoritative executors the gateway forwards signed envelopes to.

- LedgerExecutor: in-process LendingPool over the local Ledger
- ContractExecutor: on-chain LendingPool through web3, paid by the relay key
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Protocol

from eth_utils import keccak, to_checksum_address
from requests.exceptions import RequestException
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from lendrelay import logs, retry
from lendrelay.core.actions import SignedEnvelope
from lendrelay.core.pool import LendingPool
from lendrelay.relay.abi import ENTRY_POINTS, LENDING_POOL_ABI
from lendrelay.relay.keys import RelayKey
from lendrelay.utils.errors import (
    AuthenticationError,
    ExecutionError,
    ExpiryError,
    InsufficientStateError,
    RelayError,
    ReplayError,
)


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    block_number: int
    gas_used: int


class Executor(Protocol):
    chain_id: int

    def submit(self, envelope: SignedEnvelope) -> Receipt: ...

    def nonce_of(self, address: str) -> int: ...


# =============================================================================
# In-process ledger
# =============================================================================
class LedgerExecutor:
    """
    Runs envelopes against a local LendingPool.

    Each successful submission is its own "block"; ``gas_used`` reports the
    number of ledger writes the transaction made.
    ``vault`` is the collateral vault sharing the same ledger, if any.
    """

    def __init__(self, pool: LendingPool, clock: Callable[[], float] = time.time, vault=None):
        self.pool = pool
        self.vault = vault
        self.clock = clock
        self.chain_id = pool.verifier.domain.chain_id
        self._block = 0

    def submit(self, envelope: SignedEnvelope) -> Receipt:
        # block numbers follow commit order on the ledger
        with self.pool.ledger.lock:
            result = self.pool.execute(envelope, int(self.clock()))
            self._block += 1
            block = self._block

        digest = self.pool.verifier.digest(envelope.action)
        return Receipt(
            tx_hash="0x" + keccak(digest + envelope.signature).hex(),
            block_number=block,
            gas_used=result.writes,
        )

    def nonce_of(self, address: str) -> int:
        return self.pool.nonces(to_checksum_address(address))


# =============================================================================
# On-chain LendingPool
# =============================================================================
# revert reason fragment -> error raised to the caller
_REVERT_REASONS = (
    ("Invalid nonce", lambda: ReplayError("Invalid nonce - possible replay attack")),
    ("Invalid signature", lambda: AuthenticationError("Invalid signature")),
    ("Signature expired", lambda: ExpiryError("Signature has expired")),
    ("Insufficient", lambda: InsufficientStateError("Insufficient balance or principal")),
)

_READ_ERRORS = (RequestException, Web3Exception, ConnectionError, TimeoutError)


def map_revert(message: str) -> RelayError:
    for fragment, make in _REVERT_REASONS:
        if fragment in message:
            return make()
    return ExecutionError("Transaction failed")


class ContractExecutor:
    def __init__(
        self,
        web3: Web3,
        contract_address: str,
        relay_key: RelayKey,
        chain_id: int,
        receipt_timeout: int = 120,
    ):
        self.web3 = web3
        self.contract = web3.eth.contract(address=to_checksum_address(contract_address), abi=LENDING_POOL_ABI)
        self.relay_key = relay_key
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout

    @classmethod
    def connect(cls, rpc_url: str, contract_address: str, relay_key: RelayKey, chain_id: int,
                receipt_timeout: int = 120) -> "ContractExecutor":
        web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 15}))
        executor = cls(web3, contract_address, relay_key, chain_id, receipt_timeout)
        executor.verify_chain()
        return executor

    def verify_chain(self) -> None:
        """The signing domain's chain id must be the chain the RPC serves."""
        remote = retry.run(lambda: self.web3.eth.chain_id, exceptions=_READ_ERRORS, label="eth_chainId")
        if remote != self.chain_id:
            raise ExecutionError(
                f"Chain mismatch: signing domain uses {self.chain_id}, RPC serves {remote}",
                code="CHAIN_MISMATCH",
            )

    def nonce_of(self, address: str) -> int:
        fn = self.contract.functions.nonces(to_checksum_address(address))
        return retry.run(fn.call, exceptions=_READ_ERRORS, label="nonces")

    def _contract_call(self, envelope: SignedEnvelope):
        function_name, _, with_asset = ENTRY_POINTS[envelope.kind]
        action = envelope.action
        struct = tuple(getattr(action, attr) for _, _, attr in action.FIELDS)
        args = [struct, envelope.signature]
        if with_asset:
            args.append(to_checksum_address(envelope.asset))
        return getattr(self.contract.functions, function_name)(*args)

    def submit(self, envelope: SignedEnvelope) -> Receipt:
        # one snapshot per submission; a rotation only affects later ones
        account = self.relay_key.current()
        if account is None:
            raise ExecutionError("Relayer key not configured", code="RELAYER_NOT_CONFIGURED")

        call = self._contract_call(envelope)
        try:
            # pending count -> sign -> send must not interleave for one relay account
            with self.relay_key.send_lock:
                tx = call.build_transaction({
                    "from": account.address,
                    "nonce": self.web3.eth.get_transaction_count(account.address, "pending"),
                    "chainId": self.chain_id,
                })
                signed = account.sign_transaction(tx)
                tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except ContractLogicError as exc:
            raise map_revert(str(exc)) from exc
        except TimeExhausted as exc:
            raise ExecutionError(f"Transaction not mined within {self.receipt_timeout}s") from exc
        except _READ_ERRORS as exc:
            logs.error(f"[ContractExecutor] submission failed: {exc.__class__.__name__}")
            raise ExecutionError("Transaction submission failed", code="EXECUTION_FAILED") from exc

        if receipt["status"] != 1:
            raise ExecutionError("Transaction reverted")

        return Receipt(
            tx_hash=Web3.to_hex(tx_hash),
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
        )
