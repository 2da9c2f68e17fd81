#!filepath: lendrelay/core/verifier.py
from __future__ import annotations

from lendrelay.core.actions import DelegatedAction, SignedEnvelope
from lendrelay.core.digest import Eip712Domain, recover_signer, signable_message, typed_digest
from lendrelay.core.ledger import Ledger
from lendrelay.core import rules
from lendrelay.utils.errors import InvalidSignature


class SignatureVerifier:
    """
    Per-actor nonce state machine.

        nonce=N --(nonce == N, now <= deadline, recover == actor)--> nonce=N+1

    Any failed check leaves the nonce at N and raises; the envelope can be
    corrected and resubmitted.
    """

    def __init__(self, domain: Eip712Domain):
        self.domain = domain

    def digest(self, action: DelegatedAction) -> bytes:
        return typed_digest(self.domain, action)

    def recover(self, action: DelegatedAction, signature: bytes) -> str:
        return recover_signer(signable_message(self.domain, action), signature)

    def authorize(self, ledger: Ledger, envelope: SignedEnvelope, now: int) -> str:
        """
        Check the envelope and consume the signer's nonce; returns the signer.

        Must run inside ``ledger.transaction()`` together with the effect,
        so a failing effect also restores the nonce.
        """
        action = envelope.action

        rules.check_not_expired(action.deadline, now)

        signer = self.recover(action, envelope.signature)

        named = action.claimed_signer
        if named is not None and envelope.actor is not None and named.lower() != envelope.actor.lower():
            raise InvalidSignature("claimed actor differs from the action's owner field")
        rules.check_signer(signer, envelope.claimed_actor)

        rules.check_nonce(ledger.nonce_of(signer), action.nonce)
        ledger.advance_nonce(signer)
        return signer
