#!filepath: lendrelay/client/relay_client.py
from __future__ import annotations

from typing import Any, Dict, Optional

import requests
from eth_account import Account

from lendrelay import logs, retry
from lendrelay.client.signing import (
    action_payload,
    create_burn_asset_message,
    create_deposit_message,
    create_mint_asset_message,
    create_transfer_asset_message,
    create_withdraw_message,
    get_deadline,
    sign_typed_message,
)
from lendrelay.core.digest import Eip712Domain


class RelayClientError(RuntimeError):
    """Non-2xx answer from the relay; carries the relay's error code."""

    def __init__(self, code: str, message: str, status: int | None = None):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.status = status


class RelayClient:
    """
    HTTP client for the relay gateway.

    The ``delegated_*`` flows fetch the signer's nonce when none is given,
    sign the typed action locally and submit it; the private key never
    leaves the process.
    """

    def __init__(
        self,
        base_url: str,
        domain: Eip712Domain,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.domain = domain
        self.session = session or requests.Session()
        self.timeout = timeout

    # ---------------------------------------------------------
    # transport
    # ---------------------------------------------------------
    def _unwrap(self, resp) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not resp.ok:
            raise RelayClientError(
                data.get("code", "HTTP_ERROR"),
                data.get("error", "Relayer request failed"),
                status=resp.status_code,
            )
        return data

    def send(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        # submissions are never retried: a lost response may still have executed
        resp = self.session.post(f"{self.base_url}{endpoint}", json=payload, timeout=self.timeout)
        return self._unwrap(resp)

    def get_user_nonce(self, address: str) -> int:
        def fetch():
            return self.session.get(f"{self.base_url}/api/nonce/{address}", timeout=self.timeout)

        resp = retry.run(fetch, exceptions=(requests.ConnectionError, requests.Timeout), label="get_user_nonce")
        return int(self._unwrap(resp)["nonce"])

    def health(self) -> Dict[str, Any]:
        return self._unwrap(self.session.get(f"{self.base_url}/health", timeout=self.timeout))

    # ---------------------------------------------------------
    # delegated flows
    # ---------------------------------------------------------
    def _prepare(self, private_key, nonce: Optional[int], deadline: Optional[int], signer: Optional[str] = None):
        signer = signer or Account.from_key(private_key).address
        if nonce is None:
            nonce = self.get_user_nonce(signer)
        if deadline is None:
            deadline = get_deadline()
        return signer, nonce, deadline

    def _submit(self, endpoint: str, private_key, typed: Dict[str, Any], amount: str,
                extra: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        signature = sign_typed_message(private_key, typed)
        payload = action_payload(typed, amount, signature)
        payload.update(extra or {})
        logs.info(f"[RelayClient] POST {endpoint} nonce={payload['nonce']}")
        return self.send(endpoint, payload)

    def delegated_deposit(self, private_key, amount: str, nonce: Optional[int] = None,
                          deadline: Optional[int] = None) -> Dict[str, Any]:
        _, nonce, deadline = self._prepare(private_key, nonce, deadline)
        typed = create_deposit_message(self.domain, amount, nonce, deadline)
        return self._submit("/api/deposit", private_key, typed, amount)

    def delegated_withdraw(self, private_key, amount: str, nonce: Optional[int] = None,
                           deadline: Optional[int] = None) -> Dict[str, Any]:
        _, nonce, deadline = self._prepare(private_key, nonce, deadline)
        typed = create_withdraw_message(self.domain, amount, nonce, deadline)
        return self._submit("/api/withdraw", private_key, typed, amount)

    def delegated_mint_asset(self, private_key, to: str, amount: str, content_id: str, name: str,
                             description: str, valuation: int, merkle_root, asset: str,
                             nonce: Optional[int] = None, deadline: Optional[int] = None) -> Dict[str, Any]:
        _, nonce, deadline = self._prepare(private_key, nonce, deadline)
        typed = create_mint_asset_message(
            self.domain, to, amount, content_id, name, description, valuation, merkle_root, nonce, deadline
        )
        return self._submit("/api/rwa/mint", private_key, typed, amount, {"rwaToken": asset})

    def delegated_transfer_asset(self, private_key, to: str, amount: str, asset: str,
                                 nonce: Optional[int] = None, deadline: Optional[int] = None) -> Dict[str, Any]:
        _, nonce, deadline = self._prepare(private_key, nonce, deadline)
        typed = create_transfer_asset_message(self.domain, to, amount, nonce, deadline)
        return self._submit("/api/rwa/transfer", private_key, typed, amount, {"rwaToken": asset})

    def delegated_burn_asset(self, private_key, amount: str, asset: str, source: Optional[str] = None,
                             nonce: Optional[int] = None, deadline: Optional[int] = None) -> Dict[str, Any]:
        source, nonce, deadline = self._prepare(private_key, nonce, deadline, signer=source)
        typed = create_burn_asset_message(self.domain, source, amount, nonce, deadline)
        return self._submit("/api/rwa/burn", private_key, typed, amount, {"rwaToken": asset})
