#!filepath: lendrelay/relay/keys.py
from __future__ import annotations

import threading
from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount

from lendrelay import logs


class RelayKey:
    """
    The gas-paying relay account. One writer: the gateway process.

    ``current()`` is read once per submission; ``rotate()`` swaps the account
    for later submissions and never touches one already in flight.
    """

    def __init__(self, private_key: Optional[str] = None):
        self._lock = threading.Lock()
        # held by executors from tx nonce lookup through broadcast
        self.send_lock = threading.Lock()
        self._account: Optional[LocalAccount] = Account.from_key(private_key) if private_key else None

    @property
    def configured(self) -> bool:
        return self._account is not None

    @property
    def address(self) -> Optional[str]:
        account = self._account
        return account.address if account else None

    def current(self) -> Optional[LocalAccount]:
        with self._lock:
            return self._account

    def rotate(self, private_key: str) -> str:
        account = Account.from_key(private_key)
        with self._lock:
            previous = self._account
            self._account = account
        logs.info(
            f"[RelayKey] rotated {previous.address if previous else None} -> {account.address}"
        )
        return account.address

    def __repr__(self) -> str:
        return f"RelayKey(address={self.address})"
