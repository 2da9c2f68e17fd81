# tests/support.py
"""Constants and helpers shared by the test modules."""
from __future__ import annotations

from eth_utils import to_checksum_address

CHAIN_ID = 31337
NOW = 1_700_000_000
ONE = 10**18

POOL_ADDRESS = to_checksum_address("0x" + "a1" * 20)
DUSD_ADDRESS = to_checksum_address("0x" + "d0" * 20)
RWA_ADDRESS = to_checksum_address("0x" + "e5" * 20)

ALICE_KEY = "0x" + "11" * 32
BOB_KEY = "0x" + "22" * 32
RELAYER_KEY = "0x" + "33" * 32


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds
