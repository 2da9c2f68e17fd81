#!filepath: lendrelay/config/relay_config.py
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from eth_utils import is_address, to_checksum_address


def _checksum(value: str) -> str:
    if not is_address(value):
        raise ValueError(f"not an address: {value}")
    return to_checksum_address(value)


class RelayConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=3001, gt=0, lt=65536)

    # "ledger": in-process authoritative ledger, "contract": on-chain LendingPool
    executor: Literal["ledger", "contract"] = "ledger"
    rpc_url: Optional[str] = None
    chain_id: int = Field(default=31337, gt=0)
    lending_pool_address: str = "0x0000000000000000000000000000000000000000"
    token_address: str = "0x0000000000000000000000000000000000000000"
    # asset contracts the in-process pool may mint/transfer/burn
    asset_addresses: List[str] = Field(default_factory=list)

    max_deadline_window: int = Field(default=3600, gt=0, description="seconds a deadline may lie ahead")
    rate_limit_max: int = Field(default=100, gt=0)
    rate_limit_window: int = Field(default=15 * 60, gt=0)
    receipt_timeout: int = Field(default=120, gt=0)

    @field_validator("lending_pool_address", "token_address")
    @classmethod
    def checksum(cls, v):
        return _checksum(v)

    @field_validator("asset_addresses")
    @classmethod
    def checksum_assets(cls, v):
        return [_checksum(a) for a in v]
