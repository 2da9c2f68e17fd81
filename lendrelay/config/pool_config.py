#!filepath: lendrelay/config/pool_config.py
from decimal import Decimal
from typing import Dict

from pydantic import BaseModel, Field, field_validator

from .relay_config import _checksum


class PoolConfig(BaseModel):
    """Lending pool parameters for the in-process ledger executor."""
    apr: Decimal = Field(default=Decimal("0.05"), ge=0, le=10, description="simple annual rate")
    ltv_bps: int = Field(default=5000, gt=0, le=10000, description="collateral vault loan-to-value")
    collateral_price: int = Field(default=10**18, gt=0, description="oracle price, 1e18 fixed point")
    collateral_address: str = "0x0000000000000000000000000000000000000c01"
    # address -> dUSD (decimal string) minted at startup, with the pool approved to spend it
    opening_balances: Dict[str, str] = Field(default_factory=dict)

    @field_validator("opening_balances")
    @classmethod
    def checksum_holders(cls, v):
        return {_checksum(address): amount for address, amount in v.items()}
