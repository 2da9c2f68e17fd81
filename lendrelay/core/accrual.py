#!filepath: lendrelay/core/accrual.py
"""
Linear interest index (ray precision).

    index_t = index_0 + (t - t_0) * rate_per_second / RAY

``rate_per_second`` is the per-second index increment scaled by RAY, so the
increment keeps ray precision after the division. Simple interest: between
two accruals nothing compounds.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, localcontext

RAY = 10**27
SECONDS_PER_YEAR = 365 * 24 * 60 * 60


def rate_from_apr(apr) -> int:
    """Annual simple rate (0.05 = 5%) -> rate_per_second for PoolState."""
    with localcontext() as ctx:
        ctx.prec = 80
        return int(Decimal(str(apr)) * RAY * RAY / SECONDS_PER_YEAR)


def ray_mul(a: int, b: int) -> int:
    return a * b // RAY


def ray_div(a: int, b: int) -> int:
    return a * RAY // b


@dataclass(frozen=True)
class PoolState:
    index: int = RAY
    last_update: int = 0
    rate_per_second: int = 0

    def preview_index(self, now: int) -> int:
        elapsed = now - self.last_update
        if elapsed <= 0:
            return self.index
        return self.index + elapsed * self.rate_per_second // RAY

    def accrue(self, now: int) -> "PoolState":
        """
        State after accruing up to ``now``.

        A timestamp at or before ``last_update`` returns the state unchanged,
        so the index never decreases.
        """
        if now <= self.last_update:
            return self
        return replace(self, index=self.preview_index(now), last_update=now)

    # ---------------------------------------------------------
    # face <-> scaled
    # ---------------------------------------------------------
    def to_scaled(self, face_amount: int) -> int:
        return ray_div(face_amount, self.index)

    def to_face(self, scaled_amount: int, now: int | None = None) -> int:
        index = self.index if now is None else self.preview_index(now)
        return ray_mul(scaled_amount, index)
