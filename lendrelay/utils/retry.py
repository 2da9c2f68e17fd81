#!filepath: lendrelay/utils/retry.py
import random
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Optional, Tuple, Type

from lendrelay import logs


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff schedule: ``delay * backoff**(n-1)`` before attempt n+1, capped at
    ``max_delay``; jitter scales each wait by 0.8..1.2.
    """
    max_attempts: int = 3
    delay: float = 1.0
    backoff: float = 2.0
    max_delay: float = 10.0
    jitter: bool = True

    def wait(self, attempt: int) -> float:
        wait = min(self.delay * (self.backoff ** (attempt - 1)), self.max_delay)
        if self.jitter:
            wait *= random.uniform(0.8, 1.2)
        return wait


# idempotent reads against an RPC node or the relay
READ_POLICY = RetryPolicy(max_attempts=3, delay=0.5, max_delay=4.0)


class Retry:
    """
    Synchronous retry for idempotent reads (nonce lookups, chain id checks).

    Transaction submission is never retried: a lost response may still have
    been mined.
    """

    @staticmethod
    def run(
        func: Callable,
        *args,
        exceptions: Tuple[Type[Exception], ...] = (Exception,),
        policy: RetryPolicy = READ_POLICY,
        label: Optional[str] = None,
        **kwargs,
    ):
        label = label or getattr(func, "__name__", "call")
        for attempt in range(1, policy.max_attempts + 1):
            try:
                return func(*args, **kwargs)
            except exceptions as e:
                if attempt == policy.max_attempts:
                    logs.error(f"[Retry] {label} failed after {policy.max_attempts} attempts: {e.__class__.__name__}")
                    raise
                wait = policy.wait(attempt)
                logs.warning(f"[Retry] {label} attempt {attempt}/{policy.max_attempts} failed ({e}); sleeping {wait:.2f}s")
                time.sleep(wait)

    @staticmethod
    def decorator(
        exceptions: Tuple[Type[Exception], ...] = (Exception,),
        policy: RetryPolicy = READ_POLICY,
    ):
        def wrapper(func: Callable):
            @wraps(func)
            def inner(*args, **kwargs):
                return Retry.run(func, *args, exceptions=exceptions, policy=policy, **kwargs)

            return inner

        return wrapper
