#!filepath: lendrelay/relay/service.py
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from lendrelay import logs
from lendrelay.core.accrual import rate_from_apr
from lendrelay.core.actions import ACTION_TYPES, SignedEnvelope
from lendrelay.core.collateral import CollateralVault, FixedPriceOracle
from lendrelay.core.digest import Eip712Domain
from lendrelay.core.ledger import Ledger
from lendrelay.core.pool import AssetRegistry, LendingPool
from lendrelay.core.tokens import InMemoryAssetToken, InMemoryToken
from lendrelay.core.verifier import SignatureVerifier
from lendrelay.core import rules
from lendrelay.observability.metrics import MetricRecorder
from lendrelay.observability.timer import Timer
from lendrelay.relay.executors import ContractExecutor, Executor, LedgerExecutor
from lendrelay.relay.keys import RelayKey
from lendrelay.utils.errors import (
    AuthenticationError,
    MissingFields,
    RelayError,
    ReplayError,
    ValidationError,
)
from lendrelay.utils.units import (
    UINT256_MAX,
    format_units,
    normalize_address,
    parse_bytes32,
    parse_uint,
    parse_units,
)

# request body fields per action kind (all required, all strings)
REQUIRED_FIELDS = {
    "deposit": ("amount", "nonce", "deadline", "signature"),
    "withdraw": ("amount", "nonce", "deadline", "signature"),
    "mint": ("to", "amount", "ipfsCid", "name", "description", "valuation",
             "merkleRoot", "nonce", "deadline", "signature", "rwaToken"),
    "transfer": ("to", "amount", "nonce", "deadline", "signature", "rwaToken"),
    "burn": ("from", "amount", "nonce", "deadline", "signature", "rwaToken"),
}

SUCCESS_MESSAGES = {
    "deposit": "Deposit executed successfully",
    "withdraw": "Withdraw executed successfully",
    "mint": "RWA mint executed successfully",
    "transfer": "RWA transfer executed successfully",
    "burn": "RWA burn executed successfully",
}


class RelayService:
    """
    Gateway logic behind the HTTP routes.

    Pre-validation (shape, types, amount, deadline window) happens here and
    never reaches the executor when it fails; everything else is decided by
    the authoritative executor.
    """

    def __init__(
        self,
        executor: Executor,
        relay_key: RelayKey,
        max_deadline_window: int = rules.DEFAULT_MAX_DEADLINE_WINDOW,
        clock: Callable[[], float] = time.time,
        metrics: MetricRecorder | None = None,
    ):
        self.executor = executor
        self.relay_key = relay_key
        self.max_deadline_window = max_deadline_window
        self.clock = clock
        self.metrics = metrics or MetricRecorder()

    # ---------------------------------------------------------
    # pre-validation
    # ---------------------------------------------------------
    def parse_envelope(self, kind: str, body: Optional[Dict[str, Any]]) -> SignedEnvelope:
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")

        required = REQUIRED_FIELDS[kind]
        missing = [name for name in required if body.get(name) in (None, "")]
        if missing:
            raise MissingFields(missing)

        if any(not isinstance(body[name], str) for name in required):
            raise ValidationError("Invalid input types")

        user = body.get("user")
        if user is not None:
            user = normalize_address(user, "user")

        amount = parse_units(body["amount"])
        rules.check_amount(amount)

        nonce = parse_uint(body["nonce"], "nonce")
        deadline = parse_uint(body["deadline"], "deadline")
        rules.check_deadline_window(deadline, int(self.clock()), self.max_deadline_window)

        signature = rules.parse_signature(body["signature"])

        fields: Dict[str, Any] = {"amount": amount, "nonce": nonce, "deadline": deadline}
        asset = None
        if kind in ("mint", "transfer"):
            fields["to"] = normalize_address(body["to"], "to")
        if kind == "burn":
            fields["source"] = normalize_address(body["from"], "from")
        if kind == "mint":
            valuation = parse_uint(body["valuation"], "valuation")
            rules.check_amount(valuation, "valuation")
            fields.update(
                content_id=body["ipfsCid"],
                name=body["name"],
                description=body["description"],
                valuation=valuation,
                merkle_root=parse_bytes32(body["merkleRoot"], "merkleRoot"),
            )
        if kind in ("mint", "transfer", "burn"):
            asset = normalize_address(body["rwaToken"], "rwaToken")

        action = ACTION_TYPES[kind](**fields)
        return SignedEnvelope(action=action, signature=signature, actor=user, asset=asset)

    # ---------------------------------------------------------
    # operations
    # ---------------------------------------------------------
    def submit(self, kind: str, body: Optional[Dict[str, Any]], origin: str = "-") -> Dict[str, Any]:
        try:
            envelope = self.parse_envelope(kind, body)
        except RelayError as exc:
            self.metrics.incr(kind, exc.code)
            logs.info(f"[Relay] {kind} rejected before submission origin={origin} code={exc.code}")
            raise

        action = envelope.action
        logs.info(
            f"[Relay] executing {kind} amount={format_units(action.amount)} "
            f"nonce={action.nonce} deadline="
            f"{datetime.fromtimestamp(action.deadline, tz=timezone.utc).isoformat()}"
        )

        try:
            with Timer(recorder=self.metrics).span(f"submit.{kind}"):
                receipt = self.executor.submit(envelope)
        except (ReplayError, AuthenticationError) as exc:
            self.metrics.incr(kind, exc.code)
            logs.security(
                "relay rejected envelope",
                kind=kind,
                code=exc.code,
                origin=origin,
                nonce=action.nonce,
                claimed=envelope.claimed_actor,
            )
            raise
        except RelayError as exc:
            self.metrics.incr(kind, exc.code)
            logs.warning(f"[Relay] {kind} failed code={exc.code}: {exc.message}")
            raise

        self.metrics.incr(kind, "OK")
        return {
            "success": True,
            "txHash": receipt.tx_hash,
            "blockNumber": receipt.block_number,
            "gasUsed": str(receipt.gas_used),
            "message": SUCCESS_MESSAGES[kind],
        }

    def nonce(self, address: str) -> Dict[str, str]:
        address = normalize_address(address, "address")
        return {"nonce": str(self.executor.nonce_of(address))}

    def health(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "status": "OK",
            "relayKeyConfigured": self.relay_key.configured,
            "chainId": self.executor.chain_id,
            "submissions": self.metrics.snapshot()["counters"],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


# =============================================================================
# factory
# =============================================================================
@logs.catch(msg="relay service construction failed")
def build_service(config, clock: Callable[[], float] = time.time) -> RelayService:
    """
    AppConfig -> RelayService.

    executor "ledger": in-process LendingPool over a fresh Ledger, with the
    dUSD token and every configured asset address as in-memory tokens, plus
    a collateral vault that borrows dUSD against the configured collateral token.
    Each ``pool.opening_balances`` holder is minted dUSD and has the pool
    approved for it, so a fresh ledger can take deposits.
    executor "contract": the on-chain LendingPool at ``lending_pool_address``.
    """
    relay_cfg = config.relay
    secret = config.secret.relay_private_key
    relay_key = RelayKey(secret.get_secret_value() if secret else None)
    if not relay_key.configured:
        logs.warning("[Relay] RELAYER_PRIVATE_KEY not set; submissions to a chain will be refused")

    domain = Eip712Domain(chain_id=relay_cfg.chain_id, verifying_contract=relay_cfg.lending_pool_address)

    if relay_cfg.executor == "contract":
        if not relay_cfg.rpc_url:
            raise ValueError("relay.rpc_url is required for the contract executor")
        executor = ContractExecutor.connect(
            relay_cfg.rpc_url,
            relay_cfg.lending_pool_address,
            relay_key,
            relay_cfg.chain_id,
            receipt_timeout=relay_cfg.receipt_timeout,
        )
    else:
        ledger = Ledger()
        token = InMemoryToken(ledger, relay_cfg.token_address)
        for holder, amount in config.pool.opening_balances.items():
            token.mint(holder, parse_units(amount))
            token.approve(holder, relay_cfg.lending_pool_address, UINT256_MAX)
            logs.info(f"[Relay] opening balance {holder}: {amount} {token.symbol}")
        assets = AssetRegistry(InMemoryAssetToken(ledger, address) for address in relay_cfg.asset_addresses)
        pool = LendingPool(
            ledger,
            token,
            SignatureVerifier(domain),
            rate_per_second=rate_from_apr(config.pool.apr),
            assets=assets,
            start_time=int(clock()),
        )
        vault = CollateralVault(
            ledger,
            InMemoryToken(ledger, config.pool.collateral_address, symbol="COL"),
            token,
            FixedPriceOracle(config.pool.collateral_price),
            relay_cfg.lending_pool_address,
            ltv_bps=config.pool.ltv_bps,
        )
        executor = LedgerExecutor(pool, clock=clock, vault=vault)

    logs.info(
        f"[Relay] executor={relay_cfg.executor} chain_id={relay_cfg.chain_id} "
        f"pool={relay_cfg.lending_pool_address} relayer={relay_key.address}"
    )
    return RelayService(
        executor,
        relay_key,
        max_deadline_window=relay_cfg.max_deadline_window,
        clock=clock,
    )
