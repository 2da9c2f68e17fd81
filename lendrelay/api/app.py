# lendrelay/api/app.py
from __future__ import annotations

from flask import Flask, jsonify, request

from lendrelay import AppConfig, logs
from lendrelay.api.decorators import handle_relay_errors
from lendrelay.relay.rate_limit import RateLimiter
from lendrelay.relay.service import RelayService, build_service
from lendrelay.utils.errors import RateLimitError
from lendrelay.utils.logger import init_logging

# url rule -> action kind
ACTION_ROUTES = {
    "/api/deposit": "deposit",
    "/api/withdraw": "withdraw",
    "/api/rwa/mint": "mint",
    "/api/rwa/transfer": "transfer",
    "/api/rwa/burn": "burn",
}


def create_app(service: RelayService | None = None, limiter: RateLimiter | None = None,
               config: AppConfig | None = None) -> Flask:
    """
    Relay gateway.

    Without a ``service`` one is built from ``config`` (default: AppConfig.load()).
    """
    if service is None or limiter is None:
        config = config or AppConfig.load()
    if service is None:
        service = build_service(config)
    if limiter is None:
        limiter = RateLimiter(limit=config.relay.rate_limit_max, window=config.relay.rate_limit_window)

    app = Flask(__name__)
    app.extensions["relay_service"] = service
    app.extensions["rate_limiter"] = limiter

    @app.before_request
    def rate_limit():
        if not request.path.startswith("/api/"):
            return None
        origin = request.remote_addr or "-"
        if limiter.allow(origin):
            return None
        logs.warning(f"[API] rate limited origin={origin} path={request.path}")
        err = RateLimitError("Too many requests from this IP, please try again later.")
        resp = jsonify(err.to_dict())
        resp.headers["Retry-After"] = str(limiter.retry_after(origin))
        return resp, err.status

    def _submit(kind: str):
        body = request.get_json(silent=True)
        return jsonify(service.submit(kind, body, origin=request.remote_addr or "-"))

    for rule, kind in ACTION_ROUTES.items():
        view = handle_relay_errors(lambda kind=kind: _submit(kind))
        app.add_url_rule(rule, endpoint=f"submit_{kind}", view_func=view, methods=["POST"])

    @app.get("/api/nonce/<address>")
    @handle_relay_errors
    def get_nonce(address: str):
        return jsonify(service.nonce(address))

    @app.get("/health")
    def health():
        return jsonify(service.health())

    @app.errorhandler(404)
    def not_found(_):
        return jsonify({"error": "Endpoint not found", "code": "NOT_FOUND"}), 404

    return app


if __name__ == "__main__":
    cfg = AppConfig.load()
    init_logging(cfg.log)
    create_app(config=cfg).run(host=cfg.relay.host, port=cfg.relay.port)
