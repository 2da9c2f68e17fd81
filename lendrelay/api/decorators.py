from __future__ import annotations

from functools import wraps
from flask import jsonify
from typing import Callable, Any

from lendrelay import logs
from lendrelay.utils.errors import RelayError


def handle_relay_errors(func: Callable[..., Any]):
    """
    Decorator: convert relay errors into JSON responses.

    Contract (FROZEN):
    - RelayError -> {error, code} with the error's HTTP status
    - anything else -> 500 EXECUTION_FAILED with a fixed message
    - never returns a traceback or exception text of an unexpected error
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except RelayError as e:
            return jsonify(e.to_dict()), e.status
        except Exception:
            logs.exception(f"[API] unhandled error in {func.__name__}")
            return jsonify({
                "error": "Internal server error",
                "code": "EXECUTION_FAILED",
            }), 500

    return wrapper
