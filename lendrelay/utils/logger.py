#!filepath: lendrelay/utils/logger.py
import os
from functools import wraps
from time import perf_counter
from loguru import logger
from typing import Callable


class Logging:
    """
    Relay logging
    ---------------------------------------
    - daily file rotation
    - retention window
    - security events tagged separately
    - function-level logging decorator
    ---------------------------------------
    """

    def __init__(
        self,
        log_dir: str = "logs",
        rotation: str = "1 day",
        retention: str = "30 days",
        log_level: str = "INFO",
    ):
        self.log_dir = log_dir
        self.rotation = rotation
        self.retention = retention
        self.level = log_level

        os.makedirs(self.log_dir, exist_ok=True)
        self._configure()

    @classmethod
    def from_config(cls, cfg) -> "Logging":
        return cls(
            log_dir=cfg.dir,
            rotation=cfg.rotation,
            retention=cfg.retention,
            log_level=cfg.level,
        )

    def _configure(self) -> None:
        """
        Replace every loguru sink with the relay file sinks.
        """

        logger.remove()

        logger.add(
            sink=f"{self.log_dir}/{{time:YYYY-MM-DD}}.log",
            rotation=self.rotation,
            retention=self.retention,
            level=self.level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
            enqueue=True,
            backtrace=True,
            diagnose=False,  # never dump local variables (may hold key material)
        )

        # replay / forged-signature attempts, kept apart from the main log
        logger.add(
            sink=f"{self.log_dir}/security.log",
            rotation=self.rotation,
            retention=self.retention,
            level="WARNING",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
            filter=lambda record: record["extra"].get("security", False),
            enqueue=True,
        )

        logger.info("-----------Logger initialized successfully.-----------")

    # ----------- log methods -----------
    def debug(self, msg: str, *args, **kwargs):
        logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        print(msg)
        logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        print(msg)
        logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        logger.exception(msg, *args, **kwargs)

    def security(self, event: str, **fields):
        """
        Security event (replay attempt, signature mismatch).

        Fields are rendered as sorted key=value pairs so the line is greppable.
        """
        detail = " ".join(f"{k}={fields[k]}" for k in sorted(fields))
        logger.bind(security=True).warning(f"[SECURITY] {event} {detail}".rstrip())

    # ---------- decorator ----------
    def catch(self, msg: str = "Exception occurred", log_time: bool = True) -> Callable:
        """
        Log (and re-raise) any exception escaping the wrapped function; with
        ``log_time`` also log how long a successful call took.

        Arguments are never logged: several callers handle key material.
        """

        def decorator(func: Callable):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start = perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception:
                    logger.exception(f"[ERROR] {func.__name__}: {msg}")
                    raise
                if log_time:
                    logger.info(f"[TIME] {func.__name__} took {perf_counter() - start:.4f}s")
                return result

            return wrapper

        return decorator


def init_logging(cfg) -> Logging:
    """
    Reconfigure the loguru sinks from a LogConfig.

    Sinks are process-global, so the module-level ``logs`` facade writes to
    the new files as well.
    """
    return Logging.from_config(cfg)


# default global logs (reconfigured by init_logging)
logs = Logging()
