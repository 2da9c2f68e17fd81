#!filepath: lendrelay/__init__.py

from .utils.logger import Logging, logs
from .utils.retry import Retry
from .config.app_config import AppConfig

__version__ = "0.1.0"

# alias
retry = Retry

__all__ = [
    "logs", "Logging",
    "retry",
    "AppConfig",
    "__version__",
]
