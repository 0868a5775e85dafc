from .config import BookConfig
from .logger import LoggingConfig, configure_logging, get_logger

__all__ = [
    "BookConfig",
    "LoggingConfig",
    "configure_logging",
    "get_logger",
]
