# infrastructure/logger.py
from __future__ import annotations

import logging
import logging.config
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from pathlib import Path

@dataclass(frozen=True)
class LoggingConfig:
    app_name: str = "lazybook"
    level: str = "INFO"
    log_file: Optional[str] = None
    # per-logger overrides, e.g. {"engine.pricing": "WARNING"}
    levels: Dict[str, str] = field(default_factory=dict)


def build_dict_config(cfg: LoggingConfig) -> Dict[str, Any]:
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": cfg.level,
            "formatter": "standard",
            "stream": "ext://sys.stdout",
        }
    }
    root_handlers = ["console"]

    if cfg.log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": cfg.level,
            "formatter": "standard",
            "filename": cfg.log_file,
            "maxBytes": 5_000_000,
            "backupCount": 3,
            "encoding": "utf-8",
        }
        root_handlers.append("file")

    loggers: Dict[str, Any] = {
        # price evaluation logs at DEBUG on every call
        "engine.pricing": {"level": "INFO"},
    }
    for name, level in cfg.levels.items():
        loggers[name] = {"level": level}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": f"%(asctime)s.%(msecs)03d %(levelname)s [{cfg.app_name}] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": handlers,
        "root": {
            "level": cfg.level,
            "handlers": root_handlers,
        },
        "loggers": loggers,
    }


def configure_logging(cfg: LoggingConfig) -> None:
    """
    Configure logging once from the entrypoint (main.py / cli_play.py).
    Engine modules only call logging.getLogger(__name__).
    """
    if cfg.log_file:
        Path(cfg.log_file).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_dict_config(cfg))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
