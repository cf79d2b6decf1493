import logging
import os
from typing import List

_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"
_CONFIGURED = "_receipt_parser_configured"


def _level_from_env() -> int:
    raw = (os.environ.get("LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else logging.INFO


def _handlers(logger: logging.Logger) -> List[logging.Handler]:
    # stderr only: stdout carries the JSON output of ``receipt-parser parse``.
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as exc:
            logger.warning(f"LOG_FILE {log_file!r} not usable ({exc}); logging to stderr only")
    return handlers


def get_logger(name: str) -> logging.Logger:
    """Logger for one parser module, e.g. ``get_logger("totals")``.

    Loggers live under the ``receipt_parser.`` namespace and are configured
    on first use from LOG_LEVEL (default INFO) and an optional LOG_FILE.
    """
    logger = logging.getLogger(f"receipt_parser.{name}")
    if getattr(logger, _CONFIGURED, False):
        return logger

    level = _level_from_env()
    logger.setLevel(level)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)
    for handler in _handlers(logger):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    setattr(logger, _CONFIGURED, True)
    return logger
