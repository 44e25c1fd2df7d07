"""Logging setup for the autofill package."""

import logging
import os


def _parse_log_level(value: str, default: int = logging.INFO) -> int:
    return {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
    }.get((value or "").strip().upper(), default)


def setup_logger(name: str = "autofill") -> logging.Logger:
    level = _parse_log_level(os.getenv("AUTOFILL_LOG_LEVEL", "INFO"))
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    ))
    logger.addHandler(handler)
    return logger
