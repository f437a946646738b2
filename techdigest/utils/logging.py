"""Logging setup for the digest pipeline."""

import logging

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "anthropic")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once for CLI runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)
