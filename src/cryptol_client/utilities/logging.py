"""Logging utilities for the Cryptol client."""

import logging
from typing import Literal

from rich.console import Console
from rich.logging import RichHandler


def get_logger(name: str) -> logging.Logger:
    """Get a logger nested under the cryptol_client namespace.

    Args:
        name: the name of the logger, which will be prefixed with 'cryptol_client.'

    Returns:
        a configured logger instance
    """
    if name != "cryptol_client" and not name.startswith("cryptol_client."):
        name = f"cryptol_client.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
) -> None:
    """Configure logging for the Cryptol client.

    Installs a rich handler on stderr for the ``cryptol_client`` logger tree.

    Args:
        level: the log level to use
    """
    logger = logging.getLogger("cryptol_client")
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)
