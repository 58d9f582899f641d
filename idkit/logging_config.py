"""
Logging configuration for the World ID bridge toolkit
"""
import logging
import sys
from typing import Optional

from .config import config


def setup_logging(
    name: str,
    level: Optional[int] = None,
    log_format: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging for a toolkit component.

    Args:
        name: Logger name (usually "idkit.<component>")
        level: Logging level (default from IDKIT_LOG_LEVEL)
        log_format: Optional custom format string

    Returns:
        Configured logger instance
    """
    if level is None:
        level = config.log_level_number

    if log_format is None:
        log_format = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding handlers multiple times
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(log_format))
        logger.addHandler(console_handler)

    return logger


# Pre-configured loggers for each component.
# None of them may ever see key material, connect URLs or decrypted payloads.
session_logger = setup_logging("idkit.session")
crypto_logger = setup_logging("idkit.crypto")
verify_logger = setup_logging("idkit.verify")
