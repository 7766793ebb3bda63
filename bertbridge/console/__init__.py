"""Rich, structured console output for bertbridge.

Usage:
    from bertbridge.console import logger

    logger.info("Loading checkpoint...")
    logger.success("Translated 199 parameters")
    logger.key_value({"layers": 12, "prefix": "bert"})
"""
from bertbridge.console.logger import Logger, get_logger

# Module-level singleton for convenient import
logger = get_logger()

__all__ = ["Logger", "get_logger", "logger"]
