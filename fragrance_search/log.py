"""Logging setup. Logs go to stderr since stdout carries the MCP stdio protocol."""
import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once.

    Args:
        level: Level name such as "DEBUG" or "INFO"
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            stream=sys.stderr,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            level=numeric_level,
        )
    root_logger.setLevel(numeric_level)
