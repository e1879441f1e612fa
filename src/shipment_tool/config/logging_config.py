"""
Logging setup shared by the API and scripts.
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure standard logging to stdout at the given level name."""
    logging.basicConfig(
        format=LOG_FORMAT,
        stream=sys.stdout,
        level=getattr(logging, str(level).upper(), logging.INFO),
    )
