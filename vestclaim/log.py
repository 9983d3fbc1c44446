#!/usr/bin/env python3
"""Process-wide logging setup shared by the CLI and the HTTP bridge."""
import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", stream: TextIO = sys.stdout) -> None:
    """
    Configure process-wide logging for the CLI and the HTTP bridge.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(stream)],
    )
