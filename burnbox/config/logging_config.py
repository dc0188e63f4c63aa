"""
Logging Configuration

Root logger setup, called once at process start by main.py and the
Celery app.
"""

import logging
import os
import sys


def setup_logging(level: str = None) -> None:
    """
    Configure the root logger.

    Args:
        level: Level name; defaults to LOG_LEVEL or INFO
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        stream=sys.stdout,
    )
    # Silence noisy libraries
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
