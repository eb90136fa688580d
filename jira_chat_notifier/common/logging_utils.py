"""Logging utilities for consistent logging across modules."""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_dir: Optional[str] = None, level: Optional[str] = None) -> None:
    """Setup logging configuration."""
    log_dir = log_dir or os.getenv("NOTIFIER_LOG_DIR")
    level_name = (level or os.getenv("NOTIFIER_LOG_LEVEL", "INFO")).upper()

    handlers = [logging.StreamHandler()]
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path / "jira-chat-notifier.log"))

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def log_server_message(message: str) -> None:
    """Log server-related messages."""
    logging.info(f"[SERVER] {message}")
