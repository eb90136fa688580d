"""Common utilities and shared functionality."""

from .logging_utils import (
    setup_logging,
    log_server_message,
)

from .secret_utils import (
    mask_secret,
    verify_url_secret,
)

__all__ = [
    # Logging utilities
    "setup_logging",
    "log_server_message",
    # Secret utilities
    "mask_secret",
    "verify_url_secret",
]
