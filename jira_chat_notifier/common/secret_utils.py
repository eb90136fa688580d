"""Helpers for the shared secret embedded in the webhook URL."""

import hmac
import logging

logger = logging.getLogger(__name__)


def verify_url_secret(candidate: str, secret: str) -> bool:
    """Compare the secret taken from the request path with the configured one."""
    if not candidate or not secret:
        return False

    # Constant-time comparison
    return hmac.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


def mask_secret(secret: str) -> str:
    """Return a printable placeholder for a secret value."""
    return "*" * len(secret) if secret else "Not set"
