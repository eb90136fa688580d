"""Jira Chat Notifier - relay Jira webhooks to chat incoming webhooks.

This package is organised as a small pipeline:

- jira_chat_notifier.model: Webhook parsing and chat payload models
- jira_chat_notifier.formatter: Event classification and message bodies
- jira_chat_notifier.dispatcher: Delivery to the configured chat webhooks
- jira_chat_notifier.config: Configuration loading and hot reload
- jira_chat_notifier.server: FastAPI application and metrics endpoint
"""

__version__ = "1.0.0"

from .config import ConfigError, ConfigStore, NotifierConfig
from .model import IncomingEvent, ParseError, parse_webhook

__all__ = [
    "ConfigError",
    "ConfigStore",
    "NotifierConfig",
    "IncomingEvent",
    "ParseError",
    "parse_webhook",
]
