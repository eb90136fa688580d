"""Models for incoming Jira webhooks and outgoing chat messages."""

from .chat_models import (
    ChatAttachment,
    OutboundMessage,
)
from .jira_models import (
    ISSUE_CREATED,
    ISSUE_UPDATED,
    ChangelogEntry,
    IncomingEvent,
    ParseError,
    get_string,
    parse_webhook,
)

__all__ = [
    "ChatAttachment",
    "OutboundMessage",
    "ISSUE_CREATED",
    "ISSUE_UPDATED",
    "ChangelogEntry",
    "IncomingEvent",
    "ParseError",
    "get_string",
    "parse_webhook",
]
