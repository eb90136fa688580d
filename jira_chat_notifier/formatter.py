"""Turns recognised Jira events into chat message bodies."""

import logging
from dataclasses import dataclass
from typing import Optional

from .metrics import NotifierMetrics
from .model import ISSUE_CREATED, ISSUE_UPDATED, IncomingEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatNotification:
    """Message body and the verb used in "Issue X has been <verb>"."""

    body: str
    verb: str


def classify(event: IncomingEvent, metrics: Optional[NotifierMetrics] = None) -> Optional[ChatNotification]:
    """Map an event to a notification, or None when it should be dropped.

    Unknown event types are counted on ``metrics`` when given.
    """
    if event.webhook_event == ISSUE_CREATED:
        return ChatNotification(body=f"By {event.display_name}", verb="created")

    if event.webhook_event == ISSUE_UPDATED:
        changelog = event.changelog
        # Sometimes there is no changelog - nothing worth posting then
        if changelog is None:
            logger.warning(
                f"Empty changelog - skipping (jira_event={event.webhook_event}, "
                f"jira_project={event.project_key}, issue_key={event.issue_key})"
            )
            return None
        body = (
            f"{event.display_name} changed field {changelog.field}: "
            f"{changelog.from_string} -> {changelog.to_string}"
        )
        return ChatNotification(body=body, verb="updated")

    logger.warning(f"Unknown JIRA event received. Skipping. (jira_event={event.webhook_event!r})")
    if metrics is not None:
        metrics.record_unknown()
    return None
