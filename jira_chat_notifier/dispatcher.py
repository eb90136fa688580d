"""Delivery of chat notifications to the webhooks configured for a project."""

import logging
from dataclasses import dataclass
from typing import List, Optional

import requests

from .config import DEFAULT_REQUEST_TIMEOUT, NotifierConfig, OutboundTarget
from .formatter import ChatNotification
from .model import ChatAttachment, IncomingEvent, OutboundMessage

logger = logging.getLogger(__name__)

SENT = "sent"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class DeliveryResult:
    """Outcome of one delivery attempt."""

    webhook: str
    status: str
    status_code: Optional[int] = None
    error: Optional[str] = None


def build_message(event: IncomingEvent, notification: ChatNotification, ticket_url: str) -> OutboundMessage:
    """Compose the chat payload; the link is ``ticket_url`` immediately followed by the issue key."""
    attachment = ChatAttachment(
        title=event.issue_summary,
        title_link=ticket_url + event.issue_key,
        text=notification.body,
    )
    return OutboundMessage(
        text=f"Issue {event.issue_key} has been {notification.verb}",
        attachments=[attachment],
    )


class Dispatcher:
    """Posts notifications to every target of a project, one at a time.

    Delivery is best-effort: each target is tried once and a failure is
    logged without affecting the remaining targets.
    """

    def __init__(self, timeout: Optional[float] = None, session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    def dispatch(
        self,
        config: NotifierConfig,
        event: IncomingEvent,
        notification: ChatNotification,
    ) -> List[DeliveryResult]:
        targets = config.targets_for(event.project_key)
        if not targets:
            logger.info(f"No outgoing webhooks configured for project {event.project_key!r}")
            return []

        results = []
        for target in targets:
            if not target.accepts(notification.verb, event.webhook_event):
                logger.info(
                    f"Skipping outgoing webhook - event not in on_events "
                    f"(jira_project={event.project_key}, issue_key={event.issue_key}, "
                    f"webhook_endpoint={target.webhook})"
                )
                results.append(DeliveryResult(webhook=target.webhook, status=SKIPPED))
                continue

            # Use default ticket_url if not overwritten in project config
            ticket_url = target.ticket_url or config.general.ticket_url
            message = build_message(event, notification, ticket_url)
            timeout = self.timeout or config.general.request_timeout or DEFAULT_REQUEST_TIMEOUT
            results.append(self._post(target, event, message, timeout))
        return results

    def _post(
        self,
        target: OutboundTarget,
        event: IncomingEvent,
        message: OutboundMessage,
        timeout: float,
    ) -> DeliveryResult:
        logger.info(
            f"Sending webhook to chat (jira_project={event.project_key}, "
            f"issue_key={event.issue_key}, webhook_endpoint={target.webhook})"
        )
        try:
            response = self.session.post(
                target.webhook,
                json=message.model_dump(),
                headers={"Content-Type": "application/json"},
                timeout=timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Webhook sending failed ({target.webhook}): {e}")
            return DeliveryResult(webhook=target.webhook, status=FAILED, error=str(e))

        if not 200 <= response.status_code < 300:
            logger.error(f"Webhook sending failed ({target.webhook}): {response.status_code} {response.reason}")
            return DeliveryResult(
                webhook=target.webhook,
                status=FAILED,
                status_code=response.status_code,
                error=response.reason,
            )

        logger.info(f"Webhook sent: {response.status_code} {response.reason}")
        return DeliveryResult(webhook=target.webhook, status=SENT, status_code=response.status_code)

    def close(self) -> None:
        self.session.close()
