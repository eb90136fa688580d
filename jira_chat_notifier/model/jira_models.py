"""Pydantic models for incoming Jira webhooks.

Jira sends large payloads whose shape differs between event types and Jira
versions. Only a handful of fields are needed here, so instead of validating
the whole document against a schema every field is looked up on its own with
``get_string``. A missing or mistyped field becomes an empty string and never
fails the parse.
"""

import json
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict

ISSUE_CREATED = "jira:issue_created"
ISSUE_UPDATED = "jira:issue_updated"


class ParseError(ValueError):
    """Raised when a webhook body is not a readable JSON object."""


class ChangelogEntry(BaseModel):
    """First item of the changelog of an issue update."""
    model_config = ConfigDict(frozen=True)

    field: str
    from_string: str = ""
    to_string: str = ""


class IncomingEvent(BaseModel):
    """Fields of interest in an incoming Jira webhook."""
    model_config = ConfigDict(frozen=True)

    webhook_event: str = ""
    display_name: str = ""
    issue_key: str = ""
    issue_summary: str = ""
    project_key: str = ""
    project_avatar: str = ""
    changelog: Optional[ChangelogEntry] = None


def get_string(payload: Any, *path: Union[str, int]) -> str:
    """Walk ``path`` through nested dicts/lists and return the string found there.

    Returns an empty string when a key is missing, an index is out of range,
    an intermediate value has the wrong type or the leaf is not a string.
    """
    node = payload
    for segment in path:
        if isinstance(segment, int):
            if not isinstance(node, list) or not -len(node) <= segment < len(node):
                return ""
            node = node[segment]
        else:
            if not isinstance(node, dict) or segment not in node:
                return ""
            node = node[segment]
    return node if isinstance(node, str) else ""


def _extract_changelog(payload: dict) -> Optional[ChangelogEntry]:
    field = get_string(payload, "changelog", "items", 0, "field")
    if not field:
        return None
    return ChangelogEntry(
        field=field,
        from_string=get_string(payload, "changelog", "items", 0, "fromString"),
        to_string=get_string(payload, "changelog", "items", 0, "toString"),
    )


def parse_webhook(body: Union[bytes, str]) -> IncomingEvent:
    """Extract an ``IncomingEvent`` from a raw webhook body."""
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, ValueError) as e:
        raise ParseError(f"Invalid JSON in request body: {e}") from e

    if not isinstance(payload, dict):
        raise ParseError("Webhook payload must be a JSON object")

    return IncomingEvent(
        webhook_event=get_string(payload, "webhookEvent"),
        display_name=get_string(payload, "user", "displayName"),
        issue_key=get_string(payload, "issue", "key"),
        issue_summary=get_string(payload, "issue", "fields", "summary"),
        project_key=get_string(payload, "issue", "fields", "project", "key"),
        project_avatar=get_string(payload, "issue", "fields", "project", "avatarUrls", "24x24"),
        changelog=_extract_changelog(payload),
    )
