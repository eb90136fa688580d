"""Pydantic models for the outgoing chat webhook payload."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ChatAttachment(BaseModel):
    """Attachment of a Rocket.Chat / Slack style incoming webhook message."""
    model_config = ConfigDict(frozen=True)

    title: str
    title_link: str
    text: str


class OutboundMessage(BaseModel):
    """Message posted to a chat incoming webhook."""
    model_config = ConfigDict(frozen=True)

    text: str
    attachments: List[ChatAttachment] = Field(default_factory=list)
