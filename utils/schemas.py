"""
Pydantic schemas for the Slack ↔ reactor bridge.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════════
# Slack Events API — inbound webhook payloads
# ═══════════════════════════════════════════════════════════════════════════════


class SlackFile(BaseModel):
    name: str
    mimetype: str
    url_private: str


class SlackEvent(BaseModel):
    """The ``event`` object of an Events API callback.

    Only the fields the bridge uses are declared; everything else Slack
    sends (``type``, ``channel``, ``ts`` …) is ignored.
    """

    bot_id: Optional[str] = None
    user: Optional[str] = None
    text: Optional[str] = None
    files: Optional[List[SlackFile]] = None

    @property
    def is_from_bot(self) -> bool:
        return self.bot_id is not None


class EventEnvelope(BaseModel):
    challenge: Optional[str] = None
    event: Optional[SlackEvent] = None


class InboundEvent(BaseModel):
    """A human-authored message, normalised for forwarding to the reactor."""

    user: str = ""
    text: str = ""
    files: List[SlackFile] = Field(default_factory=list)

    @classmethod
    def from_slack(cls, event: SlackEvent) -> "InboundEvent":
        return cls(
            user=event.user or "",
            text=event.text or "",
            files=event.files or [],
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Outbound (reactor → Slack)
# ═══════════════════════════════════════════════════════════════════════════════


class PostBody(BaseModel):
    user: str
    text: str
    state: str


# ═══════════════════════════════════════════════════════════════════════════════
# Client results
# ═══════════════════════════════════════════════════════════════════════════════


class OAuthResult(BaseModel):
    """Result of ``oauth.v2.access``.

    ``access_token`` is the app (bot) token the bridge acts with;
    ``user_token`` belongs to the installing user and is only used to read
    their profile.
    """

    user_id: str
    access_token: str
    user_token: str


class FilePayload(BaseModel):
    """File bytes ready to be sent as one multipart ``file`` part."""

    name: str
    content_type: str
    data: bytes
