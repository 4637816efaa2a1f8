from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from claimchat.domain.entities.message import Message

_CHANNEL_PREFIXES = ("whatsapp:", "sms:")


class InboundMessageDTO(BaseModel):
    """Twilio-style inbound message. Accepts the form field names or the same keys as JSON."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message_sid: str = Field(alias="MessageSid", min_length=1)
    sender: str = Field(alias="From", min_length=1)
    body: str = Field(default="", alias="Body")
    media_url: str | None = Field(default=None, alias="MediaUrl0")

    @property
    def identity(self) -> str:
        sender = self.sender.strip()
        for prefix in _CHANNEL_PREFIXES:
            if sender.lower().startswith(prefix):
                return sender[len(prefix) :]
        return sender

    @property
    def platform(self) -> str:
        return "sms" if self.sender.lower().startswith("sms:") else "whatsapp"

    def to_message(self) -> Message:
        return Message(
            id=self.message_sid,
            identity=self.identity,
            text=self.body or "",
            media_url=self.media_url or None,
            platform=self.platform,
        )
