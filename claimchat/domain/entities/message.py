from dataclasses import dataclass


@dataclass(frozen=True)
class Message:
    id: str
    identity: str  # E.164 phone number, channel prefix stripped
    text: str
    media_url: str | None = None
    platform: str = "whatsapp"
