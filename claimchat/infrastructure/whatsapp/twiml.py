from __future__ import annotations

from xml.sax.saxutils import escape

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'


def format_twiml(message: str | None) -> str:
    """Wrap a reply in a TwiML <Message>. An empty reply yields an empty <Response/>."""
    if not message:
        return EMPTY_TWIML
    return f'<?xml version="1.0" encoding="UTF-8"?><Response><Message>{escape(message)}</Message></Response>'
