from __future__ import annotations

import json
import logging
from urllib.parse import parse_qs

from fastapi import APIRouter, Request, Response
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from claimchat.application.dto.webhook_event import InboundMessageDTO
from claimchat.core.config import settings
from claimchat.infrastructure.http.rate_limiter import RateLimitExceeded
from claimchat.infrastructure.whatsapp.twiml import format_twiml
from claimchat.infrastructure.whatsapp.webhook_verify import verify_twilio_signature
from claimchat.wiring.dependencies import get_handle_incoming_message_use_case, get_rate_limiter


router = APIRouter()
logger = logging.getLogger(__name__)

TWIML_MEDIA_TYPE = "application/xml"


def _parse_body(body: bytes, content_type: str) -> tuple[dict[str, str], bool]:
    """Returns (fields, is_form). Form fields take the first value of each key."""
    if "application/json" in content_type:
        payload = json.loads(body.decode("utf-8")) if body else {}
        if not isinstance(payload, dict):
            raise ValueError("JSON body must be an object")
        return {key: value for key, value in payload.items() if value is not None}, False
    parsed = parse_qs(body.decode("utf-8"), keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items()}, True


@router.post("/webhooks/whatsapp")
async def whatsapp_webhook(request: Request) -> Response:
    correlation_id = getattr(request.state, "correlation_id", None)
    try:
        use_case = get_handle_incoming_message_use_case()
    except Exception as e:
        logger.exception("Failed to initialize use case", extra={"correlation_id": correlation_id, "reason": str(e)})
        return Response(status_code=500)

    body = await request.body()
    try:
        fields, is_form = _parse_body(body, request.headers.get("content-type", ""))
    except ValueError:
        # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
        logger.exception("Failed to parse webhook body", extra={"correlation_id": correlation_id})
        return Response(status_code=400)

    url = settings.WEBHOOK_PUBLIC_URL or str(request.url)
    signature = request.headers.get("X-Twilio-Signature")
    if not verify_twilio_signature(url, fields if is_form else {}, signature, settings.TWILIO_AUTH_TOKEN, settings.ENV):
        logger.warning("Rejected webhook signature", extra={"correlation_id": correlation_id})
        return Response(status_code=403)

    try:
        event = InboundMessageDTO.model_validate(fields)
    except ValidationError as e:
        logger.warning("Invalid webhook payload", extra={"correlation_id": correlation_id, "reason": str(e)})
        return Response(status_code=400)

    try:
        get_rate_limiter().hit(event.identity)
    except RateLimitExceeded as e:
        logger.warning(
            "Webhook rate limit exceeded",
            extra={"correlation_id": correlation_id, "identity": event.identity, "reason": f"retry_after={e.retry_after}"},
        )
        return Response(status_code=429, headers={"Retry-After": str(e.retry_after)})

    message = event.to_message()
    try:
        outcome = await run_in_threadpool(use_case.handle, message, correlation_id)
    except Exception as e:
        logger.exception(
            "Error processing webhook message",
            extra={"correlation_id": correlation_id, "message_id": message.id, "reason": str(e)},
        )
        return Response(content=format_twiml(None), status_code=500, media_type=TWIML_MEDIA_TYPE)

    return Response(content=format_twiml(outcome.reply), status_code=200, media_type=TWIML_MEDIA_TYPE)
