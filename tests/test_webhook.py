"""
Tests for the inbound webhook, the internal endpoints and /health.
"""

from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient

from claimchat.application.dto.webhook_event import InboundMessageDTO
from claimchat.application.use_cases.drain_outbox import DrainOutboxUseCase
from claimchat.application.use_cases.handle_incoming_message import HandleIncomingMessageUseCase
from claimchat.application.use_cases.notify_evaluation import NotifyEvaluationCompletedUseCase
from claimchat.core.config import settings
from claimchat.domain.entities.conversation_state import FSMState
from claimchat.infrastructure.events.logging_publisher import LoggingEventPublisher
from claimchat.infrastructure.http.rate_limiter import WindowRateLimiter
from claimchat.infrastructure.store.memory_store import MemoryConversationStore
from claimchat.infrastructure.users.memory_directory import MemoryUserDirectory
from claimchat.infrastructure.whatsapp.logging_messenger import LoggingMessenger
from claimchat.infrastructure.whatsapp.webhook_verify import compute_twilio_signature
from claimchat.main import app, resolve_correlation_id
from claimchat.wiring.dependencies import get_notify_evaluation_use_case

from support import IDENTITY, make_deps

PUBLIC_URL = "https://claimchat.example/webhooks/whatsapp"


@pytest.fixture
def store():
    return MemoryConversationStore()


@pytest.fixture
def limiter():
    return WindowRateLimiter(max_requests=60, window_seconds=60.0, clock=lambda: 1_000_035.0)


@pytest.fixture
def client(monkeypatch, store, limiter):
    use_case = HandleIncomingMessageUseCase(store, make_deps())
    monkeypatch.setattr("claimchat.api.webhooks.get_handle_incoming_message_use_case", lambda: use_case)
    monkeypatch.setattr("claimchat.api.webhooks.get_rate_limiter", lambda: limiter)
    monkeypatch.setattr(
        "claimchat.api.outbox.get_drain_outbox_use_case",
        lambda: DrainOutboxUseCase(store, LoggingEventPublisher()),
    )
    monkeypatch.setattr(settings, "ENV", "test")
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", None)
    monkeypatch.setattr(settings, "WEBHOOK_PUBLIC_URL", None)
    monkeypatch.setattr(settings, "INTERNAL_API_TOKEN", None)
    return TestClient(app)


def _form(body: str = "hi", sid: str = "SM-1") -> dict[str, str]:
    return {"MessageSid": sid, "From": f"whatsapp:{IDENTITY}", "Body": body, "NumMedia": "0"}


def test_form_post_returns_twiml_reply(client, store):
    response = client.post("/webhooks/whatsapp", data=_form())

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert response.text.startswith('<?xml version="1.0" encoding="UTF-8"?><Response><Message>')
    assert "Welcome to RailRepay!" in response.text
    assert store.get(IDENTITY).state == FSMState.AWAITING_TERMS


def test_json_post_is_accepted(client, store):
    response = client.post("/webhooks/whatsapp", json=_form())

    assert response.status_code == 200
    assert store.get(IDENTITY).state == FSMState.AWAITING_TERMS


def test_correlation_id_is_echoed_and_propagated(client, store):
    response = client.post("/webhooks/whatsapp", data=_form(), headers={"X-Correlation-ID": "corr-abc"})

    assert response.headers["X-Correlation-ID"] == "corr-abc"
    [event] = store.all_events()
    assert event.payload["correlation_id"] == "corr-abc"


def test_correlation_id_is_generated_when_absent(client):
    response = client.post("/webhooks/whatsapp", data=_form())

    assert response.headers["X-Correlation-ID"]


def test_non_ascii_correlation_id_is_replaced(client, store):
    response = client.post(
        "/webhooks/whatsapp", data=_form(), headers={"X-Correlation-ID": "caf\xe9".encode("latin-1")}
    )

    assert response.status_code == 200
    echoed = response.headers["X-Correlation-ID"]
    assert str(uuid.UUID(echoed)) == echoed
    [event] = store.all_events()
    assert event.payload["correlation_id"] == echoed


@pytest.mark.parametrize(
    "value, kept",
    [
        ("corr-abc", True),
        ("req.42:retry_1", True),
        ("caf\xe9", False),
        ("a" * 129, False),
        ("with space", False),
        ("line\nbreak", False),
        ("", False),
        (None, False),
    ],
)
def test_resolve_correlation_id(value, kept):
    resolved = resolve_correlation_id(value)

    if kept:
        assert resolved == value
    else:
        assert resolved != value
        uuid.UUID(resolved)


def test_duplicate_delivery_returns_empty_response(client, store):
    client.post("/webhooks/whatsapp", data=_form(sid="SM-dup"))

    response = client.post("/webhooks/whatsapp", data=_form(sid="SM-dup"))

    assert response.status_code == 200
    assert "<Message>" not in response.text
    assert len(store.all_events()) == 1


def test_missing_fields_is_bad_request(client):
    response = client.post("/webhooks/whatsapp", data={"Body": "hi"})

    assert response.status_code == 400


def test_malformed_json_is_bad_request(client):
    response = client.post(
        "/webhooks/whatsapp", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400


def test_bad_signature_is_forbidden(client, monkeypatch):
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setattr(settings, "WEBHOOK_PUBLIC_URL", PUBLIC_URL)

    response = client.post("/webhooks/whatsapp", data=_form(), headers={"X-Twilio-Signature": "bogus"})

    assert response.status_code == 403


def test_missing_signature_outside_dev_is_forbidden(client, monkeypatch):
    monkeypatch.setattr(settings, "ENV", "production")

    response = client.post("/webhooks/whatsapp", data=_form())

    assert response.status_code == 403


def test_valid_signature_is_accepted(client, monkeypatch):
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setattr(settings, "WEBHOOK_PUBLIC_URL", PUBLIC_URL)
    form = _form()
    signature = compute_twilio_signature(PUBLIC_URL, form, "secret")

    response = client.post("/webhooks/whatsapp", data=form, headers={"X-Twilio-Signature": signature})

    assert response.status_code == 200


def test_reply_text_is_xml_escaped(client, store):
    store.set(IDENTITY, FSMState.AWAITING_JOURNEY_STATIONS, {"journeyId": "j-1", "travelDate": "2024-11-19"})

    response = client.post("/webhooks/whatsapp", data=_form(body="Paddington to <Nowhere>"))

    assert "&lt;Nowhere&gt;" in response.text
    assert "<Nowhere>" not in response.text


def test_drain_endpoint_publishes_pending_events(client, store):
    client.post("/webhooks/whatsapp", data=_form())

    first = client.post("/internal/outbox/drain")
    second = client.post("/internal/outbox/drain")

    assert first.json() == {"published": 1, "failed": 0}
    assert second.json() == {"published": 0, "failed": 0}
    assert store.get_unpublished() == []


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert isinstance(response.json()["circuits"], dict)


def test_sender_over_rate_limit_gets_429_with_retry_after(client, limiter, store):
    limiter.max_requests = 2
    for sid in ("SM-r1", "SM-r2"):
        assert client.post("/webhooks/whatsapp", data=_form(sid=sid)).status_code == 200

    response = client.post("/webhooks/whatsapp", data=_form(sid="SM-r3"))

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "45"
    assert store.has_processed("SM-r3") is False

    other = {**_form(sid="SM-r4"), "From": "whatsapp:+447700900999"}
    assert client.post("/webhooks/whatsapp", data=other).status_code == 200


def test_drain_requires_internal_token_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "INTERNAL_API_TOKEN", "s3cret")

    assert client.post("/internal/outbox/drain").status_code == 401
    assert client.post("/internal/outbox/drain", headers={"X-Internal-Token": "wrong"}).status_code == 401
    response = client.post("/internal/outbox/drain", headers={"X-Internal-Token": "s3cret"})
    assert response.status_code == 200


def test_drain_is_closed_outside_dev_without_token(client, monkeypatch):
    monkeypatch.setattr(settings, "ENV", "production")

    assert client.post("/internal/outbox/drain").status_code == 403


@pytest.fixture
def notifications(client):
    users = MemoryUserDirectory()
    messenger = LoggingMessenger()
    use_case = NotifyEvaluationCompletedUseCase(users, messenger, MemoryConversationStore())
    app.dependency_overrides[get_notify_evaluation_use_case] = lambda: use_case
    yield users, messenger
    app.dependency_overrides.pop(get_notify_evaluation_use_case, None)


def test_evaluation_completed_endpoint_notifies_user(client, notifications):
    users, messenger = notifications
    user = users.create(IDENTITY)
    payload = {
        "journey_id": "j-1",
        "user_id": user.id,
        "eligible": True,
        "scheme": "DR15",
        "compensation_pence": 1250,
        "delay_minutes": 32,
        "correlation_id": "eval-1",
    }

    first = client.post("/internal/events/evaluation-completed", json=payload)
    second = client.post("/internal/events/evaluation-completed", json=payload)

    assert first.json() == {"status": "sent"}
    assert second.json() == {"status": "duplicate"}
    [(phone, body)] = messenger.sent
    assert phone == IDENTITY
    assert "£12.50" in body


def test_evaluation_completed_endpoint_rejects_incomplete_payload(client, notifications):
    response = client.post(
        "/internal/events/evaluation-completed",
        json={"journey_id": "j-1", "user_id": "u-1", "eligible": True},
    )

    assert response.status_code == 422


def test_inbound_dto_maps_twilio_fields_and_ignores_the_rest():
    event = InboundMessageDTO.model_validate(
        {
            "MessageSid": "SM-9",
            "From": "whatsapp:+447700900123",
            "Body": "",
            "NumMedia": "1",
            "MediaUrl0": "https://api.twilio.com/media/ME1",
            "ProfileName": "Sam",
        }
    )
    message = event.to_message()

    assert message.identity == "+447700900123"
    assert message.platform == "whatsapp"
    assert message.media_url == "https://api.twilio.com/media/ME1"
