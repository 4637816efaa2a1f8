"""
Tests for adapter selection from settings.
"""

from __future__ import annotations

import pytest

from claimchat.core.config import settings
from claimchat.infrastructure.services.journey_matcher_client import JourneyMatcherClient
from claimchat.infrastructure.services.mock_journey_matcher import MockJourneyMatcher
from claimchat.infrastructure.store.json_store import JsonConversationStore
from claimchat.infrastructure.store.memory_store import MemoryConversationStore
from claimchat.infrastructure.users.json_directory import JsonUserDirectory
from claimchat.infrastructure.users.memory_directory import MemoryUserDirectory
from claimchat.infrastructure.users.mock_verification import MockVerification
from claimchat.infrastructure.users.twilio_verification import TwilioVerifyClient
from claimchat.infrastructure.whatsapp.logging_messenger import LoggingMessenger
from claimchat.infrastructure.whatsapp.twilio_messaging import TwilioMessagingClient
from claimchat.wiring import dependencies


@pytest.fixture(autouse=True)
def fresh_wiring(monkeypatch):
    for name in (
        "JOURNEY_MATCHER_URL",
        "ELIGIBILITY_ENGINE_URL",
        "DELAY_TRACKER_URL",
        "TIMETABLE_LOADER_URL",
        "TWILIO_ACCOUNT_SID",
        "TWILIO_AUTH_TOKEN",
        "TWILIO_VERIFY_SERVICE_SID",
        "TWILIO_WHATSAPP_NUMBER",
    ):
        monkeypatch.setattr(settings, name, None)
    monkeypatch.setattr(settings, "ENV", "test")
    monkeypatch.setattr(settings, "STORE_PROVIDER", "memory")
    dependencies.reset_dependencies()
    yield
    dependencies.reset_dependencies()


def test_dev_without_urls_uses_mocks():
    assert isinstance(dependencies.get_route_lookup(), MockJourneyMatcher)
    assert isinstance(dependencies.get_conversation_store(), MemoryConversationStore)


def test_configured_url_uses_real_client_with_shared_breaker(monkeypatch):
    monkeypatch.setattr(settings, "JOURNEY_MATCHER_URL", "http://journey-matcher")

    lookup = dependencies.get_route_lookup()

    assert isinstance(lookup, JourneyMatcherClient)
    assert "journey-matcher" in dependencies.get_breaker_registry().snapshot()


def test_production_without_url_fails_fast(monkeypatch):
    monkeypatch.setattr(settings, "ENV", "production")

    with pytest.raises(ValueError, match="JOURNEY_MATCHER_URL"):
        dependencies.get_route_lookup()


def test_json_store_provider(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "STORE_PROVIDER", "json")
    monkeypatch.setattr(settings, "DATA_DIR", str(tmp_path))

    assert isinstance(dependencies.get_conversation_store(), JsonConversationStore)


def test_use_case_shares_one_store():
    first = dependencies.get_handle_incoming_message_use_case()
    second = dependencies.get_handle_incoming_message_use_case()

    assert first._store is second._store


def test_json_provider_also_persists_users(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "STORE_PROVIDER", "json")
    monkeypatch.setattr(settings, "DATA_DIR", str(tmp_path / "conversations"))
    monkeypatch.setattr(settings, "USERS_DATA_DIR", str(tmp_path / "users"))

    user = dependencies.get_user_directory().create("+447700900123")
    dependencies.reset_dependencies()

    directory = dependencies.get_user_directory()
    assert isinstance(directory, JsonUserDirectory)
    assert directory.find_by_id(user.id) == user


def test_memory_provider_keeps_users_in_memory():
    assert isinstance(dependencies.get_user_directory(), MemoryUserDirectory)


def test_dev_without_twilio_uses_mock_verification_and_logging_messenger():
    assert isinstance(dependencies.get_verification(), MockVerification)
    assert isinstance(dependencies.get_messenger(), LoggingMessenger)


def test_configured_twilio_uses_real_clients(monkeypatch):
    monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "token")
    monkeypatch.setattr(settings, "TWILIO_VERIFY_SERVICE_SID", "VA456")
    monkeypatch.setattr(settings, "TWILIO_WHATSAPP_NUMBER", "+441234567890")

    assert isinstance(dependencies.get_verification(), TwilioVerifyClient)
    assert isinstance(dependencies.get_messenger(), TwilioMessagingClient)


def test_production_never_falls_back_to_mock_verification(monkeypatch):
    monkeypatch.setattr(settings, "ENV", "production")

    with pytest.raises(ValueError, match="TWILIO_VERIFY_SERVICE_SID"):
        dependencies.get_verification()
    with pytest.raises(ValueError, match="TWILIO_WHATSAPP_NUMBER"):
        dependencies.get_messenger()


def test_rate_limiter_uses_configured_quota(monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_PER_MINUTE", 5)

    assert dependencies.get_rate_limiter().max_requests == 5
