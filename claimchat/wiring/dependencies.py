from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from claimchat.core.config import settings
from claimchat.application.handlers.base import HandlerDeps
from claimchat.application.ports.conversation_store import ConversationStorePort
from claimchat.application.ports.eligibility import EligibilityPort, TrackingPort
from claimchat.application.ports.route_lookup import RouteLookupPort
from claimchat.application.ports.station_lookup import StationLookupPort
from claimchat.application.ports.event_publisher import EventPublisherPort
from claimchat.application.ports.messaging import MessagingPort
from claimchat.application.ports.user_directory import UserDirectoryPort
from claimchat.application.ports.verification import VerificationPort
from claimchat.application.use_cases.drain_outbox import DrainOutboxUseCase
from claimchat.application.use_cases.handle_incoming_message import HandleIncomingMessageUseCase
from claimchat.application.use_cases.notify_evaluation import NotifyEvaluationCompletedUseCase
from claimchat.infrastructure.events.logging_publisher import LoggingEventPublisher
from claimchat.infrastructure.http.circuit_breaker import CircuitBreakerRegistry
from claimchat.infrastructure.http.rate_limiter import WindowRateLimiter
from claimchat.infrastructure.http.resilient_client import ResilientClient, RetryPolicy
from claimchat.infrastructure.services.eligibility_client import DelayTrackerClient, EligibilityEngineClient
from claimchat.infrastructure.services.journey_matcher_client import JourneyMatcherClient
from claimchat.infrastructure.services.mock_eligibility import MockEligibility, MockTracking
from claimchat.infrastructure.services.mock_journey_matcher import MockJourneyMatcher
from claimchat.infrastructure.services.mock_stations import MockStationLookup
from claimchat.infrastructure.services.station_client import TimetableStationLookup
from claimchat.infrastructure.store.json_store import JsonConversationStore
from claimchat.infrastructure.store.memory_store import MemoryConversationStore
from claimchat.infrastructure.users.json_directory import JsonUserDirectory
from claimchat.infrastructure.users.memory_directory import MemoryUserDirectory
from claimchat.infrastructure.users.mock_verification import MockVerification
from claimchat.infrastructure.users.twilio_verification import TwilioVerifyClient
from claimchat.infrastructure.whatsapp.logging_messenger import LoggingMessenger
from claimchat.infrastructure.whatsapp.twilio_messaging import TwilioMessagingClient


logger = logging.getLogger(__name__)

_conversation_store: ConversationStorePort | None = None


def _is_dev() -> bool:
    return settings.ENV.lower() in {"dev", "local", "test"}


def get_conversation_store() -> ConversationStorePort:
    global _conversation_store
    if _conversation_store is None:
        if settings.STORE_PROVIDER.lower() == "json":
            _conversation_store = JsonConversationStore(settings.DATA_DIR)
        else:
            _conversation_store = MemoryConversationStore()
    return _conversation_store


@lru_cache
def get_breaker_registry() -> CircuitBreakerRegistry:
    return CircuitBreakerRegistry(
        threshold=settings.CIRCUIT_BREAKER_THRESHOLD,
        cooldown_seconds=settings.CIRCUIT_BREAKER_COOLDOWN_SECONDS,
    )


def _resilient_client(name: str, base_url: str) -> ResilientClient:
    return ResilientClient(
        name=name,
        base_url=base_url,
        breaker=get_breaker_registry().get(name),
        timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
        retry_policy=RetryPolicy(
            retries=settings.HTTP_RETRIES,
            base_delay_seconds=settings.HTTP_RETRY_BASE_DELAY_SECONDS,
        ),
    )


def _missing(setting: str) -> ValueError:
    return ValueError(f"{setting} is required outside dev/local.")


@lru_cache
def get_route_lookup() -> RouteLookupPort:
    if settings.JOURNEY_MATCHER_URL:
        return JourneyMatcherClient(_resilient_client("journey-matcher", settings.JOURNEY_MATCHER_URL))
    if _is_dev():
        logger.info("Using MockJourneyMatcher (JOURNEY_MATCHER_URL unset, ENV=dev/local)")
        return MockJourneyMatcher()
    raise _missing("JOURNEY_MATCHER_URL")


@lru_cache
def get_eligibility() -> EligibilityPort:
    if settings.ELIGIBILITY_ENGINE_URL:
        return EligibilityEngineClient(_resilient_client("eligibility-engine", settings.ELIGIBILITY_ENGINE_URL))
    if _is_dev():
        logger.info("Using MockEligibility (ELIGIBILITY_ENGINE_URL unset, ENV=dev/local)")
        return MockEligibility()
    raise _missing("ELIGIBILITY_ENGINE_URL")


@lru_cache
def get_tracking() -> TrackingPort:
    if settings.DELAY_TRACKER_URL:
        return DelayTrackerClient(_resilient_client("delay-tracker", settings.DELAY_TRACKER_URL))
    if _is_dev():
        logger.info("Using MockTracking (DELAY_TRACKER_URL unset, ENV=dev/local)")
        return MockTracking()
    raise _missing("DELAY_TRACKER_URL")


@lru_cache
def get_station_lookup() -> StationLookupPort:
    if settings.TIMETABLE_LOADER_URL:
        return TimetableStationLookup(settings.TIMETABLE_LOADER_URL)
    if _is_dev():
        logger.info("Using MockStationLookup (TIMETABLE_LOADER_URL unset, ENV=dev/local)")
        return MockStationLookup()
    raise _missing("TIMETABLE_LOADER_URL")


@lru_cache
def get_user_directory() -> UserDirectoryPort:
    if settings.STORE_PROVIDER.lower() == "json":
        return JsonUserDirectory(settings.USERS_DATA_DIR)
    return MemoryUserDirectory()


@lru_cache
def get_verification() -> VerificationPort:
    if settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_VERIFY_SERVICE_SID:
        return TwilioVerifyClient(
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            settings.TWILIO_VERIFY_SERVICE_SID,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    if _is_dev():
        logger.info("Using MockVerification (Twilio Verify not configured, ENV=dev/local)")
        return MockVerification()
    raise _missing("TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_VERIFY_SERVICE_SID")


@lru_cache
def get_messenger() -> MessagingPort:
    if settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_WHATSAPP_NUMBER:
        return TwilioMessagingClient(
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            settings.TWILIO_WHATSAPP_NUMBER,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    if _is_dev():
        logger.info("Using LoggingMessenger (Twilio messaging not configured, ENV=dev/local)")
        return LoggingMessenger()
    raise _missing("TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_WHATSAPP_NUMBER")


@lru_cache
def get_rate_limiter() -> WindowRateLimiter:
    return WindowRateLimiter(max_requests=settings.RATE_LIMIT_PER_MINUTE, window_seconds=60.0)


@lru_cache
def get_event_publisher() -> EventPublisherPort:
    return LoggingEventPublisher()


def get_handler_deps() -> HandlerDeps:
    return HandlerDeps(
        route_lookup=get_route_lookup(),
        stations=get_station_lookup(),
        eligibility=get_eligibility(),
        tracking=get_tracking(),
        users=get_user_directory(),
        verification=get_verification(),
        timezone=ZoneInfo(settings.TIMEZONE),
        terms_url=settings.TERMS_URL,
        max_claim_age_days=settings.MAX_CLAIM_AGE_DAYS,
        otp_max_attempts=settings.OTP_MAX_ATTEMPTS,
    )


def get_handle_incoming_message_use_case() -> HandleIncomingMessageUseCase:
    return HandleIncomingMessageUseCase(store=get_conversation_store(), deps=get_handler_deps())


def get_drain_outbox_use_case() -> DrainOutboxUseCase:
    return DrainOutboxUseCase(outbox=get_conversation_store(), publisher=get_event_publisher())


def get_notify_evaluation_use_case() -> NotifyEvaluationCompletedUseCase:
    return NotifyEvaluationCompletedUseCase(
        users=get_user_directory(), messenger=get_messenger(), processed=get_conversation_store()
    )


def reset_dependencies() -> None:
    """Drop cached singletons so the next call rebuilds them from current settings."""
    global _conversation_store
    _conversation_store = None
    for factory in (
        get_breaker_registry,
        get_route_lookup,
        get_eligibility,
        get_tracking,
        get_station_lookup,
        get_user_directory,
        get_verification,
        get_messenger,
        get_rate_limiter,
        get_event_publisher,
    ):
        factory.cache_clear()
