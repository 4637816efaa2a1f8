from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "Europe/London"

    STORE_PROVIDER: str = "memory"  # "memory" | "json"
    DATA_DIR: str = "./data/conversations"
    USERS_DATA_DIR: str = "./data/users"

    JOURNEY_MATCHER_URL: str | None = None
    ELIGIBILITY_ENGINE_URL: str | None = None
    DELAY_TRACKER_URL: str | None = None
    TIMETABLE_LOADER_URL: str | None = None

    HTTP_TIMEOUT_SECONDS: float = 15.0
    HTTP_RETRIES: int = 3
    HTTP_RETRY_BASE_DELAY_SECONDS: float = 1.0
    CIRCUIT_BREAKER_THRESHOLD: int = 5
    CIRCUIT_BREAKER_COOLDOWN_SECONDS: float = 30.0

    TWILIO_ACCOUNT_SID: str | None = None
    TWILIO_AUTH_TOKEN: str | None = None
    TWILIO_VERIFY_SERVICE_SID: str | None = None
    TWILIO_WHATSAPP_NUMBER: str | None = None  # E.164 sender, without the whatsapp: prefix
    WEBHOOK_PUBLIC_URL: str | None = None
    RATE_LIMIT_PER_MINUTE: int = 60
    INTERNAL_API_TOKEN: str | None = None

    TERMS_URL: str = "https://railrepay.co.uk/terms"
    MAX_CLAIM_AGE_DAYS: int = 90
    OTP_MAX_ATTEMPTS: int = 3


settings = Settings()
