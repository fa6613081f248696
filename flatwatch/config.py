from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Runtime ---
    ENV: str = "dev"  # dev|prod
    LOG_LEVEL: str = "INFO"
    FLATWATCH_DB_URL: str = "sqlite+aiosqlite:///./flatwatch.db"

    # --- Minimal operator auth (API key) ---
    # Send: X-API-Key: <key>
    API_KEY: str | None = None

    # --- Poll loop ---
    POLL_INTERVAL_SECONDS: int = 300
    INITIAL_ACTION_MODE: str = "off"  # off|preview|on
    CONTACT_ENABLED: bool = True

    # --- Source pacing (be polite) ---
    RATE_LIMIT_MAX_PER_MINUTE: int = 10
    RATE_LIMIT_MIN_DELAY_S: float = 2.0
    RATE_LIMIT_MAX_DELAY_S: float = 8.0

    # --- Quiet hours (no cycle work inside [start, end)) ---
    QUIET_HOURS_ENABLED: bool = False
    QUIET_HOURS_START: str = "22:00"
    QUIET_HOURS_END: str = "07:00"
    QUIET_HOURS_TZ: str = "Europe/Berlin"

    # --- Listing source (offline fixtures today; could be swapped later) ---
    SOURCE_FIXTURES_DIR: str = "data/listings"

    # --- Outbound HTTP (form submission) ---
    HTTP_TIMEOUT_S: float = 30.0
    HTTP_MAX_RETRIES: int = 2
    HTTP_BACKOFF_BASE_S: float = 0.5
    HTTP_CIRCUIT_FAIL_THRESHOLD: int = 5
    HTTP_CIRCUIT_RESET_S: float = 300.0
    HTTP_USER_AGENT: str = "flatwatch/1.0 (+local dev)"

    # --- Telegram (notifications + mode commands) ---
    TELEGRAM_ENABLED: bool = False
    TELEGRAM_BOT_TOKEN: str | None = None
    TELEGRAM_CHAT_ID: int | None = None
    TELEGRAM_API_BASE: str = "https://api.telegram.org"

    # --- Webhook notifier (optional) ---
    WEBHOOK_URL: str | None = None
    WEBHOOK_SECRET: str | None = None

    # --- OpenAI message enhancement (optional) ---
    OPENAI_ENABLED: bool = False
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"

    # --- Contact message ---
    MESSAGE_TEMPLATE_PATH: str | None = None
    SENDER_NAME: str = ""
    SENDER_EMAIL: str = ""
    SENDER_PHONE: str = ""


settings = Settings()
