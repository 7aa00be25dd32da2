from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    BUSINESS_TIMEZONE: str = "America/Sao_Paulo"

    SLOT_STEP_MINUTES: int = 30

    STORE_PROVIDER: str = "memory"  # "memory" | "json"
    STORE_DATA_DIR: str = "./data/appointments"
    PROVIDER_DIRECTORY_FILE: str = "./data/providers.json"

    OPTIMIZER_ENABLED: bool = True
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL_SCORING: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE_SCORING: float = 0.0

    NOTIFICATION_WEBHOOK_URL: str | None = None
    BALANCE_SYNC_URL: str | None = None
    EVENT_WORKERS: int = 4


settings = Settings()
