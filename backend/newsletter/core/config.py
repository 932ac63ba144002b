from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "newsletter-dispatch"
    version: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DATABASE_DSN: str = "sqlite:////tmp/newsletter.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Email delivery API (Postmark-compatible JSON endpoint)
    EMAIL_BASE_URL: str = "http://localhost:8025"
    EMAIL_SENDER: str = "newsletter@example.com"
    EMAIL_AUTHORIZATION_TOKEN: str = ""
    EMAIL_TIMEOUT_MILLISECONDS: int = 10000

    # Issue delivery dispatcher
    DISPATCHER_CONCURRENCY: int = 4
    DISPATCHER_IDLE_SECONDS: float = 10.0
    DISPATCHER_FAILURE_BACKOFF_SECONDS: float = 1.0
    # Upper bound on send attempts per arq cron run
    DISPATCHER_CRON_BATCH_SIZE: int = 100

    # Idempotency ledger retention
    IDEMPOTENCY_TTL_HOURS: int = 48

    @property
    def email_timeout_seconds(self) -> float:
        return self.EMAIL_TIMEOUT_MILLISECONDS / 1000


settings = Settings()
