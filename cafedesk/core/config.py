"""
Cafe Desk - Configuration
All settings are read from environment variables (or .env file).
"""
from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "cafedesk"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # ── JWT ──────────────────────────────────────────────────
    JWT_SECRET_KEY: str = "CHANGE_ME_IN_PRODUCTION"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 720

    # ── PostgreSQL ────────────────────────────────────────────
    POSTGRES_HOST: str = "cafe-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "cafe_db"
    POSTGRES_USER: str = "cafe_user"
    POSTGRES_PASSWORD: str = "cafe_pass"
    DATABASE_URL: str = ""

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── Redis (change feed, idempotency, rate limiting) ───────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    FEED_CHANNEL_PREFIX: str = "feed:"
    IDEMPOTENCY_KEY_TTL_SECONDS: int = 86400

    # ── Rate Limiting ─────────────────────────────────────────
    RATE_LIMIT_MAX_ATTEMPTS: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    # ── Append Retry (lost version race on a running order) ───
    APPEND_RETRY_ATTEMPTS: int = 4
    APPEND_RETRY_BASE_DELAY_MS: int = 20
    APPEND_RETRY_MAX_DELAY_MS: int = 250

    # ── Cafe ──────────────────────────────────────────────────
    CAFE_NAME: str = "Cafe Republic"
    CAFE_TAGLINE: str = "Where Every Sip Tells a Story"
    CAFE_ADDRESS: str = "123 Coffee Lane, Main Street, Mumbai, Maharashtra - 400001"
    CAFE_PHONE: str = "+91 98765 43210"
    CAFE_GSTIN: str = "27AXXXX1234X1ZX"
    CAFE_FSSAI: str = "11523026000XXX"
    DEFAULT_TOTAL_TABLES: int = 50
    DEFAULT_TABLE_CAPACITY: int = 4
    GST_RATE: Decimal = Decimal("0.05")
    PREP_TIME_MAX_MINUTES: int = 120
    NOTIFICATION_FEED_LIMIT: int = 20
    CAFE_TIMEZONE: str = "Asia/Kolkata"

    # ── Bootstrap super admin (created once if no admin exists) ──
    BOOTSTRAP_ADMIN_EMAIL: str = ""
    BOOTSTRAP_ADMIN_PASSWORD: str = ""
    BOOTSTRAP_ADMIN_NAME: str = "Owner"

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0
    SSE_KEEPALIVE_INTERVAL_SECONDS: int = 15
    SSE_RETRY_MILLISECONDS: int = 3000


@lru_cache()
def get_settings() -> Settings:
    return Settings()
