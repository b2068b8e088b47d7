from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="posapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Koperasi POS API"
    PROJECT_NAME: str = "Koperasi POS"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    AUTO_CREATE_TABLES: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./posapi.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    # Security
    SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 720
    BCRYPT_ROUNDS: int = 12

    # Timezone used for "this month" and daily report buckets
    TIMEZONE: str = "Asia/Jakarta"

    # Savings (simpanan) rules
    SAVINGS_POKOK_AMOUNT: int = 50000  # one-time principal deposit
    SAVINGS_WAJIB_AMOUNT: int = 10000  # monthly mandatory deposit

    # Atomic units
    TRANSACTION_MAX_RETRIES: int = 5

    # Checkout
    ENFORCE_STOCK_ON_CHECKOUT: bool = True
    LOW_STOCK_THRESHOLD: int = 5

    # Receipt header
    STORE_NAME: str = "TOKO RETAIL"
    STORE_ADDRESS: str = "Jl. Contoh No. 123"
    STORE_PHONE: str = "0812-3456-7890"

    # Telegram order notifications (best effort)
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_CHAT_ID: Optional[str] = None
    TELEGRAM_API_BASE: str = "https://api.telegram.org"
    TELEGRAM_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
