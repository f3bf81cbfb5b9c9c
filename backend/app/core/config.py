from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # Database – SQLite for local development
    DATABASE_URL: str = "sqlite+aiosqlite:///./payroll.db"

    # Redis (Celery broker for the nightly time import)
    REDIS_URL: str = "redis://localhost:6379/0"
    TIMEZONE: str = "America/New_York"

    # Security
    SECRET_KEY: str = "dev_secret_key_change_in_production_min_32_chars!!"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # QuickBooks Online
    QUICKBOOKS_ENVIRONMENT: str = "sandbox"  # sandbox | production
    QUICKBOOKS_MINOR_VERSION: int = 70
    QUICKBOOKS_TIMEOUT_SECONDS: float = 30.0

    # Overtime rules
    OVERTIME_POLICY: str = "weekly"  # weekly | daily
    OVERTIME_WEEKLY_THRESHOLD: float = 40.0
    OVERTIME_DAILY_THRESHOLD: float = 8.0
    OVERTIME_MULTIPLIER: float = 1.5

    # Withholding (flat rates)
    FEDERAL_TAX_RATE: float = 0.15
    STATE_TAX_RATE: float = 0.05
    SOCIAL_SECURITY_RATE: float = 0.062
    MEDICARE_RATE: float = 0.0145

    DEFAULT_PAY_PERIOD_DAYS: int = 14

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def quickbooks_base_url(self) -> str:
        if self.QUICKBOOKS_ENVIRONMENT == "production":
            return "https://quickbooks.api.intuit.com"
        return "https://sandbox-quickbooks.api.intuit.com"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
