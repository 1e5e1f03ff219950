from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Hotel Booking Core"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v

    # Booking numbers are YYYYMMDD-XXXXXXXX; retry this many times on a collision
    BOOKING_NUMBER_ATTEMPTS: int = 10
    INVOICE_PREFIX: str = "INV-"

    # When False the lifecycle service skips guest notifications entirely
    NOTIFICATIONS_ENABLED: bool = True


settings = Settings()
