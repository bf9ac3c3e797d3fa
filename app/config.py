"""
Application settings, loaded from environment variables and .env.

Names are case-insensitive: DATABASE_HOSTNAME and database_hostname both work.
Fields without a default are required; startup fails if one is missing.
"""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Postgres, assembled into database_url
    database_hostname: str
    database_port: str = "5432"
    database_username: str
    database_password: str
    database_name: str

    # Tokens
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7

    # Outgoing mail (verification codes)
    mail_username: str
    mail_password: str
    mail_from: str
    mail_server: str = "smtp.gmail.com"
    mail_port: int = 587
    mail_suppress_send: bool = False

    # Razorpay credentials and checkout redirects
    razorpay_key_id: str
    razorpay_key_secret: str
    payment_currency: str = "INR"
    checkout_base_url: str = "http://localhost:4200/checkout"
    payment_return_url: str = "http://localhost:4200/payments/success"
    payment_cancel_url: str = "http://localhost:4200/payments/cancel"

    # Verification codes
    otp_length: int = 6
    otp_expiry_minutes: int = 5
    otp_resend_cooldown_seconds: int = 60

    # Runtime
    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:4200"     # comma-separated
    rate_limit_enabled: bool = True
    course_cache_ttl_seconds: int = 300
    course_cache_max_entries: int = 512

    @property
    def database_url(self) -> str:
        return (
            f"postgresql://{self.database_username}:{self.database_password}"
            f"@{self.database_hostname}:{self.database_port}/{self.database_name}"
        )

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Reads the environment once; every later call returns the same object."""
    return Settings()


settings = get_settings()
