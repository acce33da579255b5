from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    APP_NAME: str = "von AI"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Database: overridden by DATABASE_URL env var in production (PostgreSQL)
    DATABASE_URL: str = f"sqlite:///{Path(__file__).resolve().parent.parent.parent / 'data' / 'vonai.db'}"

    # Admin session cookie
    SESSION_SECRET: str = "dev-secret-change-in-production"
    SESSION_MAX_AGE_SECONDS: int = 24 * 60 * 60  # 24 hours
    SESSION_COOKIE_SECURE: bool = False

    # Seed admin (only used when the admin_users table is empty)
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_EMAIL: str = ""

    # Passwords & reset tokens
    BCRYPT_ROUNDS: int = 12
    PASSWORD_MIN_LENGTH: int = 8
    RESET_TOKEN_TTL_MINUTES: int = 60

    # Public site URL, used for reset and unsubscribe links
    FRONTEND_URL: str = "http://localhost:5000"

    # SMTP (transactional + newsletter email)
    SMTP_SERVER: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    EMAIL_FROM_ADDRESS: str = "hello@vonai.com"
    EMAIL_FROM_NAME: str = "von AI"

    # Newsletter bulk send, paced for the provider's rate limit
    NEWSLETTER_BATCH_SIZE: int = 10
    NEWSLETTER_BATCH_DELAY_MS: int = 1000

    class Config:
        env_file = ".env"


settings = Settings()
