"""
MODULE OVERVIEW:
Application-wide configuration using Pydantic Settings.

WHAT IS HAPPENING HERE:
Every tunable of the checkout backend is declared once here: the scale hysteresis,
the checkout visibility floor, stream heartbeats and the mail provider. Values can be
overridden through environment variables or a `.env` file next to the process.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Tolerate unrelated env vars so the server starts out-of-the-box
        extra="ignore",
    )

    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # Catalog policy
    WEIGHT_THRESHOLD_G: float = 5.0
    MIN_VISIBLE_WEIGHT_G: float = 2.0
    REJECT_NEGATIVE_VALUES: bool = True

    # Live streams
    SSE_HEARTBEAT_INTERVAL_S: float = 15.0
    WS_HEARTBEAT_INTERVAL_S: float = 30.0
    SUBSCRIBER_QUEUE_MAXSIZE: int = 32

    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # Receipts
    ADMIN_EMAIL: str | None = None
    EMAIL_API_URL: str | None = None
    EMAIL_API_KEY: str | None = None
    EMAIL_HTTP_TIMEOUT_S: float = 10.0
    RECEIPT_SUBJECT: str = "Your Autonomous Checkout Receipt"
    CURRENCY_SYMBOL: str = "₹"
    PAYMENT_SUCCESS_URL: str = "/payment_success.html"


settings = Settings()
