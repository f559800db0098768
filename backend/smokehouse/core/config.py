from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = "Smokehouse API"
    app_version: str = "0.1.0"
    environment: str = "local"
    log_json: bool = False

    cors_origins: list[str] = ["http://localhost:8081"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    currency: str = "RUB"
    currency_symbol: str = "₽"
    # one tap on "+" in the product screen
    cart_default_increment_grams: int = 100
    # carts untouched this long are dropped from memory
    cart_idle_ttl_seconds: float | None = 86400

    catalog_path: str | None = None
    tips_path: str | None = None
    orders_cache_path: str | None = None

    telegram_bot_token: str | None = None
    telegram_chat_id: str | None = None
    telegram_timeout_seconds: float = 5.0

    smtp_enabled: bool = False
    smtp_host: str = "localhost"
    smtp_port: int = 1025
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = False
    smtp_from_email: str | None = None


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
