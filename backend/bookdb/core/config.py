"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]

DEFAULT_JWT_SECRET = "change-me-to-a-long-random-secret-value"
MIN_JWT_SECRET_LENGTH = 32


class Settings(BaseSettings):
    APP_NAME: str = "BookDb"
    ENV: str = "development"

    DATABASE_URL: str = "postgresql+psycopg://postgres@localhost:5432/bookdb"

    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_ISSUER: str = "BookDb"
    JWT_AUDIENCE: str = "BookDbUsers"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_TOKEN_BYTES: int = 64
    COOKIE_NAME: str = "token"
    REFRESH_COOKIE_NAME: str = "refreshToken"
    LOG_LEVEL: str = "INFO"

    REFRESH_TOKEN_CLEANUP_ENABLED: bool = True
    REFRESH_TOKEN_CLEANUP_INTERVAL_SECONDS: int = 6 * 60 * 60
    REFRESH_TOKEN_CLEANUP_STARTUP_DELAY_SECONDS: int = 30

    CORS_ORIGINS: str = "http://localhost:3000"
    ALLOWED_HOSTS: str = "*"
    TRUSTED_PROXIES: str = ""

    model_config = SettingsConfigDict(env_file=str(BASE_DIR / ".env"), env_file_encoding="utf-8", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def allowed_hosts(self) -> list[str]:
        return [host.strip() for host in self.ALLOWED_HOSTS.split(",") if host.strip()] or ["*"]

    @property
    def trusted_proxies(self) -> set[str]:
        return {proxy.strip() for proxy in self.TRUSTED_PROXIES.split(",") if proxy.strip()}

    @property
    def is_production(self) -> bool:
        return self.ENV.strip().lower() == "production"

    def validate_runtime_security(self) -> None:
        """Refuse to boot a production instance with a guessable signing secret."""
        if not self.is_production:
            return
        secret = self.JWT_SECRET.strip()
        if not secret or secret == DEFAULT_JWT_SECRET:
            raise RuntimeError("JWT_SECRET must be set in production")
        if len(secret) < MIN_JWT_SECRET_LENGTH:
            raise RuntimeError(f"JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters in production")
        if self.ACCESS_TOKEN_EXPIRE_MINUTES <= 0 or self.REFRESH_TOKEN_EXPIRE_DAYS <= 0:
            raise RuntimeError("Token lifetimes must be positive")


settings = Settings()
