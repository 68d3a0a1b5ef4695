"""
Application configuration using Pydantic Settings
"""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # Database. DATABASE_URL wins when set, otherwise the URL is built from parts
    DATABASE_URL: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "savvy"
    DB_PASSWORD: str = ""
    DB_NAME: str = "savvy_tabungan"
    DB_SSL: bool = False

    # HTTP
    CORS_ORIGIN: str = "*"
    PORT: int = 3001
    DEBUG: bool = False

    # Web Push (VAPID)
    VAPID_PUBLIC_KEY: str = ""
    VAPID_PRIVATE_KEY: str = ""
    VAPID_SUBJECT: str = "mailto:admin@savvy.app"
    PUSH_CONCURRENCY: int = 32
    PUSH_TIMEOUT_SECONDS: float = 10.0
    PUSH_TTL_SECONDS: int = 86400

    # Live channel
    LIVE_CHANNEL_BUFFER: int = 64

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def get_sqlalchemy_url(self) -> str:
        """
        SQLAlchemy URL (postgresql+psycopg://) from DATABASE_URL or the DB_* parts
        """
        url = self.DATABASE_URL
        if url:
            if url.startswith("postgresql://"):
                return url.replace("postgresql://", "postgresql+psycopg://", 1)
            return url

        return URL.create(
            "postgresql+psycopg",
            username=self.DB_USER,
            password=self.DB_PASSWORD or None,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        ).render_as_string(hide_password=False)

    def get_connect_args(self) -> dict:
        """Driver arguments for the store connection (TLS toggle)."""
        if self.DB_SSL and self.get_sqlalchemy_url().startswith("postgresql"):
            return {"sslmode": "require"}
        return {}

    @property
    def cors_origins(self) -> list[str]:
        origins = [o.strip() for o in self.CORS_ORIGIN.split(",") if o.strip()]
        return origins or ["*"]

    @property
    def push_enabled(self) -> bool:
        return bool(self.VAPID_PUBLIC_KEY and self.VAPID_PRIVATE_KEY)


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance (singleton)
    """
    return Settings()
