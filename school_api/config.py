"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - All connection strings come from environment variables (never hardcoded secrets)
    - get_settings() is cached (lru_cache): single instance per process
    - service_type is a ServiceType; an unknown SERVICE_TYPE fails at startup

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Per-profile URLs fall back to DATABASE_URL, so one variable is enough locally
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from school_api.core.domain_types import ServiceType
from school_api.core.language_strings import DEFAULT_LOCALE, Locale


def _normalize_postgres_url(v: str | None) -> str | None:
    """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
    if isinstance(v, str) and v.startswith("postgresql://"):
        return v.replace("postgresql://", "postgresql+asyncpg://", 1)
    return v


class Settings(BaseSettings):
    """Service instance settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    service_type: ServiceType = ServiceType.DEFAULT

    @field_validator("service_type", mode="before")
    @classmethod
    def parse_service_type(cls, v):
        return ServiceType.parse(v)

    # Database
    database_url: str = "postgresql+asyncpg://school:school@db:5432/school"
    reader_database_url: str | None = None
    writer_database_url: str | None = None

    @field_validator(
        "database_url", "reader_database_url", "writer_database_url", mode="before",
    )
    @classmethod
    def convert_postgres_url(cls, v):
        return _normalize_postgres_url(v)

    database_pool_size: int = 20
    database_max_overflow: int = 10
    auto_create_schema: bool = False

    # API
    cors_origins: list[str] = ["http://localhost:5173"]
    default_locale: Locale = DEFAULT_LOCALE

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def command_database_url(self) -> str:
        """Connection the command repository writes to."""
        if self.service_type == ServiceType.WRITER and self.writer_database_url:
            return self.writer_database_url
        return self.database_url

    @property
    def query_database_url(self) -> str:
        """Connection the query repository reads from.

        Writer instances read through their own connection (delete existence check).
        """
        if self.service_type == ServiceType.READER and self.reader_database_url:
            return self.reader_database_url
        if self.service_type == ServiceType.WRITER:
            return self.command_database_url
        return self.database_url


@lru_cache
def get_settings() -> Settings:
    return Settings()
