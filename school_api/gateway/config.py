"""Gateway Configuration - replica pools and timeouts via pydantic-settings.

Invariants:
    - Every variable carries the GATEWAY_ prefix
    - Replica lists are JSON arrays of base URLs, e.g. '["http://reader-1:8080"]'
    - get_gateway_settings() is cached (lru_cache)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from school_api.core.domain_types import ServiceType


class GatewaySettings(BaseSettings):
    """Gateway settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_", env_file=".env", case_sensitive=False, extra="ignore",
    )

    default_replicas: list[str] = Field(default=["http://school-api:8080"])
    reader_replicas: list[str] = Field(default=["http://school-api-reader:8080"])
    writer_replicas: list[str] = Field(default=["http://school-api-writer:8080"])
    upstream_timeout_seconds: float = Field(default=30.0, gt=0)

    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("default_replicas", "reader_replicas", "writer_replicas")
    @classmethod
    def strip_trailing_slash(cls, v: list[str]) -> list[str]:
        return [url.rstrip("/") for url in v if url.strip()]

    def replicas_for(self, pool: ServiceType) -> list[str]:
        return {
            ServiceType.DEFAULT: self.default_replicas,
            ServiceType.READER: self.reader_replicas,
            ServiceType.WRITER: self.writer_replicas,
        }[pool]


@lru_cache
def get_gateway_settings() -> GatewaySettings:
    return GatewaySettings()
