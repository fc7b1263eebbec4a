"""Configuration for connecting to a Cryptol server."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Cryptol client settings.

    All settings can be configured via environment variables with the prefix CRYPTOL_.
    For example, CRYPTOL_SERVER_URL=http://localhost:8080/ selects the server and
    CRYPTOL_REQUEST_TIMEOUT=30 shortens the per-request timeout.
    """

    model_config = SettingsConfigDict(
        env_prefix="CRYPTOL_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # Endpoint; server_url wins over the individual parts when set
    server_url: str | None = None
    scheme: Literal["http", "https"] = "http"
    host: str = "localhost"
    port: int = Field(default=8080, ge=1, le=65535)
    path: str = Field(default="/", validation_alias="CRYPTOL_PATH_PREFIX")

    # Requests
    request_timeout: float = Field(default=60.0 * 60.0, gt=0)
    headers: dict[str, str] = Field(default_factory=lambda: {"Connection": "keep-alive"})

    # Session
    max_occupancy: int | None = Field(default=None, ge=1)
    load_prelude: bool = True

    @field_validator("path")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        return value if value.startswith("/") else f"/{value}"

    @property
    def endpoint(self) -> str:
        """The URL requests are posted to."""
        if self.server_url:
            return self.server_url
        return f"{self.scheme}://{self.host}:{self.port}{self.path}"
