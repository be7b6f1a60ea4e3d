"""Server configuration via pydantic-settings."""

from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from spaserve.errors import ConfigError


class Settings(BaseSettings):
    # Empty variables fall back to the defaults below, same as unset ones
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # Listener
    PORT: int = Field(default=8080, ge=0)
    ADDRESS: str = "0.0.0.0"

    # Connection timeouts, in seconds (0 disables)
    READ_TIMEOUT_SECONDS: int = Field(default=5, ge=0)
    WRITE_TIMEOUT_SECONDS: int = Field(default=10, ge=0)
    IDLE_TIMEOUT_SECONDS: int = Field(default=120, ge=0)

    # Content-Security-Policy template; "" selects the built-in one, "false" disables it
    CSP_HEADER: str = ""

    # Rewritten into <base href="..."> of the index document
    BASE_HREF: str = "/"

    # Served verbatim at /config.json
    CONFIG_JSON: str = "{}"

    # Directory to serve instead of the packaged build
    ASSET_ROOT: str = ""

    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def bind_address(self) -> str:
        return f"{self.ADDRESS}:{self.PORT}"


def load_settings(env_file: Optional[str] = ".env", **overrides) -> Settings:
    """Build settings from the environment, raising ConfigError on malformed values.

    Keyword overrides take precedence over the environment (used by the CLI).
    """
    try:
        return Settings(_env_file=env_file, **overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e
