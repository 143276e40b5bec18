from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from flashreview.domain.constants import (
    DEFAULT_SESSION_LIMIT,
    SESSION_TTL_SECONDS,
    STRUGGLING_CONSECUTIVE_FAILURES,
    STRUGGLING_FAILURE_RATIO,
    STRUGGLING_MIN_ATTEMPTS,
    STRUGGLING_RECOVERY_STREAK,
)


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/flashreview/config.toml",
        Path.home() / ".flashreview.toml",
    ]


def default_database_url() -> str:
    path = Path.home() / ".local/share/flashreview/reviews.db"
    return f"sqlite+aiosqlite:///{path}"


class AppConfig(BaseSettings):
    """
    Configuration model for flashreview.
    Supports loading from:
    1. Environment variables (FLASHREVIEW_*)
    2. Config file (~/.config/flashreview/config.toml or ~/.flashreview.toml)
    3. Manual overrides (CLI / API)
    """

    model_config = SettingsConfigDict(
        env_prefix="FLASHREVIEW_",
        extra="ignore",
    )

    # Storage
    database_url: str = Field(default_factory=default_database_url)
    database_echo: bool = False

    # Sessions
    default_session_limit: int | None = Field(default=DEFAULT_SESSION_LIMIT, ge=1)
    session_ttl_seconds: int = Field(default=SESSION_TTL_SECONDS, ge=1)

    # Struggling policy
    struggling_consecutive_failures: int = Field(default=STRUGGLING_CONSECUTIVE_FAILURES, ge=1)
    struggling_min_attempts: int = Field(default=STRUGGLING_MIN_ATTEMPTS, ge=1)
    struggling_failure_ratio: float = Field(default=STRUGGLING_FAILURE_RATIO, ge=0.0, lt=1.0)
    struggling_recovery_streak: int = Field(default=STRUGGLING_RECOVERY_STREAK, ge=1)

    # Server
    host: str = "127.0.0.1"
    port: int = 8777

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("default_session_limit", mode="before")
    @classmethod
    def parse_unbounded_limit(cls, v: Any) -> Any:
        # "0" / "none" in env or TOML mean no cap
        if v in (0, "0", "", "none", "None"):
            return None
        return v


def resolve_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/flashreview/config.toml (if exists)
    3. Environment variables (FLASHREVIEW_*)
    4. overrides (passed from Typer or the server), None values ignored
    """
    cleaned = {k: v for k, v in (overrides or {}).items() if v is not None}
    return AppConfig(**cleaned)
