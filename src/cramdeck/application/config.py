from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cramdeck.domain.constants import (
    BOOKMARKS_STORAGE_KEY,
    HISTORY_LIMIT,
    REVIEW_STORAGE_KEY,
    STATS_STORAGE_KEY,
)


class AppConfig(BaseSettings):
    """
    Configuration model for cramdeck.
    Supports loading from:
    1. Environment variables (CRAMDECK_*)
    2. Config file (~/.config/cramdeck/config.toml)
    3. Manual overrides (CLI / server requests)
    """

    model_config = SettingsConfigDict(
        env_prefix="CRAMDECK_",
        extra="ignore",
        validate_default=True,
    )

    # Storage
    backend: Literal["file", "sqlite", "memory"] = "file"
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".config/cramdeck/data")
    review_key: str = REVIEW_STORAGE_KEY
    stats_key: str = STATS_STORAGE_KEY
    bookmarks_key: str = BOOKMARKS_STORAGE_KEY
    scope: str | None = None

    # Scheduler
    history_limit: int = Field(default=HISTORY_LIMIT, ge=1)

    # Logging
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/cramdeck/logs")
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

        # Overrides win over env, env wins over the file
        toml_file = next((f for f in _config_files() if f.exists()), None)
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()


def _config_files() -> list[Path]:
    return [
        Path.home() / ".config/cramdeck/config.toml",
        Path.home() / ".cramdeck.toml",
    ]


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/cramdeck/config.toml (if exists)
    3. Environment variables (CRAMDECK_*)
    4. cli_overrides (None values are ignored)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
