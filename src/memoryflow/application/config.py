from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from memoryflow.domain.constants import DEFAULT_HORIZON_DAYS, LATE_NIGHT_CUTOFF_HOUR


def config_files() -> list[Path]:
    """Candidate config locations, most specific first."""
    return [
        Path.home() / ".config/memoryflow/config.toml",
        Path.home() / ".memoryflow.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for memoryflow.
    Supports loading from:
    1. Environment variables (MEMORYFLOW_*)
    2. Config file (~/.config/memoryflow/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MEMORYFLOW_",
        extra="ignore",
    )

    # Paths
    data_file: Path = Field(
        default_factory=lambda: Path.home() / ".config/memoryflow/data.json"
    )

    # Scheduling
    late_night_cutoff_hour: int = Field(default=LATE_NIGHT_CUTOFF_HOUR, ge=0, le=23)
    horizon_days: int = Field(default=DEFAULT_HORIZON_DAYS, ge=0)

    # 0 warnings only, 1 info, 2+ debug
    verbose: int = Field(default=0, ge=0)

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
        toml_file = None
        for f in config_files():
            if f.exists():
                toml_file = f
                break

        # Earlier sources take priority: CLI overrides, then env, then file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_file", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/memoryflow/config.toml (if exists)
    3. Environment variables (MEMORYFLOW_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
