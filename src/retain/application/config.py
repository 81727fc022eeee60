from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from retain.domain.constants import (
    CACHE_MAX_ENTRIES,
    CACHE_TTL_SECONDS,
    DEFAULT_MAX_CARDS,
    DEFAULT_REFERENCE_RESPONSE_MS,
    DUE_FRACTION,
    NEW_FRACTION,
    STORE_TIMEOUT,
)


class EngineConfig(BaseSettings):
    """
    Configuration model for the scheduling engine.
    Supports loading from:
    1. Environment variables (RETAIN_*)
    2. Config file (~/.config/retain/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="RETAIN_",
        extra="ignore",
    )

    # Session composition
    default_max_cards: int = Field(default=DEFAULT_MAX_CARDS, ge=0)
    due_fraction: float = DUE_FRACTION
    new_fraction: float = NEW_FRACTION

    # Response time reference (ms) per difficulty label
    reference_response_ms: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_REFERENCE_RESPONSE_MS)
    )

    # Result cache
    cache_enabled: bool = True
    cache_ttl_seconds: float = CACHE_TTL_SECONDS
    cache_max_entries: int = Field(default=CACHE_MAX_ENTRIES, ge=1)

    # Store
    store_path: Path = Field(default_factory=lambda: Path.home() / ".config/retain/cards.yaml")
    store_timeout: float = STORE_TIMEOUT

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

        # Resolved at call time so a patched HOME is honoured.
        toml_file = Path.home() / ".config/retain/config.toml"

        if toml_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("due_fraction", "new_fraction")
    @classmethod
    def check_fraction(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"fraction must be within [0, 1], got {v}")
        return v

    @field_validator("cache_ttl_seconds", "store_timeout")
    @classmethod
    def check_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"must be positive, got {v}")
        return v

    @field_validator("store_path", mode="before")
    @classmethod
    def resolve_store_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @model_validator(mode="after")
    def check_fraction_total(self) -> "EngineConfig":
        if self.due_fraction + self.new_fraction > 1.0:
            raise ValueError(
                "due_fraction + new_fraction must not exceed 1, "
                f"got {self.due_fraction} + {self.new_fraction}"
            )
        return self


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> EngineConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in EngineConfig
    2. ~/.config/retain/config.toml (if exists)
    3. Environment variables (RETAIN_*)
    4. cli_overrides (passed from Typer)
    """
    # Typer passes None for options the user did not set.
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return EngineConfig(**overrides)
