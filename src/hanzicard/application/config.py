from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from hanzicard.domain.constants import (
    ANTHROPIC_API_URL,
    ANTHROPIC_VERSION,
    CHARACTER_MAX_TOKENS,
    DEFAULT_MODEL,
    OCR_MAX_TOKENS,
    PHOTOS_DIR_NAME,
    REQUEST_TIMEOUT,
    STORE_FILE_NAME,
    WORD_MAX_TOKENS,
)

CONFIG_FILE = Path.home() / ".config/hanzicard/config.toml"


def default_data_dir() -> Path:
    return Path.home() / ".local/share/hanzicard"


class AppConfig(BaseSettings):
    """
    Configuration model for hanzicard.
    Supports loading from:
    1. Environment variables (HANZICARD_*)
    2. Config file (~/.config/hanzicard/config.toml)
    3. Manual overrides (CLI / server)
    """

    model_config = SettingsConfigDict(env_prefix="HANZICARD_", extra="ignore")

    # Remote model
    anthropic_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices(
            "anthropic_api_key", "HANZICARD_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"
        ),
    )
    anthropic_api_url: str = ANTHROPIC_API_URL
    anthropic_version: str = ANTHROPIC_VERSION
    model: str = DEFAULT_MODEL
    character_max_tokens: int = CHARACTER_MAX_TOKENS
    word_max_tokens: int = WORD_MAX_TOKENS
    ocr_max_tokens: int = OCR_MAX_TOKENS
    request_timeout: float = REQUEST_TIMEOUT

    # Paths
    data_dir: Path = Field(default_factory=default_data_dir)
    dictionary_path: Path | None = None

    # Scheduling: calendar days are counted in this zone
    timezone: str = "UTC"

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

        # Overrides win over env, env wins over the file.
        if CONFIG_FILE.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=CONFIG_FILE),
            )
        return (init_settings, env_settings)

    @field_validator("data_dir", "dictionary_path", mode="before")
    @classmethod
    def expand_path(cls, v: Any, info: ValidationInfo) -> Path | None:
        if v is None or v == "":
            # An empty data_dir falls back to the default location.
            if info.field_name == "data_dir":
                return default_data_dir()
            return None
        return Path(v).expanduser().resolve()

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def store_path(self) -> Path:
        return self.data_dir / STORE_FILE_NAME

    @property
    def photos_dir(self) -> Path:
        return self.data_dir / PHOTOS_DIR_NAME


def resolve_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/hanzicard/config.toml (if exists)
    3. Environment variables (HANZICARD_*)
    4. overrides (passed from Typer or the server), None values dropped
    """
    clean = {k: v for k, v in (overrides or {}).items() if v is not None}
    return AppConfig(**clean)
