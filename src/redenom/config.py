"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class FeedSettings(BaseSettings):
    """Remote exchange-rate feed settings."""

    model_config = SettingsConfigDict(env_prefix="FEED_")

    url: str = (
        "https://script.google.com/macros/s/"
        "AKfycbza6AAxzPF_BGNP9K4T1saIAfjCGKW1E5rOJEeSDFRDrd549KGVPV42m1TVmnXvI-uhuw/exec"
    )
    timeout_seconds: float = 10.0
    cache_ttl_seconds: int = 3600  # rates younger than this are reused


class ConverterSettings(BaseSettings):
    """Converter and auxiliary tool parameters.

    All fields configurable via CONVERTER_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="CONVERTER_")

    history_limit: int = 50  # keep only the last N saved calculations
    default_denominations: list[Decimal] = [
        Decimal("500"),
        Decimal("1000"),
        Decimal("2000"),
        Decimal("5000"),
    ]


class StorageSettings(BaseSettings):
    """Where the application state blob is persisted."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    state_path: str = "data/state.json"


class ApiSettings(BaseSettings):
    """JSON API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "127.0.0.1"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json"
    feed: FeedSettings = FeedSettings()
    converter: ConverterSettings = ConverterSettings()
    storage: StorageSettings = StorageSettings()
    api: ApiSettings = ApiSettings()
