"""Application configuration using Pydantic Settings."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

STORE_IDS: tuple[str, ...] = ("steam", "fanatical", "humblebundle", "greenmangaming", "loaded")


def settings_file_path() -> Path:
    """Location of the JSON settings file.

    ``DEALARR_SETTINGS_FILE`` wins; otherwise ``dealarr.json`` in the current
    working directory.
    """
    override = os.environ.get("DEALARR_SETTINGS_FILE")
    if override:
        return Path(override)
    return Path.cwd() / "dealarr.json"


def json_config_settings_source(
    settings: BaseSettings | None = None,
) -> dict[str, Any]:  # noqa: ANN001
    """Load settings from the JSON settings file.

    This source has lowest priority - env vars will override JSON values.

    Args:
        settings: The Settings class (not instance) being constructed.

    Returns:
        Dictionary with setting keys (lowercase) and values from JSON file.
        Empty when the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object
    """
    from dealarr.core.exceptions import ConfigError

    settings_file = settings_file_path()
    if not settings_file.exists():
        return {}

    try:
        with settings_file.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Invalid settings file {settings_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid settings file {settings_file}: expected a JSON object")

    # Convert keys to lowercase to match field names
    return {k.lower(): v for k, v in data.items()}


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from:
    1. JSON file (dealarr.json, or DEALARR_SETTINGS_FILE) - lowest priority
    2. .env file
    3. Environment variables - override JSON/.env
    4. Values passed to Settings() (CLI flags) - highest priority

    All settings are prefixed with DEALARR_ in the environment
    (e.g., DEALARR_PARALLELISM=4).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DEALARR_",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources - JSON file first, then env vars.

        Priority (lowest to highest):
        1. JSON file
        2. .env file
        3. Environment variables
        4. Init settings (values passed to Settings()) - highest priority
        """
        # pydantic-settings puts the first source on top, so the highest
        # priority comes first here.
        return (  # type: ignore[return-value]
            init_settings,
            env_settings,
            dotenv_settings,
            json_config_settings_source,
        )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level",
    )

    logs_dir: Path | None = Field(
        default=None,
        description="Directory for JSON log files (console only when unset)",
    )

    # Search
    default_target_price: float = Field(
        default=7.0,
        ge=0,
        description="Target price in USD used when a title has none",
    )

    parallelism: int = Field(
        default=10,
        ge=1,
        le=64,
        description="Number of titles looked up concurrently",
    )

    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds for every storefront request",
    )

    hits_per_page: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of search hits requested from Algolia-backed stores",
    )

    enabled_stores: list[str] = Field(
        default_factory=lambda: list(STORE_IDS),
        description="Storefronts to query, in report order (steam is always queried)",
    )

    user_agent: str = Field(
        default="Dealarr/0.1",
        description="User-Agent header sent to storefronts",
    )

    # Storefront keys (public, anonymous search keys)
    fanatical_anon_id: str = Field(
        default="deadbeef-8888-8888-8888-deadbeef88",
        description="Anonymous id sent when bootstrapping the Fanatical search key",
    )

    humblebundle_api_key: str = Field(
        default="5229f8b3dec4b8ad265ad17ead42cb7f",
        description="Public Algolia search key embedded in humblebundle.com",
    )

    greenmangaming_api_key: str = Field(
        default="3bc4cebab2aa8cddab9e9a3cfad5aef3",
        description="Public Algolia search key embedded in greenmangaming.com",
    )

    # Matching overrides, keyed by MatchingConfig field name
    matching: dict[str, Any] = Field(
        default_factory=dict,
        description="Overrides for the matching engine configuration",
    )

    @field_validator("enabled_stores")
    @classmethod
    def _validate_stores(cls, value: list[str]) -> list[str]:
        stores: list[str] = []
        for store_id in value:
            store_id = store_id.strip().lower()
            if store_id not in STORE_IDS:
                raise ValueError(f"Unknown store '{store_id}' (known: {', '.join(STORE_IDS)})")
            if store_id not in stores:
                stores.append(store_id)
        # Steam is the primary catalog; every lookup starts there
        if "steam" not in stores:
            stores.insert(0, "steam")
        return stores

    @property
    def is_debug(self) -> bool:
        """Check if debug logging is enabled."""
        return self.log_level == "DEBUG"

    @property
    def secondary_stores(self) -> list[str]:
        """Enabled stores other than the primary catalog."""
        return [store_id for store_id in self.enabled_stores if store_id != "steam"]
