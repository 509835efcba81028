"""Settings configuration for the content gallery server."""

import contextlib
import os
import tomllib
from pathlib import Path
from typing import Any

import orjson
import structlog
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from content_gallery.config.discovery import find_toml_config_file
from content_gallery.exceptions import ConfigurationError

from .sections import GallerySettings, ProxySettings, ServerSettings, UpstreamSettings


__all__ = [
    "Settings",
    "get_settings",
]


logger = structlog.get_logger(__name__)


def _coerce_settings(value: Any, settings_class: type) -> Any:
    """Coerce value to settings class instance.

    Handles: None → default, dict → instance, passthrough existing instances.
    """
    if value is None:
        return settings_class()
    if isinstance(value, settings_class):
        return value
    if isinstance(value, dict):
        return settings_class(**value)
    if hasattr(value, "model_dump"):
        return settings_class(**value.model_dump())
    return value


class Settings(BaseSettings):
    """
    Configuration settings for the content gallery.

    The content service options keep their historical environment variable
    names (SERVER_URL, CHANNEL_TOKEN, AUTH, CLIENT_ID, ...). Nested sections
    use a double underscore, e.g. PROXY__NON_GET_POLICY=drop.

    Settings are loaded from environment variables, .env files, and TOML
    configuration files. Environment variables take precedence over .env
    file values; explicit keyword arguments take precedence over both.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
        frozen=True,
    )

    # Content service
    server_url: str = Field(
        default="",
        description="Base URL of the content service, e.g. https://host",
    )
    api_version: str = Field(default="v1.1", description="Content REST API version")
    channel_token: str = Field(default="", description="Channel to query")
    preview: bool = Field(
        default=False,
        description="Use the preview (management) API instead of the delivery API",
    )

    # Authentication
    auth: str | None = Field(
        default=None,
        description="Static Authorization header value (including Basic/Bearer)",
    )
    client_id: str | None = Field(default=None, description="OAuth client id")
    client_secret: str | None = Field(default=None, description="OAuth client secret")
    client_scope_url: str | None = Field(default=None, description="OAuth scope")
    idcs_url: str | None = Field(default=None, description="OAuth issuer base URL")

    public_url: str = Field(
        default="",
        description="Origin this application is served from, used by browser clients",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    gallery: GallerySettings = Field(default_factory=GallerySettings)

    @field_validator("server", mode="before")
    @classmethod
    def validate_server(cls, v: Any) -> Any:
        return _coerce_settings(v, ServerSettings)

    @field_validator("proxy", mode="before")
    @classmethod
    def validate_proxy(cls, v: Any) -> Any:
        return _coerce_settings(v, ProxySettings)

    @field_validator("upstream", mode="before")
    @classmethod
    def validate_upstream(cls, v: Any) -> Any:
        return _coerce_settings(v, UpstreamSettings)

    @field_validator("gallery", mode="before")
    @classmethod
    def validate_gallery(cls, v: Any) -> Any:
        return _coerce_settings(v, GallerySettings)

    @field_validator("server_url", "public_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("auth", "client_id", mode="before")
    @classmethod
    def empty_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("preview", mode="before")
    @classmethod
    def empty_preview_is_false(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return False
        return v

    @property
    def oauth_enabled(self) -> bool:
        """OAuth client-credentials flow is configured (and no static value)."""
        return not self.auth and bool(self.client_id)

    def model_dump_safe(self) -> dict[str, Any]:
        """Dump settings with secrets masked."""
        data = self.model_dump()
        for key in ("auth", "client_secret"):
            if data.get(key):
                data[key] = "***"
        return data

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file.

        Raises:
            ValueError: If the TOML file is invalid or cannot be read
        """
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ValueError(f"Cannot read TOML config file {toml_path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls, config_path: Path | str | None = None, **kwargs: Any
    ) -> "Settings":
        """Create Settings instance from configuration file.

        Args:
            config_path: Path to configuration file. Can be:
                - None: Auto-discover config file or use CONFIG_FILE env var
                - Path or str: Use this specific config file
            **kwargs: Additional keyword arguments to override config values

        Returns:
            Settings: Configured Settings instance
        """
        if config_path is None:
            config_path_env = os.environ.get("CONFIG_FILE")
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path and config_path.exists():
            if config_path.suffix.lower() != ".toml":
                raise ValueError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            config_data = cls.load_toml_config(config_path)
            logger.debug("config_file_loaded", path=str(config_path))

        merged_config = {**config_data, **kwargs}
        return cls(**merged_config)


def get_settings(config_path: Path | str | None = None, **overrides: Any) -> Settings:
    """Load settings from the environment and an optional TOML file.

    JSON overrides can also be passed through the
    CONTENT_GALLERY_CONFIG_OVERRIDES environment variable.

    Raises:
        ConfigurationError: If settings cannot be loaded or are invalid
    """
    cli_overrides: dict[str, Any] = {}
    overrides_json = os.environ.get("CONTENT_GALLERY_CONFIG_OVERRIDES")
    if overrides_json:
        with contextlib.suppress(orjson.JSONDecodeError):
            cli_overrides = orjson.loads(overrides_json)

    try:
        return Settings.from_config(
            config_path=config_path, **{**cli_overrides, **overrides}
        )
    except (OSError, ValueError, ValidationError) as e:
        raise ConfigurationError(f"Failed to load configuration: {e}") from e
