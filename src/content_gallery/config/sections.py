"""Nested configuration sections."""

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class NonGetPolicy(StrEnum):
    """What the proxy route does with requests other than GET."""

    REJECT = "reject"
    DROP = "drop"


class ServerSettings(BaseModel):
    """HTTP server and logging settings."""

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Bind port")
    log_level: str = Field(default="INFO", description="Minimum log level")
    log_file: str | None = Field(
        default=None, description="Optional file receiving JSON log lines"
    )
    json_logs: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


class ProxySettings(BaseModel):
    """Settings for the authenticated content proxy."""

    prefix: str = Field(
        default="/api",
        description="Mount prefix of the proxy, stripped before forwarding",
    )
    non_get_policy: NonGetPolicy = Field(
        default=NonGetPolicy.REJECT,
        description="reject: answer 405; drop: never answer (legacy behaviour)",
    )

    @field_validator("prefix")
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("Proxy prefix cannot be empty")
        if not v.startswith("/"):
            v = f"/{v}"
        return v


class UpstreamSettings(BaseModel):
    """Outbound HTTP client settings."""

    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Timeout in seconds for upstream calls (None waits forever)",
    )


class GallerySettings(BaseModel):
    """Page-data fetching settings."""

    fanout_limit: int = Field(
        default=8, ge=1, description="Maximum concurrent category fetches"
    )
    home_items_limit: int = Field(
        default=4, ge=1, description="Items fetched per category on the home page"
    )
    grid_items_limit: int = Field(
        default=100, ge=1, description="Items fetched for the image grid page"
    )
