"""Pydantic models for CLI configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from dockhand_reconciler.config.constants import DEFAULT_TIMEOUT


class GatewayProfile(BaseModel):
    """A named Dockhand gateway connection profile."""

    name: str
    url: str = Field(description="Gateway base URL, e.g. https://dockhand:3000")
    cookie: str | None = Field(
        default=None, description="Session cookie sent with every request",
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, le=600, description="Request timeout in seconds",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def auth_configured(self) -> bool:
        return bool(self.cookie)


class CLIConfig(BaseModel):
    """Root configuration model."""

    default_profile: str | None = None
    profiles: dict[str, GatewayProfile] = Field(default_factory=dict)
