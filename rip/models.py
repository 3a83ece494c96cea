"""Configuration models for rip.

All models use Pydantic v2. A config file holds named client profiles:

    profiles:
      catalog:
        base_url: "https://api.example.com/v1"
        headers:
          Authorization: "Bearer ${CATALOG_TOKEN}"
        append_slash: true
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClientConfig(BaseModel):
    """Settings for one preconfigured Client."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(description="Base URL all paths resolve against")
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers to include (supports ${ENV_VAR} substitution)",
    )
    query: dict[str, list[str]] = Field(
        default_factory=dict, description="Query values sent with every call"
    )
    user_agent: str | None = Field(default=None, description="User-Agent override")
    append_slash: bool = Field(default=False, description="Force a trailing '/' on paths")
    timeout: float | None = Field(default=None, description="Per-request timeout in seconds")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("timeout must be positive")
        return v


class ClientProfiles(BaseModel):
    """Top-level configuration file structure."""

    model_config = ConfigDict(extra="forbid")

    profiles: dict[str, ClientConfig] = Field(description="Profile name -> client config mapping")
