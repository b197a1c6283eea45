"""
Configuration options classes for clonup-editor.

This module provides strongly-typed option classes for the API client,
managed domains, the editing surface and the script manager.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from .defaults import (
    DEFAULT_ABSOLUTIZE_ASSETS,
    DEFAULT_ADD_DOMAIN_PATH,
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT,
    DEFAULT_CLONE_COUNT_PATH,
    DEFAULT_DNS_INSTRUCTIONS_PATH,
    DEFAULT_HOSTING_URL,
    DEFAULT_IMPERSONATE,
    DEFAULT_MANAGED_ROOT_DOMAINS,
    DEFAULT_MOBILE_PREVIEW,
    DEFAULT_MOBILE_WIDTH,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SAVE_PATH,
    DEFAULT_SITE_PATH,
    DEFAULT_VERIFY_DOMAIN_PATH,
    DEFAULT_VERIFY_SSL,
)


def _strip_trailing_slash(value: str) -> str:
    return value.rstrip("/")


class ApiOptions(BaseModel):
    """HTTP API configuration options.

    Covers the persistence backend (save, domains, counters) and the
    hosting layer the clones are served from.
    """

    base_url: str = Field(DEFAULT_API_BASE_URL, description="Persistence API base URL")
    hosting_url: str = Field(
        DEFAULT_HOSTING_URL, description="Base URL the hosted clones are fetched from"
    )
    token: Optional[str] = Field(None, description="Bearer token for authenticated calls")
    timeout: float = Field(DEFAULT_API_TIMEOUT, gt=0, description="Request timeout seconds")
    impersonate: str = Field(
        DEFAULT_IMPERSONATE, description="Browser to impersonate (curl_cffi)"
    )
    verify_ssl: bool = Field(DEFAULT_VERIFY_SSL, description="Verify SSL certificates")
    save_path: str = Field(DEFAULT_SAVE_PATH, description="Save endpoint")
    clone_count_path: str = Field(DEFAULT_CLONE_COUNT_PATH, description="Clone counter endpoint")
    site_path: str = Field(DEFAULT_SITE_PATH, description="Hosted document path")
    add_domain_path: str = Field(DEFAULT_ADD_DOMAIN_PATH, description="Add-domain endpoint")
    verify_domain_path: str = Field(
        DEFAULT_VERIFY_DOMAIN_PATH, description="Verify-domain endpoint"
    )
    dns_instructions_path: str = Field(
        DEFAULT_DNS_INSTRUCTIONS_PATH, description="DNS instructions endpoint"
    )

    @field_validator("base_url", "hosting_url")
    @classmethod
    def normalize_base(cls, v: str) -> str:
        """Drop trailing slashes so paths can be appended directly."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Base URL must be http(s): {v!r}")
        return _strip_trailing_slash(v)


class DomainOptions(BaseModel):
    """Managed domain and custom-domain workflow options."""

    managed_root_domains: list[str] = Field(
        default_factory=lambda: DEFAULT_MANAGED_ROOT_DOMAINS.copy(),
        description="Root domains clones are hosted under as subdomains",
    )
    poll_interval: float = Field(
        DEFAULT_POLL_INTERVAL, gt=0, description="DNS verification poll interval seconds"
    )

    @field_validator("managed_root_domains", mode="before")
    @classmethod
    def parse_domains(cls, v: Any) -> list[str]:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            v = [item.strip() for item in v.split(",") if item.strip()]
        return [d.lower().strip(".") for d in v]


class EditorOptions(BaseModel):
    """Options for the rendering surface."""

    mobile_preview: bool = Field(DEFAULT_MOBILE_PREVIEW, description="Render mobile preview CSS")
    mobile_width: int = Field(DEFAULT_MOBILE_WIDTH, ge=240, description="Mobile preview width px")
    absolutize_assets: bool = Field(
        DEFAULT_ABSOLUTIZE_ASSETS,
        description="Point relative asset paths at the managed domain while editing",
    )


class ScriptOptions(BaseModel):
    """Options for the script manager relevance filter."""

    extra_keywords: list[str] = Field(
        default_factory=list, description="Additional allowlist substrings"
    )
    extra_dynamic_patterns: list[str] = Field(
        default_factory=list, description="Additional dynamic-loader URL regexes"
    )


class EditorConfig(BaseModel):
    """Main configuration class combining all options."""

    api: ApiOptions = Field(default_factory=ApiOptions, description="API options")
    domains: DomainOptions = Field(default_factory=DomainOptions, description="Domain options")
    editor: EditorOptions = Field(default_factory=EditorOptions, description="Editor options")
    scripts: ScriptOptions = Field(default_factory=ScriptOptions, description="Script options")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EditorConfig":
        """Create configuration from dictionary."""
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump(exclude_none=True)
