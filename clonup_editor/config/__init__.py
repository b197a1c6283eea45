"""
Configuration module for clonup-editor.

This module provides the configuration system with support for:
- Strongly-typed option classes (ApiOptions, DomainOptions, EditorOptions)
- Configuration file loading (JSON, YAML, INI, TOML)
- Environment variable support
- Validation and type checking via Pydantic

Example usage:
    from clonup_editor.config import EditorConfig, ApiOptions, load_config

    # Load from file with environment overrides
    config = load_config("clonup.config.yaml")

    # Create programmatically
    config = EditorConfig(api=ApiOptions(token="..."))

Environment variables:
    CLONUP_API_TOKEN=...
    CLONUP_API_BASE_URL=https://fastspeed.site
    CLONUP_DOMAIN_POLL_INTERVAL=10
"""

from clonup_editor.exceptions import ConfigurationError

from .defaults import (
    DEFAULT_API_BASE_URL,
    DEFAULT_HOSTING_URL,
    DEFAULT_MANAGED_ROOT_DOMAINS,
    DEFAULT_POLL_INTERVAL,
    ENV_PREFIX,
    NO_CACHE_HEADERS,
)
from .env import env_mappings, get_env, get_env_key, load_env_config, parse_value
from .loader import (
    ConfigLoader,
    find_config_file,
    load_config,
    load_file,
    merge_configs,
)
from .options import (
    ApiOptions,
    DomainOptions,
    EditorConfig,
    EditorOptions,
    ScriptOptions,
)

__all__ = [
    # Defaults
    "DEFAULT_API_BASE_URL",
    "DEFAULT_HOSTING_URL",
    "DEFAULT_MANAGED_ROOT_DOMAINS",
    "DEFAULT_POLL_INTERVAL",
    "ENV_PREFIX",
    "NO_CACHE_HEADERS",
    # Options
    "ApiOptions",
    "DomainOptions",
    "EditorConfig",
    "EditorOptions",
    "ScriptOptions",
    # Loading
    "ConfigLoader",
    "ConfigurationError",
    "find_config_file",
    "load_config",
    "load_file",
    "merge_configs",
    # Environment
    "env_mappings",
    "get_env",
    "get_env_key",
    "load_env_config",
    "parse_value",
]
