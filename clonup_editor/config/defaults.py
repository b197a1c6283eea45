"""
Default configuration values for clonup-editor.

This module contains all default values used throughout the configuration system.
"""

from typing import Any

# API defaults
DEFAULT_API_BASE_URL = "https://fastspeed.site"
DEFAULT_HOSTING_URL = "https://production-web.up.railway.app"
DEFAULT_API_TIMEOUT = 30.0
DEFAULT_IMPERSONATE = "chrome120"
DEFAULT_VERIFY_SSL = True

# Endpoint paths
DEFAULT_SAVE_PATH = "/api/clone/save"
DEFAULT_CLONE_COUNT_PATH = "/api/clones/count"
DEFAULT_SITE_PATH = "/sites/{subdomain}"
DEFAULT_ADD_DOMAIN_PATH = "/sites/{subdomain}/add-domain"
DEFAULT_VERIFY_DOMAIN_PATH = "/sites/{subdomain}/verify-domain"
DEFAULT_DNS_INSTRUCTIONS_PATH = "/sites/{subdomain}/dns-instructions"

# Headers sent with document fetches so edge caches never answer them
NO_CACHE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

# Domain defaults
DEFAULT_MANAGED_ROOT_DOMAINS: list[str] = ["clonup.site"]
DEFAULT_POLL_INTERVAL = 10.0

# Editor defaults
DEFAULT_MOBILE_PREVIEW = False
DEFAULT_ABSOLUTIZE_ASSETS = True
DEFAULT_MOBILE_WIDTH = 390

# File config defaults
DEFAULT_CONFIG_FILENAME = "clonup.config"
DEFAULT_CONFIG_EXTENSIONS = [".json", ".yaml", ".yml", ".ini", ".toml"]
DEFAULT_CONFIG_SEARCH_PATHS = [
    ".",
    "~/.config/clonup-editor",
    "/etc/clonup-editor",
]

# Environment variable prefix
ENV_PREFIX = "CLONUP_"


def get_default_api_config() -> dict[str, Any]:
    """Get default API configuration as a dictionary."""
    return {
        "base_url": DEFAULT_API_BASE_URL,
        "hosting_url": DEFAULT_HOSTING_URL,
        "timeout": DEFAULT_API_TIMEOUT,
        "impersonate": DEFAULT_IMPERSONATE,
        "verify_ssl": DEFAULT_VERIFY_SSL,
    }


def get_default_domain_config() -> dict[str, Any]:
    """Get default domain configuration as a dictionary."""
    return {
        "managed_root_domains": DEFAULT_MANAGED_ROOT_DOMAINS.copy(),
        "poll_interval": DEFAULT_POLL_INTERVAL,
    }
