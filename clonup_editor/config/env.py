"""
Environment variable support for clonup-editor configuration.

Every option field is reachable as ``CLONUP_<SECTION>_<FIELD>``, for
example ``CLONUP_API_TOKEN`` or ``CLONUP_DOMAIN_POLL_INTERVAL``. Values
are converted using the field's type annotation.
"""

import os
from typing import Any, Optional, TypeVar, Union, get_args, get_origin

from .defaults import ENV_PREFIX
from .options import EditorConfig

T = TypeVar("T")

# Environment name of each EditorConfig section
SECTION_PREFIXES = {
    "api": "API",
    "domains": "DOMAIN",
    "editor": "EDITOR",
    "scripts": "SCRIPTS",
}

_TRUE_VALUES = ("true", "1", "yes", "on", "enabled")


def get_env_key(key: str, prefix: str = ENV_PREFIX) -> str:
    """``"api.token"`` -> ``"CLONUP_API_TOKEN"``."""
    return f"{prefix}{key.upper().replace('.', '_').replace('-', '_')}"


def parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def parse_value(value: str, target_type: Any) -> Any:
    """Convert an environment string to ``target_type``.

    Handles ``Optional[...]``, ``list[...]`` (comma-separated), bool, int
    and float; anything else is returned unchanged.
    """
    origin = get_origin(target_type)

    if origin is Union:
        inner = [t for t in get_args(target_type) if t is not type(None)]
        return parse_value(value, inner[0]) if inner else value

    if origin is list:
        args = get_args(target_type)
        item_type = args[0] if args else str
        return [parse_value(item.strip(), item_type) for item in value.split(",") if item.strip()]

    if target_type is bool:
        return parse_bool(value)
    if target_type is int:
        return int(value)
    if target_type is float:
        return float(value)
    return value


def get_env(
    key: str,
    default: Optional[T] = None,
    target_type: Optional[type] = None,
    prefix: str = ENV_PREFIX,
) -> Optional[Union[T, str]]:
    """Read one variable, typed by ``target_type`` or by ``default``."""
    value = os.environ.get(get_env_key(key, prefix))
    if value is None:
        return default
    if target_type is None and default is not None:
        target_type = type(default)
    return parse_value(value, target_type) if target_type is not None else value


def env_mappings(prefix: str = ENV_PREFIX) -> dict[str, tuple[str, Any]]:
    """``section.field`` -> (variable name, annotation) for every option."""
    mappings: dict[str, tuple[str, Any]] = {}
    for section, section_field in EditorConfig.model_fields.items():
        model = section_field.annotation
        env_section = SECTION_PREFIXES.get(section, section.upper())
        for name, field in model.model_fields.items():
            mappings[f"{section}.{name}"] = (f"{prefix}{env_section}_{name.upper()}", field.annotation)
    return mappings


def load_env_config(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Nested mapping of the option variables that are set.

    Raises:
        ValueError: If a numeric variable does not parse.
    """
    result: dict[str, Any] = {}
    for key, (env_var, annotation) in env_mappings(prefix).items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        section, option = key.split(".", 1)
        result.setdefault(section, {})[option] = parse_value(value, annotation)
    return result
