"""
Configuration file loader for clonup-editor.

Reads ``clonup.config.{json,yaml,yml,toml,ini}`` and layers environment
variables and programmatic overrides on top before validating the result
into an EditorConfig.
"""

import json
import logging
import tomllib
from configparser import ConfigParser, Error as IniError
from pathlib import Path
from typing import Any, Callable, Optional, Union

import yaml
from pydantic import ValidationError

from clonup_editor.exceptions import ConfigurationError

from .defaults import (
    DEFAULT_CONFIG_EXTENSIONS,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_CONFIG_SEARCH_PATHS,
)
from .env import load_env_config
from .options import EditorConfig

logger = logging.getLogger(__name__)

# Singular section names accepted in files
SECTION_ALIASES = {
    "domain": "domains",
    "script": "scripts",
    "http": "api",
}


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _read_yaml(path: Path) -> Any:
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def _read_toml(path: Path) -> Any:
    return tomllib.loads(path.read_text(encoding="utf-8"))


def _ini_value(value: str) -> Any:
    # Comma lists become lists; scalars are left for pydantic to coerce
    value = value.strip()
    if "," in value:
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def _read_ini(path: Path) -> dict[str, Any]:
    """Sections become nested mappings."""
    parser = ConfigParser()
    parser.read_string(path.read_text(encoding="utf-8"), source=str(path))
    return {
        section: {key: _ini_value(value) for key, value in parser.items(section)}
        for section in parser.sections()
    }


_READERS: dict[str, Callable[[Path], Any]] = {
    ".json": _read_json,
    ".yaml": _read_yaml,
    ".yml": _read_yaml,
    ".toml": _read_toml,
    ".ini": _read_ini,
}

_PARSE_ERRORS = (json.JSONDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError, IniError)


def normalize_sections(data: dict[str, Any]) -> dict[str, Any]:
    """Map section aliases and dashed keys onto EditorConfig field names."""
    result: dict[str, Any] = {}
    for section, values in data.items():
        name = SECTION_ALIASES.get(section.lower(), section.lower())
        if isinstance(values, dict):
            values = {k.replace("-", "_"): v for k, v in values.items()}
        result[name] = values
    return result


def load_file(path: Union[str, Path]) -> dict[str, Any]:
    """Read one configuration file, choosing the format by extension.

    Raises:
        ConfigurationError: If the file is missing, has an unsupported
            extension, cannot be parsed or is not a mapping.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise ConfigurationError(f"Unsupported configuration format: {path.suffix}")

    try:
        data = reader(path)
    except _PARSE_ERRORS as e:
        raise ConfigurationError(f"Invalid configuration file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    logger.debug(f"Loaded configuration from {path}")
    return normalize_sections(data)


def find_config_file(
    filename: str = DEFAULT_CONFIG_FILENAME,
    search_paths: Optional[list[str]] = None,
    extensions: Optional[list[str]] = None,
) -> Optional[Path]:
    """First ``filename + ext`` found in the search directories."""
    for directory in search_paths or DEFAULT_CONFIG_SEARCH_PATHS:
        base = Path(directory).expanduser()
        for ext in extensions or DEFAULT_CONFIG_EXTENSIONS:
            candidate = base / f"{filename}{ext}"
            if candidate.is_file():
                return candidate
    return None


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Deep merge; later mappings win."""
    result: dict[str, Any] = {}
    for config in configs:
        _merge_into(result, config)
    return result


def _merge_into(base: dict[str, Any], override: dict[str, Any]) -> None:
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge_into(current, value)
        elif isinstance(value, dict):
            base[key] = merge_configs(value)
        else:
            base[key] = value


class ConfigLoader:
    """Builds an EditorConfig from layered sources.

    Priority, highest first: overrides, ``CLONUP_*`` environment
    variables, the configuration file, built-in defaults.
    """

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        search_paths: Optional[list[str]] = None,
        load_env: bool = True,
        auto_find: bool = True,
    ):
        self.config_file = Path(config_file) if config_file else None
        self.search_paths = search_paths or DEFAULT_CONFIG_SEARCH_PATHS
        self.load_env = load_env
        self.auto_find = auto_find

    def sources(self, overrides: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """Raw mappings in merge order."""
        env: dict[str, Any] = {}
        if self.load_env:
            try:
                env = load_env_config()
            except ValueError as e:
                raise ConfigurationError(f"Invalid environment variable: {e}") from e
        layers = [self._file_layer(), env, overrides or {}]
        return [layer for layer in layers if layer]

    def load(self, overrides: Optional[dict[str, Any]] = None) -> EditorConfig:
        """Merge every source and validate.

        Raises:
            ConfigurationError: If an explicit file is unreadable or the
                merged values fail validation.
        """
        merged = merge_configs(*self.sources(overrides))
        try:
            return EditorConfig.from_dict(merged)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def _file_layer(self) -> dict[str, Any]:
        if self.config_file is not None:
            return load_file(self.config_file)
        if not self.auto_find:
            return {}
        found = find_config_file(search_paths=self.search_paths)
        return load_file(found) if found is not None else {}


def load_config(
    config_file: Optional[Union[str, Path]] = None,
    overrides: Optional[dict[str, Any]] = None,
    load_env: bool = True,
) -> EditorConfig:
    """Load configuration from a file, the environment and overrides."""
    return ConfigLoader(config_file=config_file, load_env=load_env).load(overrides=overrides)
