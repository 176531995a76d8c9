"""Agent config loading and initialization."""

from __future__ import annotations

import os
import re
import shutil
from pathlib import Path
from typing import Any

import yaml

from cardfarm.config.schema import AppConfig, parse_config


DEFAULT_CONFIG_PATH = Path(__file__).with_name("defaults.yml")
_ENV_TOKEN_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-(.*?))?\}")


def load_config(path: Path | str) -> AppConfig:
    """Read an agent config file, expand ``${VAR:-default}`` tokens and validate it.

    YAML syntax errors and env tokens without a value are reported as
    ``ValueError`` naming the file, so the CLI can surface them as-is.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"config file does not exist: {path}")
    try:
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"config file {path} is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"config file {path} must hold an object, got {type(raw).__name__}")
    try:
        raw = _interpolate_env(raw, "")
    except ValueError as exc:
        raise ValueError(f"{exc} in {path}") from exc
    return parse_config(raw)


def initialize_config(path: Path, force: bool = False) -> Path:
    if path.exists() and not force:
        raise FileExistsError(f"config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(DEFAULT_CONFIG_PATH, path)
    return path


def resolve_bots_directory(config: AppConfig, config_path: Path) -> Path:
    directory = Path(config.bots.directory).expanduser()
    if directory.is_absolute():
        return directory
    return config_path.parent / directory


def _interpolate_env(value: Any, key_path: str) -> Any:
    if isinstance(value, dict):
        return {key: _interpolate_env(item, f"{key_path}.{key}" if key_path else str(key)) for key, item in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item, f"{key_path}[{index}]") for index, item in enumerate(value)]
    if isinstance(value, str):
        return _interpolate_string(value, key_path)
    return value


def _interpolate_string(value: str, key_path: str) -> str:
    if "${" not in value:
        return value

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        default = match.group(2)
        resolved = os.environ.get(name)
        if resolved is not None:
            return resolved
        if default is not None:
            return default
        raise ValueError(f"missing required environment variable '{name}' referenced by '{key_path}'")

    return _ENV_TOKEN_RE.sub(_replace, value)
