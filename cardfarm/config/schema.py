"""Dataclasses for top-level agent config."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


DEFAULT_BOTS_DIRECTORY = "bots"
DEFAULT_MAX_GAMES_PLAYED_CONCURRENTLY = 32


@dataclass(slots=True)
class BotsConfig:
    directory: str = DEFAULT_BOTS_DIRECTORY
    max_games_played_concurrently: int = DEFAULT_MAX_GAMES_PLAYED_CONCURRENTLY
    skip_disabled: bool = False


@dataclass(slots=True)
class CryptoConfig:
    passphrase: str = ""


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    fmt: str = "ecs_json"
    sink: str = "stdout"
    file_path: str | None = None
    service_name: str = "cardfarm"


@dataclass(slots=True)
class AppConfig:
    environment: str
    bots: BotsConfig
    crypto: CryptoConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)


VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
VALID_LOG_FORMATS = {"json", "ecs_json"}
VALID_LOG_SINKS = {"stdout", "file"}


def _parse_bool_value(raw: Any, *, field_name: str, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"'{field_name}' must be a boolean")


def _parse_positive_int(raw: Any, *, field_name: str, default: int) -> int:
    if raw is None:
        return default
    # Env interpolation hands numbers over as strings.
    if isinstance(raw, str) and raw.strip().isascii() and raw.strip().isdigit():
        raw = int(raw.strip())
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    if raw < 1:
        raise ValueError(f"{field_name} must be greater than zero")
    return raw


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    raw = data.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"'{name}' must be an object")
    return raw


def parse_config(data: dict[str, Any]) -> AppConfig:
    if not isinstance(data, dict):
        raise ValueError("config root must be an object")
    environment = str(data.get("environment", "development"))

    bots_raw = _section(data, "bots")
    directory = str(bots_raw.get("directory", DEFAULT_BOTS_DIRECTORY) or "").strip()
    if not directory:
        raise ValueError("bots.directory must not be empty")
    max_games = _parse_positive_int(
        bots_raw.get("max_games_played_concurrently"),
        field_name="bots.max_games_played_concurrently",
        default=DEFAULT_MAX_GAMES_PLAYED_CONCURRENTLY,
    )
    bots_config = BotsConfig(
        directory=directory,
        max_games_played_concurrently=max_games,
        skip_disabled=_parse_bool_value(
            bots_raw.get("skip_disabled"),
            field_name="bots.skip_disabled",
            default=False,
        ),
    )

    crypto_raw = _section(data, "crypto")
    passphrase = crypto_raw.get("passphrase", "")
    crypto_config = CryptoConfig(passphrase="" if passphrase is None else str(passphrase))

    logging_raw = _section(data, "logging")
    level = str(logging_raw.get("level", "INFO")).upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"invalid log level '{level}'")
    log_format = str(logging_raw.get("format", "ecs_json"))
    if log_format not in VALID_LOG_FORMATS:
        raise ValueError(f"invalid log format '{log_format}'")
    sink = str(logging_raw.get("sink", "stdout"))
    if sink not in VALID_LOG_SINKS:
        raise ValueError(f"invalid log sink '{sink}'")
    file_path = logging_raw.get("file_path")
    logging_config = LoggingConfig(
        level=level,
        fmt=log_format,
        sink=sink,
        file_path=str(file_path) if file_path else None,
        service_name=str(logging_raw.get("service_name", "cardfarm")).strip() or "cardfarm",
    )

    return AppConfig(
        environment=environment,
        bots=bots_config,
        crypto=crypto_config,
        logging=logging_config,
    )
