"""CLI entry point for cardfarm."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Sequence

from cardfarm.bot.loader import BotConfigLoader, LoadStatus, load_directory
from cardfarm.bot.schema import BotConfig
from cardfarm.config.loader import initialize_config, load_config, resolve_bots_directory
from cardfarm.config.schema import AppConfig
from cardfarm.core.crypto import build_decryptor
from cardfarm.core.logging import BotLogSink, configure_logging, get_logger


DEFAULT_CONFIG = Path(__file__).parent / "config" / "defaults.yml"

_EXIT_CODES = {
    LoadStatus.LOADED: 0,
    LoadStatus.INVALID_ARGUMENT: 1,
    LoadStatus.PARSE_ERROR: 1,
    LoadStatus.NOT_FOUND: 2,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cardfarm")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create starter config")
    init_parser.add_argument("--config", type=Path, default=Path("./config/cardfarm.yml"))
    init_parser.add_argument("--force", action="store_true")

    validate_parser = subparsers.add_parser("validate", help="Load and validate a single bot config")
    validate_parser.add_argument("bot", type=Path)
    validate_parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG)

    bots_parser = subparsers.add_parser("bots", help="Load every bot config in the configured directory")
    bots_parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG)

    logs_parser = subparsers.add_parser("logs", help="Show log sink configuration")
    logs_parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG)

    return parser


def _build_loader(config: AppConfig, bot_name: str = "") -> BotConfigLoader:
    configure_logging(config.logging)
    logger = get_logger("cardfarm.bot", level=config.logging.level)
    return BotConfigLoader(
        BotLogSink(logger=logger, bot_name=bot_name),
        decryptor=build_decryptor(config.crypto.passphrase),
        max_games_played_concurrently=config.bots.max_games_played_concurrently,
    )


def _summarize(bot_config: BotConfig) -> dict[str, Any]:
    summary = bot_config.to_document()
    if summary.get("password"):
        summary["password"] = "********"
    return summary


def cmd_init(config_path: Path, force: bool) -> int:
    initialize_config(config_path, force=force)
    print(f"wrote config: {config_path}")
    return 0


def cmd_validate(config_path: Path, bot_path: Path) -> int:
    config = load_config(config_path)
    loader = _build_loader(config, bot_name=bot_path.stem)
    outcome = loader.load_outcome(bot_path)
    payload: dict[str, Any] = {"bot": bot_path.stem, "status": outcome.status.value}
    if outcome.config is not None:
        payload["config"] = _summarize(outcome.config)
    print(json.dumps(payload, indent=2))
    return _EXIT_CODES[outcome.status]


def cmd_bots(config_path: Path) -> int:
    config = load_config(config_path)
    directory = resolve_bots_directory(config, config_path)
    bots = load_directory(directory, _build_loader(config), skip_disabled=config.bots.skip_disabled)
    payload = {
        "directory": str(directory),
        "bots": {name: _summarize(bot_config) for name, bot_config in bots.items()},
    }
    print(json.dumps(payload, indent=2))
    return 0


def cmd_logs(config_path: Path) -> int:
    config = load_config(config_path)
    payload = {
        "format": config.logging.fmt,
        "level": config.logging.level,
        "sink": config.logging.sink,
        "file_path": config.logging.file_path,
        "service_name": config.logging.service_name,
    }
    print(json.dumps(payload, indent=2))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "init":
        return cmd_init(args.config, args.force)
    if args.command == "validate":
        return cmd_validate(args.config, args.bot)
    if args.command == "bots":
        return cmd_bots(args.config)
    if args.command == "logs":
        return cmd_logs(args.config)

    parser.error(f"unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
