"""Structured ECS logging and the per-bot log sink."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import json
import logging
from pathlib import Path

from cardfarm.config.schema import LoggingConfig


def _strip_empty(value: object) -> object | None:
    if isinstance(value, dict):
        cleaned = {key: _strip_empty(item) for key, item in value.items()}
        return {key: item for key, item in cleaned.items() if item is not None} or None
    if isinstance(value, list):
        cleaned_list = [_strip_empty(item) for item in value]
        return [item for item in cleaned_list if item is not None] or None
    if value in ("", None):
        return None
    return value


class ECSJsonFormatter(logging.Formatter):
    def __init__(self, service_name: str = "cardfarm") -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, UTC).isoformat(timespec="microseconds")
        payload: dict[str, object] = {
            "@timestamp": timestamp,
            "message": record.getMessage(),
            "log": {
                "level": record.levelname.lower(),
                "logger": record.name,
            },
            "service": {
                "name": getattr(record, "service_name", self.service_name),
            },
            "event": {
                "kind": "event",
                "category": getattr(record, "event_category", "configuration"),
                "action": getattr(record, "event_action", None),
                "outcome": getattr(record, "event_outcome", None),
            },
            "error": {
                "type": record.exc_info[0].__name__ if record.exc_info and record.exc_info[0] else None,
                "stack_trace": self.formatException(record.exc_info) if record.exc_info else None,
            },
            "cardfarm": {
                "bot": getattr(record, "bot", None),
                "payload": getattr(record, "payload", None),
            },
        }
        cleaned = _strip_empty(payload) or {}
        return json.dumps(cleaned, separators=(",", ":"))


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "bot": getattr(record, "bot", None),
            "action": getattr(record, "event_action", None),
            "exception": self.formatException(record.exc_info) if record.exc_info else None,
        }
        cleaned = _strip_empty(payload) or {}
        return json.dumps(cleaned, separators=(",", ":"))


def _build_formatter(config: LoggingConfig) -> logging.Formatter:
    if config.fmt == "json":
        return JsonFormatter()
    return ECSJsonFormatter(service_name=config.service_name)


def _sink_handler(config: LoggingConfig, formatter: logging.Formatter) -> logging.Handler:
    if config.sink == "file":
        file_path = config.file_path or "logs/cardfarm.log"
        log_file = Path(file_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    return handler


def configure_logging(config: LoggingConfig, force: bool = False) -> None:
    root = logging.getLogger("cardfarm")
    if getattr(root, "_cardfarm_configured", False) and not force:
        return

    root.setLevel(config.level)
    for existing in list(root.handlers):
        existing.close()
    root.handlers.clear()
    root.addHandler(_sink_handler(config, _build_formatter(config)))

    root.propagate = False
    setattr(root, "_cardfarm_configured", True)


def get_logger(name: str, level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    if name.startswith("cardfarm"):
        parent = logging.getLogger("cardfarm")
        if parent.handlers:
            logger.setLevel(level)
            logger.propagate = True
            return logger

    handler = logging.StreamHandler()
    handler.setFormatter(ECSJsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


@dataclass(slots=True)
class BotLogSink:
    """Log sink handed to the bot config loader.

    Every record carries the bot name so that output from several bots loaded
    by the same process can be told apart.
    """

    logger: logging.Logger
    bot_name: str = ""

    def log_null_error(self, name: str) -> None:
        self.logger.warning(
            f"{name} is null or empty",
            extra=self._extra("null_argument", payload={"argument": name}),
        )

    def log_generic_exception(self, exc: BaseException) -> None:
        self.logger.error(
            f"{type(exc).__name__}: {exc}",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra=self._extra("exception"),
        )

    def log_generic_warning(self, message: str) -> None:
        self.logger.warning(message, extra=self._extra("warning"))

    def for_bot(self, bot_name: str) -> BotLogSink:
        return BotLogSink(logger=self.logger, bot_name=bot_name)

    def _extra(self, action: str, payload: dict[str, object] | None = None) -> dict[str, object]:
        return {
            "bot": self.bot_name or None,
            "event_action": action,
            "event_outcome": "failure" if action != "warning" else None,
            "payload": payload,
        }
