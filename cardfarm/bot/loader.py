"""Load, decrypt and guard per-bot config documents."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
from pathlib import Path
from typing import Protocol

from cardfarm.bot.schema import BotConfig, PasswordFormat, parse_bot_config
from cardfarm.config.schema import DEFAULT_MAX_GAMES_PLAYED_CONCURRENTLY
from cardfarm.core.crypto import SecretDecryptor, build_decryptor


MAX_GAMES_PLAYED_CONCURRENTLY = DEFAULT_MAX_GAMES_PLAYED_CONCURRENTLY
IDLE_GAME_IDS_FIELD = "idleGameIDs"
WARNING_TOO_MANY_GAMES_TO_PLAY = (
    "Playing more than {0} games concurrently is not possible, "
    "only first {0} entries from {1} will be used!"
)


class LogSink(Protocol):
    def log_null_error(self, name: str) -> None: ...

    def log_generic_exception(self, exc: BaseException) -> None: ...

    def log_generic_warning(self, message: str) -> None: ...


class DocumentSource(Protocol):
    def exists(self, path: str) -> bool: ...

    def read_text(self, path: str) -> str: ...


class FileSource:
    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def read_text(self, path: str) -> str:
        # utf-8-sig drops the byte order mark some editors write.
        return Path(path).read_text(encoding="utf-8-sig")


class LoadStatus(Enum):
    LOADED = "loaded"
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    PARSE_ERROR = "parse_error"


@dataclass(frozen=True, slots=True)
class LoadOutcome:
    status: LoadStatus
    config: BotConfig | None = None

    @property
    def loaded(self) -> bool:
        return self.status is LoadStatus.LOADED


def trim_idle_games(config: BotConfig, limit: int, log_sink: LogSink) -> bool:
    """Cut ``idle_game_ids`` down to ``limit`` entries.

    Keeps the first ``limit`` ids in their current order and warns once.
    Returns True when something was dropped.
    """

    if len(config.idle_game_ids) <= limit:
        return False
    log_sink.log_generic_warning(WARNING_TOO_MANY_GAMES_TO_PLAY.format(limit, IDLE_GAME_IDS_FIELD))
    config.idle_game_ids = config.idle_game_ids[:limit]
    return True


class BotConfigLoader:
    def __init__(
        self,
        log_sink: LogSink,
        decryptor: SecretDecryptor | None = None,
        source: DocumentSource | None = None,
        max_games_played_concurrently: int = MAX_GAMES_PLAYED_CONCURRENTLY,
    ) -> None:
        if max_games_played_concurrently < 1:
            raise ValueError("max_games_played_concurrently must be greater than zero")
        self.log_sink = log_sink
        self.decryptor = decryptor or build_decryptor("")
        self.source = source or FileSource()
        self.max_games_played_concurrently = max_games_played_concurrently

    def load(self, path: str | Path | None) -> BotConfig | None:
        return self.load_outcome(path).config

    def load_outcome(self, path: str | Path | None) -> LoadOutcome:
        # str(Path("")) is ".", so emptiness is checked before converting.
        if path is None or path == "" or (isinstance(path, Path) and not path.parts):
            self.log_sink.log_null_error("path")
            return LoadOutcome(LoadStatus.INVALID_ARGUMENT)
        file_path = str(path)

        try:
            if not self.source.exists(file_path):
                return LoadOutcome(LoadStatus.NOT_FOUND)
            bot_config = parse_bot_config(json.loads(self.source.read_text(file_path)))
        except Exception as exc:
            self.log_sink.log_generic_exception(exc)
            return LoadOutcome(LoadStatus.PARSE_ERROR)

        if bot_config is None:
            self.log_sink.log_null_error("bot_config")
            return LoadOutcome(LoadStatus.PARSE_ERROR)

        if bot_config.password_format != PasswordFormat.PLAIN_TEXT and bot_config.password:
            self._decrypt_password(bot_config)

        trim_idle_games(bot_config, self.max_games_played_concurrently, self.log_sink)
        return LoadOutcome(LoadStatus.LOADED, bot_config)

    def _decrypt_password(self, bot_config: BotConfig) -> None:
        # A failed decrypt leaves password as None; the operator fixes it at login.
        try:
            plaintext = self.decryptor.decrypt(bot_config.password_format, bot_config.password)
        except Exception as exc:
            self.log_sink.log_generic_exception(exc)
            plaintext = None
        bot_config.password = plaintext
        bot_config.password_decrypted = True


def load_directory(
    directory: Path,
    loader: BotConfigLoader,
    *,
    skip_disabled: bool = False,
) -> dict[str, BotConfig]:
    bots: dict[str, BotConfig] = {}
    if not directory.is_dir():
        return bots
    for path in sorted(directory.glob("*.json")):
        bot_config = loader.load(path)
        if bot_config is None:
            continue
        if skip_disabled and not bot_config.enabled:
            continue
        bots[path.stem] = bot_config
    return bots
