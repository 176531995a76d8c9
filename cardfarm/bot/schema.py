"""Typed per-bot configuration and its document parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Any, Callable, Mapping, TypeVar


MAX_UINT8 = 0xFF
MAX_UINT32 = 0xFFFF_FFFF
MAX_UINT64 = 0xFFFF_FFFF_FFFF_FFFF


class BotConfigError(ValueError):
    """Raised when a bot document does not match the bot config schema."""


class FarmingOrder(IntEnum):
    UNORDERED = 0
    APP_IDS_ASCENDING = 1
    APP_IDS_DESCENDING = 2
    CARD_DROPS_ASCENDING = 3
    CARD_DROPS_DESCENDING = 4
    HOURS_ASCENDING = 5
    HOURS_DESCENDING = 6
    NAMES_ASCENDING = 7
    NAMES_DESCENDING = 8


class Permission(IntEnum):
    NONE = 0
    FAMILY_SHARING = 1
    OPERATOR = 2
    MASTER = 3


class PasswordFormat(IntEnum):
    PLAIN_TEXT = 0
    AES = 1
    PROTECTED_DATA_FOR_CURRENT_USER = 2


class ItemType(IntEnum):
    UNKNOWN = 0
    BOOSTER_PACK = 1
    COUPON = 2
    GIFT = 3
    STEAM_GEMS = 4
    EMOTICON = 5
    FOIL_TRADING_CARD = 6
    PROFILE_BACKGROUND = 7
    TRADING_CARD = 8


class RedeemingPreferences(IntFlag):
    NONE = 0
    FORWARDING = 1
    DISTRIBUTING = 2
    KEEP_MISSING_GAMES = 4


class TradingPreferences(IntFlag):
    NONE = 0
    ACCEPT_DONATIONS = 1
    STEAM_TRADE_MATCHER = 2
    MATCH_EVERYTHING = 4
    DONT_ACCEPT_BOT_TRADES = 8


DEFAULT_LOOTABLE_ITEM_TYPES = frozenset(
    {
        ItemType.BOOSTER_PACK,
        ItemType.FOIL_TRADING_CARD,
        ItemType.TRADING_CARD,
    }
)
DEFAULT_PARENTAL_PIN = "0"


@dataclass(slots=True)
class BotConfig:
    """Configuration of a single managed account.

    Instances come from :func:`parse_bot_config` (documents) or
    :meth:`BotConfig.template` (code). The dataclass is not frozen, but only
    ``login`` and ``password`` are meant to change after construction. The
    loader is the one other writer: it replaces ``password`` with the
    decrypted value (setting ``password_decrypted``) and trims
    ``idle_game_ids`` to the concurrency limit before handing the config out.
    Nothing in this package mutates a config after ``load()`` returns.
    """

    enabled: bool
    is_bot_account: bool
    accept_gifts: bool
    card_drops_restricted: bool
    dismiss_inventory_notifications: bool
    farm_offline: bool
    handle_offline_messages: bool
    paused: bool
    shutdown_on_farming_finished: bool
    send_on_farming_finished: bool
    send_trade_period: int
    farming_order: FarmingOrder
    password_format: PasswordFormat
    redeeming_preferences: RedeemingPreferences
    trading_preferences: TradingPreferences
    steam_master_clan_id: int
    lootable_item_types: frozenset[ItemType]
    idle_game_ids: tuple[int, ...]
    user_permissions: dict[int, Permission] = field(default_factory=dict)
    custom_game_played_while_farming: str | None = None
    custom_game_played_while_idle: str | None = None
    steam_trade_token: str | None = None
    login: str | None = None
    password: str | None = None
    parental_pin: str = DEFAULT_PARENTAL_PIN
    password_decrypted: bool = field(default=False, init=False, repr=False, compare=False)

    @classmethod
    def template(cls, *, enabled: bool = False, is_bot_account: bool = False) -> BotConfig:
        return cls(
            enabled=enabled,
            is_bot_account=is_bot_account,
            accept_gifts=False,
            card_drops_restricted=True,
            dismiss_inventory_notifications=False,
            farm_offline=False,
            handle_offline_messages=False,
            paused=False,
            shutdown_on_farming_finished=False,
            send_on_farming_finished=False,
            send_trade_period=0,
            farming_order=FarmingOrder.UNORDERED,
            password_format=PasswordFormat.PLAIN_TEXT,
            redeeming_preferences=RedeemingPreferences.NONE,
            trading_preferences=TradingPreferences.NONE,
            steam_master_clan_id=0,
            lootable_item_types=DEFAULT_LOOTABLE_ITEM_TYPES,
            idle_game_ids=(),
        )

    def permission_for(self, steam_id: int) -> Permission:
        return self.user_permissions.get(steam_id, Permission.NONE)

    def has_permission(self, steam_id: int, permission: Permission) -> bool:
        if permission == Permission.NONE:
            return True
        return self.permission_for(steam_id) >= permission

    def is_master(self, steam_id: int) -> bool:
        return self.has_permission(steam_id, Permission.MASTER)

    def to_document(self) -> dict[str, Any]:
        """Dump to a document that :func:`parse_bot_config` accepts.

        Once the loader has decrypted ``password`` the document carries it as
        plain text, so ``passwordFormat`` is written as ``PlainText`` there.
        """

        document: dict[str, Any] = {}
        for entry in FIELDS:
            document[entry.key] = entry.dump(getattr(self, entry.attribute))
        if self.password_decrypted:
            document["passwordFormat"] = int(PasswordFormat.PLAIN_TEXT)
        return document


_E = TypeVar("_E", bound=IntEnum)
_F = TypeVar("_F", bound=IntFlag)


def _normalize_token(value: str) -> str:
    return value.replace("_", "").replace(" ", "").lower()


def _describe(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


def _parse_bool(raw: Any, key: str) -> bool:
    if not isinstance(raw, bool):
        raise BotConfigError(f"'{key}' must be a boolean, got {_describe(raw)}")
    return raw


def _parse_int(raw: Any, key: str, *, maximum: int) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise BotConfigError(f"'{key}' must be an integer, got {_describe(raw)}")
    if raw < 0 or raw > maximum:
        raise BotConfigError(f"'{key}' must be between 0 and {maximum}")
    return raw


def _parse_string(raw: Any, key: str) -> str:
    if not isinstance(raw, str):
        raise BotConfigError(f"'{key}' must be a string, got {_describe(raw)}")
    return raw


def _parse_enum(raw: Any, key: str, enum_type: type[_E]) -> _E:
    if isinstance(raw, bool):
        raise BotConfigError(f"'{key}' must be one of {_member_names(enum_type)}")
    if isinstance(raw, int):
        try:
            return enum_type(raw)
        except ValueError as exc:
            raise BotConfigError(f"'{key}' has unknown value {raw}") from exc
    if isinstance(raw, str):
        token = _normalize_token(raw)
        for name, member in enum_type.__members__.items():
            if _normalize_token(name) == token:
                return member
        raise BotConfigError(f"'{key}' has unknown value '{raw}'")
    raise BotConfigError(f"'{key}' must be one of {_member_names(enum_type)}, got {_describe(raw)}")


def _parse_flags(raw: Any, key: str, flag_type: type[_F]) -> _F:
    if isinstance(raw, str):
        items: list[Any] = [part for part in (chunk.strip() for chunk in raw.split(",")) if part]
    elif isinstance(raw, list):
        items = raw
    elif isinstance(raw, int) and not isinstance(raw, bool):
        items = [raw]
    else:
        raise BotConfigError(f"'{key}' must be an integer, a name list or a string, got {_describe(raw)}")

    all_bits = 0
    for member in flag_type:
        all_bits |= member.value
    result = flag_type(0)
    for item in items:
        if isinstance(item, int) and not isinstance(item, bool):
            if item < 0 or item & ~all_bits:
                raise BotConfigError(f"'{key}' has unknown flag bits in {item}")
            result |= flag_type(item)
            continue
        if isinstance(item, str):
            token = _normalize_token(item)
            matched = [member for name, member in flag_type.__members__.items() if _normalize_token(name) == token]
            if not matched:
                raise BotConfigError(f"'{key}' has unknown flag '{item}'")
            result |= matched[0]
            continue
        raise BotConfigError(f"'{key}' entries must be flag names or integers, got {_describe(item)}")
    return result


def _member_names(enum_type: type[IntEnum]) -> str:
    return ", ".join(enum_type.__members__)


def _parse_lootable_item_types(raw: Any, key: str) -> frozenset[ItemType]:
    if not isinstance(raw, list):
        raise BotConfigError(f"'{key}' must be a list, got {_describe(raw)}")
    # Start empty and take exactly what the document lists.
    return frozenset(_parse_enum(item, key, ItemType) for item in raw)


def _parse_idle_game_ids(raw: Any, key: str) -> tuple[int, ...]:
    if not isinstance(raw, list):
        raise BotConfigError(f"'{key}' must be a list, got {_describe(raw)}")
    seen: dict[int, None] = {}
    for item in raw:
        seen.setdefault(_parse_int(item, key, maximum=MAX_UINT32), None)
    return tuple(seen)


def _parse_user_permissions(raw: Any, key: str) -> dict[int, Permission]:
    if not isinstance(raw, dict):
        raise BotConfigError(f"'{key}' must be an object, got {_describe(raw)}")
    permissions: dict[int, Permission] = {}
    for steam_id_raw, permission_raw in raw.items():
        steam_id_text = str(steam_id_raw).strip()
        if not (steam_id_text.isascii() and steam_id_text.isdigit()):
            raise BotConfigError(f"'{key}' has invalid account identifier '{steam_id_raw}'")
        steam_id = int(steam_id_text)
        if steam_id > MAX_UINT64:
            raise BotConfigError(f"'{key}' account identifier {steam_id} is out of range")
        permissions[steam_id] = _parse_enum(permission_raw, f"{key}.{steam_id_text}", Permission)
    return permissions


def _dump_identity(value: Any) -> Any:
    return value


def _dump_int(value: int) -> int:
    return int(value)


@dataclass(frozen=True, slots=True)
class FieldSpec:
    attribute: str
    key: str
    parse: Callable[[Any, str], Any]
    required: bool = True
    default: Any = None
    aliases: tuple[str, ...] = ()
    dump: Callable[[Any], Any] = _dump_identity


FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("accept_gifts", "acceptGifts", _parse_bool),
    FieldSpec("card_drops_restricted", "cardDropsRestricted", _parse_bool),
    FieldSpec("custom_game_played_while_farming", "customGamePlayedWhileFarming", _parse_string, required=False),
    FieldSpec("custom_game_played_while_idle", "customGamePlayedWhileIdle", _parse_string, required=False),
    FieldSpec("dismiss_inventory_notifications", "dismissInventoryNotifications", _parse_bool),
    FieldSpec("enabled", "enabled", _parse_bool),
    FieldSpec(
        "farming_order",
        "farmingOrder",
        lambda raw, key: _parse_enum(raw, key, FarmingOrder),
        dump=_dump_int,
    ),
    FieldSpec("farm_offline", "farmOffline", _parse_bool),
    FieldSpec(
        "idle_game_ids",
        "idleGameIDs",
        _parse_idle_game_ids,
        aliases=("GamesPlayedWhileIdle",),
        dump=list,
    ),
    FieldSpec("handle_offline_messages", "handleOfflineMessages", _parse_bool),
    FieldSpec("is_bot_account", "isBotAccount", _parse_bool),
    FieldSpec(
        "lootable_item_types",
        "lootableItemTypes",
        _parse_lootable_item_types,
        aliases=("LootableTypes",),
        dump=lambda value: sorted(int(item) for item in value),
    ),
    FieldSpec(
        "password_format",
        "passwordFormat",
        lambda raw, key: _parse_enum(raw, key, PasswordFormat),
        dump=_dump_int,
    ),
    FieldSpec("paused", "paused", _parse_bool),
    FieldSpec(
        "redeeming_preferences",
        "redeemingPreferences",
        lambda raw, key: _parse_flags(raw, key, RedeemingPreferences),
        dump=_dump_int,
    ),
    FieldSpec("send_on_farming_finished", "sendOnFarmingFinished", _parse_bool),
    FieldSpec(
        "send_trade_period",
        "sendTradePeriod",
        lambda raw, key: _parse_int(raw, key, maximum=MAX_UINT8),
    ),
    FieldSpec("shutdown_on_farming_finished", "shutdownOnFarmingFinished", _parse_bool),
    FieldSpec(
        "steam_master_clan_id",
        "steamMasterClanID",
        lambda raw, key: _parse_int(raw, key, maximum=MAX_UINT64),
    ),
    FieldSpec("steam_trade_token", "steamTradeToken", _parse_string, required=False),
    FieldSpec(
        "user_permissions",
        "userPermissions",
        _parse_user_permissions,
        aliases=("SteamUserPermissions",),
        dump=lambda value: {str(steam_id): int(permission) for steam_id, permission in value.items()},
    ),
    FieldSpec(
        "trading_preferences",
        "tradingPreferences",
        lambda raw, key: _parse_flags(raw, key, TradingPreferences),
        dump=_dump_int,
    ),
    FieldSpec("login", "login", _parse_string, required=False, aliases=("SteamLogin",)),
    FieldSpec(
        "parental_pin",
        "parentalPIN",
        _parse_string,
        required=False,
        default=DEFAULT_PARENTAL_PIN,
        aliases=("SteamParentalPIN",),
    ),
    FieldSpec("password", "password", _parse_string, required=False, aliases=("SteamPassword",)),
)


def _index_fields() -> dict[str, FieldSpec]:
    index: dict[str, FieldSpec] = {}
    for entry in FIELDS:
        for name in (entry.key, *entry.aliases):
            index[name.lower()] = entry
    return index


_FIELD_INDEX = _index_fields()


def _collect(document: Mapping[str, Any]) -> dict[str, tuple[str, Any]]:
    found: dict[str, tuple[str, Any]] = {}
    for raw_key, value in document.items():
        entry = _FIELD_INDEX.get(str(raw_key).lower())
        if entry is None:
            continue
        if entry.attribute in found:
            previous_key = found[entry.attribute][0]
            raise BotConfigError(f"'{entry.key}' is given twice (as '{previous_key}' and '{raw_key}')")
        found[entry.attribute] = (str(raw_key), value)
    return found


def parse_bot_config(document: Any) -> BotConfig | None:
    """Build a :class:`BotConfig` from a decoded JSON document.

    Returns ``None`` for a ``null`` document. Every other malformed input
    raises :class:`BotConfigError` naming the offending key.
    """

    if document is None:
        return None
    if not isinstance(document, Mapping):
        raise BotConfigError(f"bot config root must be an object, got {_describe(document)}")

    found = _collect(document)
    values: dict[str, Any] = {}
    for entry in FIELDS:
        if entry.attribute not in found:
            if entry.required:
                raise BotConfigError(f"required property '{entry.key}' not found")
            values[entry.attribute] = entry.default
            continue
        key, raw = found[entry.attribute]
        if raw is None:
            if entry.required:
                raise BotConfigError(f"required property '{entry.key}' must not be null")
            values[entry.attribute] = entry.default
            continue
        values[entry.attribute] = entry.parse(raw, key)
    return BotConfig(**values)
