from __future__ import annotations

import os
from typing import Any

import pytest


# Keep default-config test runs deterministic regardless of the caller's shell.
os.environ.pop("CARDFARM_CRYPTO_KEY", None)


class RecordingSink:
    def __init__(self) -> None:
        self.null_errors: list[str] = []
        self.exceptions: list[BaseException] = []
        self.warnings: list[str] = []

    def log_null_error(self, name: str) -> None:
        self.null_errors.append(name)

    def log_generic_exception(self, exc: BaseException) -> None:
        self.exceptions.append(exc)

    def log_generic_warning(self, message: str) -> None:
        self.warnings.append(message)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def bot_document() -> dict[str, Any]:
    return {
        "enabled": True,
        "isBotAccount": False,
        "acceptGifts": False,
        "cardDropsRestricted": True,
        "dismissInventoryNotifications": False,
        "farmOffline": False,
        "handleOfflineMessages": False,
        "paused": False,
        "shutdownOnFarmingFinished": False,
        "sendOnFarmingFinished": False,
        "sendTradePeriod": 0,
        "farmingOrder": 0,
        "passwordFormat": 0,
        "redeemingPreferences": 0,
        "tradingPreferences": 0,
        "steamMasterClanID": 0,
        "lootableItemTypes": [1, 6, 8],
        "idleGameIDs": [],
        "userPermissions": {},
        "login": "farmer",
        "password": "hunter2",
    }
