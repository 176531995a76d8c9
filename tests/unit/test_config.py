import pytest

from pathlib import Path

from cardfarm.config.loader import DEFAULT_CONFIG_PATH, initialize_config, load_config, resolve_bots_directory
from cardfarm.config.schema import parse_config


def test_load_defaults() -> None:
    config = load_config(DEFAULT_CONFIG_PATH)
    assert config.environment == "development"
    assert config.bots.directory == "bots"
    assert config.bots.max_games_played_concurrently == 32
    assert config.bots.skip_disabled is False
    assert config.crypto.passphrase == ""
    assert config.logging.level == "INFO"
    assert config.logging.fmt == "ecs_json"
    assert config.logging.sink == "stdout"
    assert config.logging.file_path is None
    assert config.logging.service_name == "cardfarm"


def test_load_config_interpolates_crypto_passphrase(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CARDFARM_CRYPTO_KEY", "unit-test-passphrase")
    config = load_config(DEFAULT_CONFIG_PATH)
    assert config.crypto.passphrase == "unit-test-passphrase"


def test_load_config_requires_env_without_default(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CARDFARM_TEST_SECRET", raising=False)
    config_path = tmp_path / "cardfarm.yml"
    config_path.write_text("crypto:\n  passphrase: ${CARDFARM_TEST_SECRET}\n", encoding="utf-8")
    with pytest.raises(ValueError, match="missing required environment variable 'CARDFARM_TEST_SECRET'"):
        load_config(config_path)


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yml")


def test_load_config_empty_file_uses_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "cardfarm.yml"
    config_path.write_text("", encoding="utf-8")
    config = load_config(config_path)
    assert config.bots.max_games_played_concurrently == 32
    assert config.logging.fmt == "ecs_json"


def test_initialize_config_refuses_overwrite(tmp_path: Path) -> None:
    config_path = tmp_path / "config" / "cardfarm.yml"
    assert initialize_config(config_path) == config_path
    assert config_path.read_text(encoding="utf-8") == DEFAULT_CONFIG_PATH.read_text(encoding="utf-8")
    with pytest.raises(FileExistsError):
        initialize_config(config_path)
    initialize_config(config_path, force=True)


def test_resolve_bots_directory_relative_to_config(tmp_path: Path) -> None:
    config = parse_config({"bots": {"directory": "farm"}})
    assert resolve_bots_directory(config, tmp_path / "cardfarm.yml") == tmp_path / "farm"

    absolute = tmp_path / "elsewhere"
    config = parse_config({"bots": {"directory": str(absolute)}})
    assert resolve_bots_directory(config, tmp_path / "cardfarm.yml") == absolute


def test_parse_config_rejects_invalid_log_level() -> None:
    with pytest.raises(ValueError, match="invalid log level 'LOUD'"):
        parse_config({"logging": {"level": "loud"}})


def test_parse_config_rejects_invalid_log_format() -> None:
    with pytest.raises(ValueError, match="invalid log format"):
        parse_config({"logging": {"format": "xml"}})


def test_parse_config_rejects_invalid_log_sink() -> None:
    with pytest.raises(ValueError, match="invalid log sink"):
        parse_config({"logging": {"sink": "syslog"}})


def test_parse_config_rejects_non_object_section() -> None:
    with pytest.raises(ValueError, match="'bots' must be an object"):
        parse_config({"bots": ["a", "b"]})


def test_parse_config_rejects_zero_game_limit() -> None:
    with pytest.raises(ValueError, match="bots.max_games_played_concurrently must be greater than zero"):
        parse_config({"bots": {"max_games_played_concurrently": 0}})


@pytest.mark.parametrize("value", ["many", True, 3.9, 32.0, "-1", [32]])
def test_parse_config_rejects_non_integer_game_limit(value) -> None:
    with pytest.raises(ValueError, match="bots.max_games_played_concurrently must be an integer"):
        parse_config({"bots": {"max_games_played_concurrently": value}})


def test_parse_config_accepts_interpolated_game_limit(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CARDFARM_TEST_GAMES", "12")
    config_path = tmp_path / "cardfarm.yml"
    config_path.write_text("bots:\n  max_games_played_concurrently: ${CARDFARM_TEST_GAMES}\n", encoding="utf-8")
    assert load_config(config_path).bots.max_games_played_concurrently == 12
    assert parse_config({"bots": {"max_games_played_concurrently": 5}}).bots.max_games_played_concurrently == 5


def test_load_config_reports_invalid_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "cardfarm.yml"
    config_path.write_text("bots: [unterminated\n", encoding="utf-8")
    with pytest.raises(ValueError, match="is not valid YAML"):
        load_config(config_path)


def test_load_config_rejects_non_object_root(tmp_path: Path) -> None:
    config_path = tmp_path / "cardfarm.yml"
    config_path.write_text("- bots\n- crypto\n", encoding="utf-8")
    with pytest.raises(ValueError, match="must hold an object, got list"):
        load_config(str(config_path))


def test_load_config_names_key_of_missing_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CARDFARM_TEST_SECRET", raising=False)
    config_path = tmp_path / "cardfarm.yml"
    config_path.write_text("crypto:\n  passphrase: ${CARDFARM_TEST_SECRET}\n", encoding="utf-8")
    with pytest.raises(ValueError, match=r"referenced by 'crypto\.passphrase' in .*cardfarm\.yml"):
        load_config(config_path)


def test_parse_config_accepts_string_booleans() -> None:
    config = parse_config({"bots": {"skip_disabled": "yes"}})
    assert config.bots.skip_disabled is True
    with pytest.raises(ValueError, match="'bots.skip_disabled' must be a boolean"):
        parse_config({"bots": {"skip_disabled": "maybe"}})
