import pytest
from pydantic import ValidationError

from retain.application.config import EngineConfig, resolve_config
from retain.domain.constants import DEFAULT_REFERENCE_RESPONSE_MS


def test_defaults(mock_home):
    config = EngineConfig()
    assert config.default_max_cards == 20
    assert config.due_fraction == 0.4
    assert config.new_fraction == 0.3
    assert config.reference_response_ms == DEFAULT_REFERENCE_RESPONSE_MS
    assert config.cache_enabled is True
    assert config.store_path == (mock_home / ".config/retain/cards.yaml").resolve()


def test_env_override(mock_home, monkeypatch):
    monkeypatch.setenv("RETAIN_DEFAULT_MAX_CARDS", "12")
    monkeypatch.setenv("RETAIN_CACHE_ENABLED", "false")
    monkeypatch.setenv("RETAIN_REFERENCE_RESPONSE_MS", '{"Beginner": 4000}')

    config = EngineConfig()

    assert config.default_max_cards == 12
    assert config.cache_enabled is False
    assert config.reference_response_ms == {"Beginner": 4000}


def test_toml_file(mock_home, monkeypatch):
    config_dir = mock_home / ".config/retain"
    config_dir.mkdir(parents=True)
    (config_dir / "config.toml").write_text("default_max_cards = 7\ndue_fraction = 0.5\n")

    config = EngineConfig()
    assert config.default_max_cards == 7
    assert config.due_fraction == 0.5

    # Environment wins over the file.
    monkeypatch.setenv("RETAIN_DEFAULT_MAX_CARDS", "9")
    assert EngineConfig().default_max_cards == 9


def test_store_path_expanded(mock_home):
    config = EngineConfig(store_path="~/decks/cards.yaml")
    assert config.store_path == (mock_home / "decks/cards.yaml").resolve()


@pytest.mark.parametrize(
    "overrides",
    [
        {"due_fraction": 1.5},
        {"new_fraction": -0.1},
        {"due_fraction": 0.7, "new_fraction": 0.5},
        {"cache_ttl_seconds": 0},
        {"store_timeout": -1},
        {"default_max_cards": -3},
        {"cache_max_entries": 0},
    ],
)
def test_invalid_values_rejected(mock_home, overrides):
    with pytest.raises(ValidationError):
        EngineConfig(**overrides)


def test_resolve_config_drops_unset_overrides(mock_home, monkeypatch):
    monkeypatch.setenv("RETAIN_DEFAULT_MAX_CARDS", "15")

    config = resolve_config({"default_max_cards": None, "verbose": 2})

    assert config.default_max_cards == 15
    assert config.verbose == 2


def test_resolve_config_without_overrides(mock_home):
    assert resolve_config().default_max_cards == 20
