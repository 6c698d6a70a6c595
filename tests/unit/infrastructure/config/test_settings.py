from pathlib import Path

import pytest

from catinfo.infrastructure.config import settings
from catinfo.infrastructure.config.settings import (
    get_api_key, get_cache_db_path, get_config, get_memory_limits, get_retry_settings,
    get_sweep_settings, load_configuration, set_config_for_testing,
)

@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Runs every test against an empty YAML layer and a clean environment."""
    monkeypatch.setattr(settings, "_config", {})
    monkeypatch.setattr(settings, "_loaded", False)
    for name in ("CAT_API_KEY", "API_KEY", "CACHE_MEMORY_MAX_ENTRIES", "API_BASE_URL"):
        monkeypatch.delenv(name, raising=False)

def test_defaults():
    assert get_memory_limits() == (100, 50 * 1024 * 1024)
    assert get_sweep_settings() == (86400.0, 30 * 86400.0, None)
    assert get_retry_settings() == {"max_retries": 3, "initial_delay": 0.5, "factor": 2.0}
    assert get_api_key() is None
    assert get_cache_db_path() == Path.home() / ".catinfo" / "cache" / "images.sqlite3"

def test_yaml_values_are_flattened(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "api:\n"
        "  base_url: https://api.example.com/v1\n"
        "cache:\n"
        "  memory:\n"
        "    max_entries: 5\n"
        "  disk:\n"
        "    path: ~/custom/cache.sqlite3\n",
        encoding="utf-8",
    )
    env_file = tmp_path / ".env"
    env_file.write_text("", encoding="utf-8")

    load_configuration(config_file=config_file, env_file=env_file, force=True)

    assert get_config("api.base_url") == "https://api.example.com/v1"
    assert get_memory_limits()[0] == 5
    assert get_cache_db_path() == Path.home() / "custom" / "cache.sqlite3"

def test_environment_overrides_yaml(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("cache:\n  memory:\n    max_entries: 5\n", encoding="utf-8")
    env_file = tmp_path / ".env"
    env_file.write_text("", encoding="utf-8")
    load_configuration(config_file=config_file, env_file=env_file, force=True)

    monkeypatch.setenv("CACHE_MEMORY_MAX_ENTRIES", "42")

    assert get_config("cache.memory.max_entries") == 42

def test_invalid_yaml_is_ignored(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("api: [unclosed", encoding="utf-8")
    env_file = tmp_path / ".env"
    env_file.write_text("", encoding="utf-8")

    load_configuration(config_file=config_file, env_file=env_file, force=True)

    assert get_config("api.base_url", "fallback") == "fallback"

def test_api_key_from_environment(monkeypatch):
    monkeypatch.setenv("CAT_API_KEY", "live_abc")
    assert get_api_key() == "live_abc"

def test_testing_overrides_take_precedence(monkeypatch):
    monkeypatch.setenv("CAT_API_KEY", "from-env")
    set_config_for_testing({"cat_api_key": "from-test", "cache.disk.sweep_initial_delay_seconds": 5})

    assert get_api_key() == "from-test"
    assert get_sweep_settings()[2] == 5.0
