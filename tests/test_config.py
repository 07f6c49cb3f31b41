import json

import pytest

from extension_core.config import ENV_OVERRIDES, load_config
from extension_core.constants import EXTENSION_LOAD_TIMEOUT
from extension_core.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(ENV_OVERRIDES) + ["EXTENSION_CONFIG_FILE"]:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()
    assert config.db_url.startswith("sqlite:///")
    assert config.load_timeout == EXTENSION_LOAD_TIMEOUT
    assert config.protected_namespaces == ["core"]
    assert config.log_level == "INFO"
    assert config.sql_echo is False


def test_yaml_file(tmp_path):
    path = tmp_path / "host.yaml"
    path.write_text(
        "db_url: sqlite:///tmp/ext.db\n"
        "load_timeout: 15\n"
        "protected_namespaces: [core, auth]\n"
        "log_level: debug\n"
    )
    config = load_config(path)
    assert config.db_url == "sqlite:///tmp/ext.db"
    assert config.load_timeout == 15
    assert config.protected_namespaces == ["core", "auth"]
    assert config.log_level == "DEBUG"


def test_json_file_from_env(tmp_path, monkeypatch):
    path = tmp_path / "host.json"
    path.write_text(json.dumps({"sql_echo": True}))
    monkeypatch.setenv("EXTENSION_CONFIG_FILE", str(path))
    assert load_config().sql_echo is True


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "host.yaml"
    path.write_text("db_url: sqlite:///from-file.db\n")
    monkeypatch.setenv("CORE_DB_URL", "postgresql://user:pass@db/ext")
    monkeypatch.setenv("CORE_DB_ECHO", "yes")
    monkeypatch.setenv("EXTENSION_PROTECTED_NAMESPACES", "core, billing ,")

    config = load_config(path)
    assert config.db_url == "postgresql://user:pass@db/ext"
    assert config.sql_echo is True
    assert config.protected_namespaces == ["core", "billing"]


@pytest.mark.parametrize("raw", ["0", "-1"])
def test_non_positive_timeout_disables_it(monkeypatch, raw):
    monkeypatch.setenv("EXTENSION_LOAD_TIMEOUT", raw)
    assert load_config().load_timeout is None


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.yaml")


def test_unparseable_file(tmp_path):
    path = tmp_path / "host.yaml"
    path.write_text("db_url: [unclosed\n")
    with pytest.raises(ConfigError, match="Cannot parse"):
        load_config(path)


def test_file_must_hold_a_mapping(tmp_path):
    path = tmp_path / "host.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(path)


def test_invalid_values(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(ConfigError, match="Invalid host configuration"):
        load_config()
