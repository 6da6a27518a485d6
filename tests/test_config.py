"""Tests for SinkConfig (env vars, YAML file, overrides) and level parsing."""

from __future__ import annotations

import pytest
import yaml

from hourlog.config import SinkConfig
from hourlog.errors import ConfigError
from hourlog.levels import Level, parse_level

_ENV_VARS = [
    "HOURLOG_DIR",
    "HOURLOG_PREFIX",
    "HOURLOG_LINK_NAME",
    "HOURLOG_WEBHOOK_URL",
    "HOURLOG_BOT_NAME",
    "HOURLOG_CHANNEL",
    "HOURLOG_ALERT_LEVEL",
    "HOURLOG_ALERT_QUEUE_SIZE",
    "HOURLOG_ALERT_TIMEOUT",
    "HOURLOG_CLOCK_INTERVAL",
    "HOURLOG_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestParseLevel:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("error", Level.ERROR),
            ("ERROR", Level.ERROR),
            (" warn ", Level.WARNING),
            ("fatal", Level.CRITICAL),
            (0, Level.DEBUG),
            (Level.INFO, Level.INFO),
        ],
    )
    def test_accepts(self, raw, expected):
        assert parse_level(raw) is expected

    @pytest.mark.parametrize("raw", ["loud", 42, ""])
    def test_rejects(self, raw):
        with pytest.raises(ConfigError, match="Unknown level"):
            parse_level(raw)

    def test_ordering(self):
        assert Level.DEBUG < Level.INFO < Level.WARNING < Level.ERROR < Level.CRITICAL


class TestDefaults:
    def test_default_values(self):
        cfg = SinkConfig()
        assert cfg.directory == "./logs"
        assert cfg.prefix == "text"
        assert cfg.link_name == "text.log"
        assert cfg.webhook_url is None
        assert cfg.alerts_enabled is False
        assert cfg.bot_name == "hourlog"
        assert cfg.alert_level is Level.ERROR
        assert cfg.alert_queue_size == 100
        assert cfg.clock_interval == 1.0

    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("HOURLOG_DIR", "/var/log/app")
        monkeypatch.setenv("HOURLOG_WEBHOOK_URL", "https://hooks.example.test/x")
        monkeypatch.setenv("HOURLOG_ALERT_LEVEL", "critical")
        monkeypatch.setenv("HOURLOG_ALERT_QUEUE_SIZE", "7")
        cfg = SinkConfig()
        assert cfg.directory == "/var/log/app"
        assert cfg.alerts_enabled is True
        assert cfg.alert_level is Level.CRITICAL
        assert cfg.alert_queue_size == 7

    def test_empty_webhook_env_disables_alerts(self, monkeypatch):
        monkeypatch.setenv("HOURLOG_WEBHOOK_URL", "")
        assert SinkConfig().alerts_enabled is False

    def test_bad_integer_env(self, monkeypatch):
        monkeypatch.setenv("HOURLOG_ALERT_QUEUE_SIZE", "lots")
        with pytest.raises(ConfigError, match="HOURLOG_ALERT_QUEUE_SIZE"):
            SinkConfig()

    def test_bad_number_env(self, monkeypatch):
        monkeypatch.setenv("HOURLOG_CLOCK_INTERVAL", "soon")
        with pytest.raises(ConfigError, match="HOURLOG_CLOCK_INTERVAL"):
            SinkConfig()

    @pytest.mark.parametrize(
        "kwargs", [{"alert_queue_size": 0}, {"clock_interval": 0}, {"alert_level": "nope"}]
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            SinkConfig(**kwargs)


class TestYAMLLoading:
    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "hourlog.yaml"
        path.write_text(yaml.dump({"directory": "/srv/logs", "channel": "#ops", "alert_level": "warning"}))
        cfg = SinkConfig.load(path)
        assert cfg.directory == "/srv/logs"
        assert cfg.channel == "#ops"
        assert cfg.alert_level is Level.WARNING

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "hourlog.yaml"
        path.write_text(yaml.dump({"directory": "/from/yaml", "prefix": "yaml"}))
        monkeypatch.setenv("HOURLOG_DIR", "/from/env")
        cfg = SinkConfig.load(path)
        assert cfg.directory == "/from/env"
        assert cfg.prefix == "yaml"

    def test_explicit_overrides_everything(self, tmp_path, monkeypatch):
        path = tmp_path / "hourlog.yaml"
        path.write_text(yaml.dump({"directory": "/from/yaml"}))
        monkeypatch.setenv("HOURLOG_DIR", "/from/env")
        cfg = SinkConfig.load(path, directory="/explicit")
        assert cfg.directory == "/explicit"

    def test_missing_file_uses_defaults(self, tmp_path):
        assert SinkConfig.load(tmp_path / "absent.yaml").directory == "./logs"

    def test_no_path(self):
        assert SinkConfig.load().prefix == "text"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "hourlog.yaml"
        path.write_text("")
        assert SinkConfig.load(path).prefix == "text"

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "hourlog.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="expected a mapping"):
            SinkConfig.load(path)

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "hourlog.yaml"
        path.write_text(yaml.dump({"retention_days": 7}))
        with pytest.raises(ConfigError, match="retention_days"):
            SinkConfig.load(path)

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("clock_interval", "fast"),
            ("alert_timeout", [5]),
            ("alert_queue_size", "many"),
            ("alert_queue_size", True),
        ],
    )
    def test_wrongly_typed_value_rejected(self, tmp_path, key, value):
        path = tmp_path / "hourlog.yaml"
        path.write_text(yaml.dump({key: value}))
        with pytest.raises(ConfigError, match=key):
            SinkConfig.load(path)

    def test_numeric_strings_coerced(self, tmp_path):
        path = tmp_path / "hourlog.yaml"
        path.write_text('clock_interval: "0.5"\nalert_queue_size: "7"\n')
        cfg = SinkConfig.load(path)
        assert cfg.clock_interval == 0.5
        assert cfg.alert_queue_size == 7
