"""
tests/test_config.py
Config loading order (defaults → JSON file → environment), demo secret, smells.
"""

import json
import logging

from tokenbridge.config import (
    CONFIG_FILENAME,
    DEMO_SECRET_KEY,
    BridgeConfig,
    config_smells,
    load_config,
    log_config_summary,
    resolve_secret_key,
    save_config,
)


class TestLoadConfig:
    def test_defaults_when_nothing_configured(self, tmp_path):
        cfg = load_config(tmp_path, environ={})
        assert cfg.app_code == ""
        assert cfg.access_key == ""
        assert cfg.secret_key == ""
        assert cfg.demo_mode is False
        assert cfg.timeout_sec == 30
        assert list(cfg.models) == ["UsersInfo", "UserPlan", "Orders", "Suppliers"]

    def test_environment_values(self, tmp_path):
        cfg = load_config(tmp_path, environ={
            "ACCESS_KEY":            "ak-1",
            "LOVRABET_APP_CODE":     "app-1",
            "SECRET_KEY":            "sk-1",
            "OPENAPI_BASE_URL":      "http://upstream.local",
            "API_ENV":               "daily",
            "TOKENBRIDGE_DEMO_MODE": "yes",
            "OPENAPI_TIMEOUT_SEC":   "5",
            "OPENAPI_MODELS":        '{"Orders": "ds-orders"}',
        })
        assert (cfg.access_key, cfg.app_code, cfg.secret_key) == ("ak-1", "app-1", "sk-1")
        assert cfg.api_base_url == "http://upstream.local"
        assert cfg.env == "daily"
        assert cfg.demo_mode is True
        assert cfg.timeout_sec == 5
        assert cfg.models == {"Orders": "ds-orders"}

    def test_file_then_environment_override(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text(json.dumps({
            "app_code": "app-file",
            "access_key": "ak-file",
            "models": {"UsersInfo": "ds-users", "Orders": "ds-orders"},
        }), encoding="utf-8")
        cfg = load_config(tmp_path, environ={"ACCESS_KEY": "ak-env"})
        assert cfg.app_code == "app-file"
        assert cfg.access_key == "ak-env"
        assert cfg.models == {"UsersInfo": "ds-users", "Orders": "ds-orders"}

    def test_broken_file_falls_back_to_defaults(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING)
        (tmp_path / CONFIG_FILENAME).write_text("{not json", encoding="utf-8")
        cfg = load_config(tmp_path, environ={})
        assert cfg.app_code == ""
        assert any("Config load failed" in r.getMessage() for r in caplog.records)

    def test_invalid_values_ignored(self, tmp_path):
        cfg = load_config(tmp_path, environ={
            "OPENAPI_TIMEOUT_SEC": "soon",
            "OPENAPI_MODELS":      "[1, 2]",
            "TOKENBRIDGE_DEMO_MODE": "off",
        })
        assert cfg.timeout_sec == 30
        assert "UsersInfo" in cfg.models
        assert cfg.demo_mode is False

    def test_secrets_hidden_from_repr(self):
        cfg = BridgeConfig(app_code="app", access_key="ak-hidden", secret_key="sk-hidden")
        assert "ak-hidden" not in repr(cfg)
        assert "sk-hidden" not in repr(cfg)


class TestSaveConfig:
    def test_round_trip_without_secrets(self, tmp_path):
        cfg = BridgeConfig(app_code="app", access_key="ak", secret_key="sk",
                           models={"Orders": "ds-orders"})
        path = save_config(cfg, tmp_path)
        stored = json.loads(path.read_text(encoding="utf-8"))
        assert "access_key" not in stored
        assert "secret_key" not in stored
        loaded = load_config(tmp_path, environ={})
        assert loaded.app_code == "app"
        assert loaded.models == {"Orders": "ds-orders"}
        assert loaded.access_key == ""


class TestSecretResolution:
    def test_configured_secret(self):
        assert resolve_secret_key(BridgeConfig(secret_key="sk")) == "sk"

    def test_no_secret_no_demo(self):
        assert resolve_secret_key(BridgeConfig()) is None

    def test_demo_fallback_logged(self, caplog):
        caplog.set_level(logging.WARNING)
        assert resolve_secret_key(BridgeConfig(demo_mode=True)) == DEMO_SECRET_KEY
        warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        assert warnings
        assert all(DEMO_SECRET_KEY not in m for m in warnings)


class TestSmells:
    def test_same_access_and_secret_key_flagged(self):
        smells = config_smells(BridgeConfig(app_code="app", access_key="same", secret_key="same"))
        assert smells == ["ACCESS_KEY and SECRET_KEY are the same value"]

    def test_clean_config(self):
        assert config_smells(BridgeConfig(app_code="app", access_key="ak", secret_key="sk")) == []

    def test_summary_logs_presence_only(self, caplog):
        caplog.set_level(logging.INFO)
        log_config_summary(BridgeConfig(app_code="app", access_key="ak-zzz", secret_key="sk-zzz"))
        text = " ".join(r.getMessage() for r in caplog.records)
        assert "access_key_set=True" in text
        assert "ak-zzz" not in text
        assert "sk-zzz" not in text
