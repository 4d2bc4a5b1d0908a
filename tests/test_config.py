import json

import pytest

from erp_modules.config import load_config
from erp_modules.errors import ConfigError


def test_load_config_defaults(monkeypatch):
    monkeypatch.delenv("ERP_CONFIG_FILE", raising=False)
    config = load_config()
    assert config.database.type == "sqlite"
    assert config.database.name == "erp.db"
    assert config.cache_default_ttl_seconds == 300.0
    assert config.cache_max_entries is None
    assert config.skip_migration is False


def test_load_config_file_with_env_overlay(monkeypatch, tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "database": {"type": "postgres", "host": "db", "port": 5432, "user": "erp", "password": "pw"},
                "server": {"secret_key": "s3cret"},
                "cache": {"ttl_seconds": 30, "max_entries": 1000},
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("ERP_CONFIG_FILE", str(config_path))
    monkeypatch.setenv("ERP_DATABASE_HOST", "db.internal")
    monkeypatch.setenv("ERP_SKIP_MIGRATION", "yes")

    config = load_config()
    assert config.database.type == "postgres"
    assert config.database.host == "db.internal"
    assert config.database.port == 5432
    assert config.secret_key == "s3cret"
    assert config.cache_default_ttl_seconds == 30.0
    assert config.cache_max_entries == 1000
    assert config.skip_migration is True

    redacted = config.redacted()
    assert redacted["secret_key"] == "***"
    assert redacted["database"]["password"] == "***"


def test_load_config_rejects_unknown_database(monkeypatch):
    monkeypatch.setenv("ERP_DATABASE_TYPE", "oracle")
    with pytest.raises(ConfigError) as excinfo:
        load_config()
    assert excinfo.value.key == "database.type"


def test_load_config_rejects_negative_ttl(monkeypatch):
    monkeypatch.setenv("ERP_CACHE_TTL_SECONDS", "-5")
    with pytest.raises(ConfigError):
        load_config()


def test_load_config_missing_or_invalid_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.json"))

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(broken))


def test_load_config_rejects_nan_ttl(monkeypatch):
    monkeypatch.setenv("ERP_AUTH_CACHE_TTL_SECONDS", "nan")
    with pytest.raises(ConfigError) as excinfo:
        load_config()
    assert excinfo.value.key == "auth.cache_ttl_seconds"
