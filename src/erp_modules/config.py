"""Configuration helpers for ERP modules.

Settings come from an optional JSON file (sections `database`, `server`,
`cache`, `auth`, `notification`, `retry`) overlaid by `ERP_*` environment
variables. The resulting `AppConfig` is passed explicitly through the
`ERPContext`; there is no module-level config.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import json
import math
import os
from pathlib import Path
from typing import Any

from .errors import ConfigError

SUPPORTED_DATABASE_TYPES = {"postgres", "mysql", "sqlite", "mssql"}
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class DatabaseConfig:
    type: str = "sqlite"
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    name: str = "erp.db"


@dataclass(frozen=True)
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    secret_key: str | None = None
    cache_default_ttl_seconds: float = 300.0
    cache_max_entries: int | None = None
    auth_cache_ttl_seconds: float = 60.0
    notification_webhook_url: str | None = None
    notification_timeout_seconds: float = 10.0
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 0.5
    retry_max_delay_seconds: float = 8.0
    # read by embedding applications before running their schema migrators
    skip_migration: bool = False

    def redacted(self) -> dict[str, Any]:
        data = asdict(self)
        if data["secret_key"]:
            data["secret_key"] = "***"
        if data["database"]["password"]:
            data["database"]["password"] = "***"
        return data


def _read_config_file(path: str) -> dict[str, Any]:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc.__class__.__name__}") from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return payload


class _Layers:
    def __init__(self, payload: dict[str, Any]) -> None:
        self._payload = payload

    def pick(self, env_name: str, section: str, key: str) -> Any:
        value = os.getenv(env_name)
        if value is not None:
            return value
        block = self._payload.get(section)
        if isinstance(block, dict):
            return block.get(key)
        return None


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_float(value: Any, default: float, key: str, *, minimum: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}", key=key) from exc
    if math.isnan(number) or number < minimum:
        raise ConfigError(f"{key} must be >= {minimum}, got {number}", key=key)
    return number


def _as_int(value: Any, default: int | None, key: str, *, minimum: int = 0) -> int | None:
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got {value!r}", key=key) from exc
    if number < minimum:
        raise ConfigError(f"{key} must be >= {minimum}, got {number}", key=key)
    return number


def _as_bool(value: Any, default: bool, key: str) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{key} must be a boolean, got {value!r}", key=key)


def _load_database(layers: _Layers) -> DatabaseConfig:
    db_type = (_as_str(layers.pick("ERP_DATABASE_TYPE", "database", "type")) or "sqlite").lower()
    if db_type not in SUPPORTED_DATABASE_TYPES:
        raise ConfigError(f"Unsupported database type: {db_type}", key="database.type")
    return DatabaseConfig(
        type=db_type,
        host=_as_str(layers.pick("ERP_DATABASE_HOST", "database", "host")),
        port=_as_int(layers.pick("ERP_DATABASE_PORT", "database", "port"), None, "database.port", minimum=1),
        user=_as_str(layers.pick("ERP_DATABASE_USER", "database", "user")),
        password=_as_str(layers.pick("ERP_DATABASE_PASSWORD", "database", "password")),
        name=_as_str(layers.pick("ERP_DATABASE_NAME", "database", "name")) or "erp.db",
    )


def load_config(path: str | None = None) -> AppConfig:
    config_path = path or os.getenv("ERP_CONFIG_FILE") or None
    payload = _read_config_file(config_path) if config_path else {}
    layers = _Layers(payload)

    return AppConfig(
        database=_load_database(layers),
        secret_key=_as_str(layers.pick("ERP_SECRET_KEY", "server", "secret_key")),
        cache_default_ttl_seconds=_as_float(
            layers.pick("ERP_CACHE_TTL_SECONDS", "cache", "ttl_seconds"), 300.0, "cache.ttl_seconds"
        ),
        cache_max_entries=_as_int(
            layers.pick("ERP_CACHE_MAX_ENTRIES", "cache", "max_entries"), None, "cache.max_entries", minimum=1
        ),
        auth_cache_ttl_seconds=_as_float(
            layers.pick("ERP_AUTH_CACHE_TTL_SECONDS", "auth", "cache_ttl_seconds"), 60.0, "auth.cache_ttl_seconds"
        ),
        notification_webhook_url=_as_str(
            layers.pick("ERP_NOTIFICATION_WEBHOOK_URL", "notification", "webhook_url")
        ),
        notification_timeout_seconds=_as_float(
            layers.pick("ERP_NOTIFICATION_TIMEOUT_SECONDS", "notification", "timeout_seconds"),
            10.0,
            "notification.timeout_seconds",
        ),
        retry_max_attempts=_as_int(
            layers.pick("ERP_RETRY_MAX_ATTEMPTS", "retry", "max_attempts"), 3, "retry.max_attempts", minimum=1
        ),
        retry_base_delay_seconds=_as_float(
            layers.pick("ERP_RETRY_BASE_DELAY_SECONDS", "retry", "base_delay_seconds"), 0.5, "retry.base_delay_seconds"
        ),
        retry_max_delay_seconds=_as_float(
            layers.pick("ERP_RETRY_MAX_DELAY_SECONDS", "retry", "max_delay_seconds"), 8.0, "retry.max_delay_seconds"
        ),
        skip_migration=_as_bool(layers.pick("ERP_SKIP_MIGRATION", "database", "skip_migration"), False, "database.skip_migration"),
    )
