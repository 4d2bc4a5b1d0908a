"""Error types and normalization for ERP modules."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit, urlunsplit

import requests

HINT_CONFIG = "Check the config file and ERP_* environment variables."
HINT_SERVICE = "Register the service on the ERP context before using it."
HINT_AUTH = "Send a valid 'Authorization: Bearer <token>' header."
HINT_NOTIFY = "Check the notification webhook URL and that the receiver is up."
HINT_RATE_LIMIT = "Rate limit exceeded; retry with backoff."
HINT_PARAMS = "Check required parameters."


class ConfigError(ValueError):
    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class MissingServiceError(RuntimeError):
    def __init__(self, role: str, message: str | None = None) -> None:
        super().__init__(message or f"Service '{role}' is not registered.")
        self.role = role


class AuthError(RuntimeError):
    status_code = 401

    def __init__(self, message: str) -> None:
        super().__init__(message)


class NotificationError(RuntimeError):
    def __init__(self, provider: str, message: str, response: Any = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.response = response


def _sanitize_url(url: str | None) -> str | None:
    if not url:
        return None
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def _extract_http_info(exc: BaseException) -> dict[str, Any]:
    response = getattr(exc, "response", None)
    if response is None:
        return {}

    info: dict[str, Any] = {}
    status_code = getattr(response, "status_code", None)
    endpoint = _sanitize_url(getattr(response, "url", None))
    if status_code is not None:
        info["http_status"] = status_code
    if endpoint:
        info["endpoint"] = endpoint
    return info


def normalize_error(operation: str, exc: BaseException) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "operation": operation,
        "type": exc.__class__.__name__,
        "message": str(exc),
    }
    payload.update(_extract_http_info(exc))

    if isinstance(exc, ConfigError):
        payload["hint"] = HINT_CONFIG
        if exc.key:
            payload["key"] = exc.key
    elif isinstance(exc, MissingServiceError):
        payload["role"] = exc.role
        payload["hint"] = HINT_SERVICE
    elif isinstance(exc, AuthError):
        payload["status"] = exc.status_code
        payload["hint"] = HINT_AUTH
    elif isinstance(exc, NotificationError):
        payload["provider"] = exc.provider
        payload["hint"] = HINT_RATE_LIMIT if payload.get("http_status") == 429 else HINT_NOTIFY
    elif isinstance(exc, requests.RequestException):
        payload["hint"] = HINT_NOTIFY
    elif isinstance(exc, ValueError):
        payload["hint"] = HINT_PARAMS

    return {"error": payload}
