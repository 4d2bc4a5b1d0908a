from requests import Response

from erp_modules.errors import (
    AuthError,
    ConfigError,
    MissingServiceError,
    NotificationError,
    normalize_error,
)


def _response(status: int, url: str = "https://hooks.example.com/erp?token=secret") -> Response:
    response = Response()
    response.status_code = status
    response.url = url
    return response


def test_normalize_notification_error_sanitizes_endpoint():
    exc = NotificationError("webhook", "Failed to deliver notification", response=_response(502))
    payload = normalize_error("notification.send", exc)["error"]
    assert payload["provider"] == "webhook"
    assert payload["http_status"] == 502
    assert payload["endpoint"] == "https://hooks.example.com/erp"
    assert payload["hint"] == "Check the notification webhook URL and that the receiver is up."


def test_normalize_rate_limited_notification():
    exc = NotificationError("webhook", "Failed", response=_response(429))
    payload = normalize_error("notification.send", exc)["error"]
    assert payload["hint"] == "Rate limit exceeded; retry with backoff."


def test_normalize_auth_and_service_errors():
    auth = normalize_error("auth.authenticate", AuthError("Invalid or expired token"))["error"]
    assert auth["status"] == 401
    assert auth["message"] == "Invalid or expired token"

    missing = normalize_error("context.service", MissingServiceError("finance"))["error"]
    assert missing["role"] == "finance"
    assert missing["message"] == "Service 'finance' is not registered."


def test_normalize_config_and_value_errors():
    config = normalize_error("config.load", ConfigError("bad", key="cache.ttl_seconds"))["error"]
    assert config["key"] == "cache.ttl_seconds"
    assert config["hint"] == "Check the config file and ERP_* environment variables."

    plain = normalize_error("notification.send", ValueError("Notification title is required."))["error"]
    assert plain["hint"] == "Check required parameters."
