"""Notification facade and providers."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

from .config import AppConfig
from .errors import NotificationError
from .retry import with_retries

logger = logging.getLogger("erp-modules")


class NotificationProvider(Protocol):
    def send_notification(
        self,
        to: str,
        title: str,
        message: str,
        data: Any = None,
        attachments: list[str] | None = None,
    ) -> None: ...

    def set_template(self, template: str, layout: str) -> None: ...


class WebhookNotificationProvider:
    """Deliver notifications as JSON POSTs to a webhook endpoint."""

    name = "webhook"

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        max_attempts: int = 3,
        base_delay_seconds: float = 0.5,
        max_delay_seconds: float = 8.0,
        session: requests.Session | None = None,
    ) -> None:
        if not url:
            raise ValueError("Webhook URL is required.")
        self._url = url
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._base_delay_seconds = base_delay_seconds
        self._max_delay_seconds = max_delay_seconds
        self._session = session or requests.Session()
        self._template: str | None = None
        self._layout: str | None = None

    def set_template(self, template: str, layout: str) -> None:
        self._template = template
        self._layout = layout

    def send_notification(
        self,
        to: str,
        title: str,
        message: str,
        data: Any = None,
        attachments: list[str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"to": to, "title": title, "message": message}
        if data is not None:
            payload["data"] = data
        if attachments:
            payload["attachments"] = list(attachments)
        if self._template:
            payload["template"] = self._template
            payload["layout"] = self._layout

        def _post() -> requests.Response:
            response = self._session.post(self._url, json=payload, timeout=self._timeout)
            response.raise_for_status()
            return response

        try:
            with_retries(
                _post,
                max_attempts=self._max_attempts,
                base_delay_seconds=self._base_delay_seconds,
                max_delay_seconds=self._max_delay_seconds,
            )
        except requests.RequestException as exc:
            raise NotificationError(
                self.name,
                f"Failed to deliver notification: {exc.__class__.__name__}",
                response=getattr(exc, "response", None),
            ) from exc


class NotificationService:
    def __init__(self, provider: NotificationProvider) -> None:
        self._provider = provider

    @property
    def provider(self) -> NotificationProvider:
        return self._provider

    def set_template(self, template: str, layout: str) -> None:
        self._provider.set_template(template, layout)

    def send_notification(
        self,
        to: str,
        title: str,
        message: str,
        data: Any = None,
        attachments: list[str] | None = None,
    ) -> None:
        if not (to or "").strip():
            raise ValueError("Notification recipient is required.")
        if not (title or "").strip():
            raise ValueError("Notification title is required.")
        self._provider.send_notification(to, title, message, data, attachments)
        logger.info("Notification sent to %s: %s", to, title)


def build_notification_service(config: AppConfig) -> NotificationService:
    if not config.notification_webhook_url:
        raise ValueError("ERP_NOTIFICATION_WEBHOOK_URL is not configured.")
    provider = WebhookNotificationProvider(
        config.notification_webhook_url,
        timeout=config.notification_timeout_seconds,
        max_attempts=config.retry_max_attempts,
        base_delay_seconds=config.retry_base_delay_seconds,
        max_delay_seconds=config.retry_max_delay_seconds,
    )
    return NotificationService(provider)
