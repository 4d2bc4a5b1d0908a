"""Ambient context shared by ERP modules.

The context carries the explicit `AppConfig`, an opaque database handle, the
current request and a registry of services indexed by `ServiceRole`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import threading
from typing import Any, TypeVar

from .config import AppConfig
from .errors import MissingServiceError

S = TypeVar("S")


class ServiceRole(str, Enum):
    INVENTORY = "inventory"
    MANUFACTURE = "manufacture"
    FINANCE = "finance"
    ORDER = "order"
    DISTRIBUTION = "distribution"
    AUTH = "auth"
    ADMIN_AUTH = "admin_auth"
    RBAC = "rbac"
    COMPANY = "company"
    CONTACT = "contact"
    USER = "user"
    FILE = "file"
    NOTIFICATION = "notification"
    CUSTOMER_RELATIONSHIP = "customer_relationship"
    CONTENT_MANAGEMENT = "content_management"
    PROJECT_MANAGEMENT = "project_management"
    HRIS = "hris"


class ServiceRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._services: dict[ServiceRole, Any] = {}

    def register(self, role: ServiceRole, service: Any) -> None:
        role = ServiceRole(role)
        with self._lock:
            self._services[role] = service

    def get(self, role: ServiceRole, expected_type: type[S]) -> S:
        """Return the service for `role`, checked against `expected_type`.

        Raises `MissingServiceError` when nothing is registered for the role and
        `TypeError` when the registered service has another type.
        """
        role = ServiceRole(role)
        with self._lock:
            service = self._services.get(role)
        if service is None:
            raise MissingServiceError(role.value)
        if not isinstance(service, expected_type):
            raise TypeError(
                f"Service '{role.value}' is {type(service).__name__}, expected {expected_type.__name__}"
            )
        return service

    def has(self, role: ServiceRole) -> bool:
        with self._lock:
            return ServiceRole(role) in self._services

    def roles(self) -> list[ServiceRole]:
        with self._lock:
            return sorted(self._services, key=lambda r: r.value)


@dataclass
class ERPContext:
    config: AppConfig
    db: Any = None
    request: Any = None
    services: ServiceRegistry = field(default_factory=ServiceRegistry)
    identity: Any = None
    third_party_services: dict[str, Any] = field(default_factory=dict)

    @property
    def skip_migration(self) -> bool:
        """True when the embedding application should not run its schema migrators."""
        return self.config.skip_migration

    def add_third_party_service(self, name: str, service: Any) -> None:
        self.third_party_services[name] = service

    def third_party_service(self, name: str) -> Any:
        try:
            return self.third_party_services[name]
        except KeyError:
            raise MissingServiceError(name, f"Third-party service '{name}' is not registered.") from None

    def with_request(self, request: Any) -> "ERPContext":
        # shares config, db and services; identity is per request
        return ERPContext(
            config=self.config,
            db=self.db,
            request=request,
            services=self.services,
            third_party_services=self.third_party_services,
        )
