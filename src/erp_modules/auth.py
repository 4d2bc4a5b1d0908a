"""Bearer-token authentication with memoized verification."""

from __future__ import annotations

from dataclasses import dataclass, field
import hashlib
import logging
import time
from typing import Any, Callable

from .cache import CacheManager
from .config import AppConfig
from .context import ERPContext
from .errors import AuthError

logger = logging.getLogger("erp-modules")

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    user_id: str
    claims: dict[str, Any] = field(default_factory=dict)


def extract_bearer_token(header: str | None) -> str:
    if not header or not header.strip():
        raise AuthError("Authorization header is required")
    if not header.startswith(BEARER_PREFIX):
        raise AuthError("Invalid authorization format")
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthError("Invalid authorization format")
    return token


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _expires_at(claims: dict[str, Any]) -> float | None:
    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return float(exp)


def _identity_from_claims(claims: dict[str, Any]) -> Identity:
    for name in ("userID", "user_id", "sub"):
        user_id = claims.get(name)
        if user_id is not None and user_id != "":
            return Identity(user_id=str(user_id), claims=dict(claims))
    raise AuthError("Invalid or expired token")


class BearerAuthenticator:
    """Resolve `Authorization` headers to identities.

    `verifier` receives the raw token and returns its claims, raising on an
    invalid token. Successful verifications are kept in a `CacheManager` for
    `ttl_seconds`, keyed by a digest of the token; failures are not cached.
    A cached identity whose `exp` claim has passed on `clock` (unix seconds)
    is dropped and rejected.
    """

    def __init__(
        self,
        verifier: Callable[[str], dict[str, Any]],
        *,
        cache: CacheManager[Identity] | None = None,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._verifier = verifier
        self._cache = cache if cache is not None else CacheManager[Identity](name="auth")
        self._ttl_seconds = ttl_seconds
        self._clock = clock or time.time

    @classmethod
    def from_config(
        cls, config: AppConfig, verifier: Callable[[str], dict[str, Any]]
    ) -> "BearerAuthenticator":
        cache = CacheManager[Identity](max_entries=config.cache_max_entries, name="auth")
        return cls(verifier, cache=cache, ttl_seconds=config.auth_cache_ttl_seconds)

    def authenticate(self, header: str | None) -> Identity:
        token = extract_bearer_token(header)
        key = _token_key(token)
        identity = self._cache.remember(key, self._ttl_seconds, lambda: self._verify(token))
        expires_at = _expires_at(identity.claims)
        if expires_at is not None and expires_at <= self._clock():
            self._cache.forget(key)
            raise AuthError("Invalid or expired token")
        return identity

    def authenticate_context(self, ctx: ERPContext, header: str | None) -> Identity:
        identity = self.authenticate(header)
        ctx.identity = identity
        return identity

    def revoke(self, token: str) -> None:
        self._cache.forget(_token_key(token))

    def _verify(self, token: str) -> Identity:
        try:
            claims = self._verifier(token)
        except Exception as exc:
            logger.debug("Token verification failed: %s", exc.__class__.__name__)
            raise AuthError("Invalid or expired token") from exc
        if not isinstance(claims, dict):
            raise AuthError("Invalid or expired token")
        expires_at = _expires_at(claims)
        if expires_at is not None and expires_at <= self._clock():
            raise AuthError("Invalid or expired token")
        return _identity_from_claims(claims)
