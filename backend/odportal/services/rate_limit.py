"""Throttling for the sign-in and sign-up endpoints.

Attempts are counted per policy scope, client address and account email in
process memory. A successful sign-in clears that account's failed attempts.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import logging
from threading import Lock
import time

from fastapi import HTTPException, Request, status

from odportal.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    scope: str
    limit: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int = 0


def login_policy(settings: Settings) -> RateLimitPolicy:
    return RateLimitPolicy(
        scope="auth.login",
        limit=settings.auth_rate_limit_login_max_requests,
        window_seconds=settings.auth_rate_limit_window_seconds,
    )


def register_policy(settings: Settings) -> RateLimitPolicy:
    return RateLimitPolicy(
        scope="auth.register",
        limit=settings.auth_rate_limit_register_max_requests,
        window_seconds=settings.auth_rate_limit_window_seconds,
    )


class AttemptLedger:
    def __init__(self) -> None:
        self._attempts: dict[tuple[str, str, str], deque[float]] = {}
        self._lock = Lock()

    def record(self, key: tuple[str, str, str], policy: RateLimitPolicy) -> RateLimitDecision:
        now = time.monotonic()
        with self._lock:
            attempts = self._attempts.setdefault(key, deque())
            while attempts and now - attempts[0] >= policy.window_seconds:
                attempts.popleft()
            if len(attempts) >= policy.limit:
                wait = attempts[0] + policy.window_seconds - now
                return RateLimitDecision(allowed=False, remaining=0, retry_after=max(1, int(wait)))
            attempts.append(now)
            return RateLimitDecision(allowed=True, remaining=policy.limit - len(attempts))

    def forget(self, key: tuple[str, str, str]) -> None:
        with self._lock:
            self._attempts.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()


_ledger = AttemptLedger()


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _attempt_key(request: Request, policy: RateLimitPolicy, identity: str | None) -> tuple[str, str, str]:
    return policy.scope, client_address(request), (identity or "").strip().lower()


def enforce_rate_limit(*, request: Request, policy: RateLimitPolicy, identity: str | None = None) -> RateLimitDecision:
    decision = _ledger.record(_attempt_key(request, policy, identity), policy)
    if decision.allowed:
        return decision
    logger.warning("Throttled %s for %s from %s", policy.scope, identity or "-", client_address(request))
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Too many attempts. Try again in {decision.retry_after} second(s).",
        headers={"Retry-After": str(decision.retry_after)},
    )


def forget_attempts(*, request: Request, policy: RateLimitPolicy, identity: str | None = None) -> None:
    _ledger.forget(_attempt_key(request, policy, identity))


def clear_rate_limiter() -> None:
    _ledger.clear()
