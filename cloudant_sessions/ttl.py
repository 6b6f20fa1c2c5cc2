"""TTL computation and lazy expiry checks."""

import time
from typing import Any, Callable, Mapping, Optional

DEFAULT_TTL_SECONDS = 86400  # One day


def now_ms(clock: Callable[[], float] = time.time) -> int:
    """Current time in epoch milliseconds."""
    return int(clock() * 1000)


def effective_ttl(configured_ttl: Optional[int], session: Mapping[str, Any] | None) -> int:
    """
    TTL in seconds for a session.

    The store's own TTL wins; otherwise the cookie's maxAge (milliseconds)
    is used; otherwise one day.
    """
    if configured_ttl:
        return configured_ttl

    cookie = (session or {}).get("cookie") or {}
    max_age = cookie.get("maxAge") if isinstance(cookie, Mapping) else None
    if isinstance(max_age, (int, float)) and not isinstance(max_age, bool) and max_age:
        return int(max_age // 1000)

    return DEFAULT_TTL_SECONDS


def is_expired(last_modified_ms: Optional[int], ttl_seconds: Optional[int], now: int) -> bool:
    """True when the document outlived its TTL. Missing fields never expire."""
    if last_modified_ms is None or ttl_seconds is None:
        return False
    return last_modified_ms + ttl_seconds * 1000 < now
