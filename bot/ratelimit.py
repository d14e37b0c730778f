"""Rate limiting — drop updates that arrive faster than a configured rate.

:class:`RateLimitHandler` wraps an :class:`~bot.longpoll.UpdateHandler` and
admits at most ``limit`` updates per ``period`` seconds, either globally or
per chat, per user, or per chat-and-user pair.  Updates over the limit are
dropped (and optionally reported to ``on_limited``); updates that carry no
identity for a keyed limit pass through unthrottled.
"""

from __future__ import annotations

import inspect
import time
from collections import deque
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, Hashable, Optional

from core.logger import PollbotLogger
from sdk.models import Update
from session.namespace import identities_from_update

logger = PollbotLogger.get_logger(__name__)


class RateLimitKey(str, Enum):
    """What a limit is counted against."""

    ALL = "all"
    CHAT = "chat"
    USER = "user"
    CHAT_USER = "chat_user"


class RateLimiter:
    """Sliding-window limiter: at most *limit* events per *period* per key.

    Args:
        limit: Events admitted inside one window; must be positive.
        period: Window length in seconds; must be positive.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(self, limit: int, period: float, clock: Callable[[], float] = time.monotonic) -> None:
        if limit <= 0:
            raise ValueError(f"Rate limit must be positive, got {limit}")
        if period <= 0:
            raise ValueError(f"Rate limit period must be positive, got {period}")
        self._limit = limit
        self._period = period
        self._clock = clock
        self._events: Dict[Hashable, Deque[float]] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        """Number of keys currently tracked."""
        return len(self._events)

    def check(self, key: Hashable) -> bool:
        """Record an event for *key* and return whether it is within the limit.

        Rejected events are not recorded, so a flooding key regains capacity
        one period after its last admitted event.
        """
        now = self._clock()
        self._sweep(now)
        events = self._events.setdefault(key, deque())
        cutoff = now - self._period
        while events and events[0] <= cutoff:
            events.popleft()
        if len(events) >= self._limit:
            return False
        events.append(now)
        return True

    def _sweep(self, now: float) -> None:
        # Forget keys idle for a whole period, at most once per period.
        if now - self._last_sweep < self._period:
            return
        cutoff = now - self._period
        for key in [k for k, events in self._events.items() if not events or events[-1] <= cutoff]:
            del self._events[key]
        self._last_sweep = now


def _limit_key(update: Update, key: RateLimitKey) -> Optional[Hashable]:
    if key is RateLimitKey.ALL:
        return key.value
    chat_id, user_id = identities_from_update(update)
    if key is RateLimitKey.CHAT:
        return chat_id
    if key is RateLimitKey.USER:
        return user_id
    if chat_id is None or user_id is None:
        return None
    return (chat_id, user_id)


class RateLimitHandler:
    """Forward updates to *handler* while they stay within the rate limit.

    Args:
        handler: The wrapped update handler.
        limit: Updates admitted per *period*.
        period: Window length in seconds.
        key: What the limit is counted against.
        on_limited: Called with each dropped update; may be async.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        handler: Any,
        limit: int,
        period: float,
        *,
        key: RateLimitKey = RateLimitKey.ALL,
        on_limited: Optional[Callable[[Update], Optional[Awaitable[None]]]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._handler = handler
        self._key = RateLimitKey(key)
        self._limiter = RateLimiter(limit, period, clock=clock)
        self._on_limited = on_limited

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    async def handle(self, update: Update) -> None:
        limit_key = _limit_key(update, self._key)
        if limit_key is not None and not self._limiter.check(limit_key):
            logger.warning(
                "Rate limit exceeded, dropping update",
                extra={"update_id": update.update_id, "rate_limit_key": str(limit_key)},
            )
            if self._on_limited is not None:
                result = self._on_limited(update)
                if inspect.isawaitable(result):
                    await result
            return
        handle = getattr(self._handler, "handle", self._handler)
        result = handle(update)
        if inspect.isawaitable(result):
            await result
