"""
Rate Limiter

Fixed-window request counting with block escalation, keyed by
(endpoint class, client identifier).

A client that exceeds an endpoint class's cap inside one window is
blocked for that class's block duration, independent of the window.
The generation endpoint class caps lower than session and message
classes because each request triggers paid provider calls.

ARCHITECTURE: The limiter is an explicit store object. The app creates
one, injects it into the pipeline and the middleware, and owns the
lifecycle of its background sweep.
"""

import asyncio
import math
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Optional

from optimism.config.logging_config import get_logger
from optimism.config.settings import RateLimitSettings
from optimism.infrastructure.metrics import track_rate_limit

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    """Window size, request cap and block duration for one endpoint class."""

    window_seconds: int
    max_requests: int
    block_seconds: int


@dataclass
class RateLimitRecord:
    """
    Counter state for one (endpoint class, client) key.

    Attributes:
        count: Requests seen in the current window
        window_reset_at: Clock value at which the window ends
        blocked_until: Clock value at which the block ends, if blocked
    """

    count: int
    window_reset_at: float
    blocked_until: Optional[float] = None


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single admission check."""

    allowed: bool
    retry_after_seconds: int = 0
    remaining: int = 0


DEFAULT_RULES: dict[str, RateLimitRule] = {
    "reframe": RateLimitRule(window_seconds=60, max_requests=10, block_seconds=300),
    "session": RateLimitRule(window_seconds=60, max_requests=20, block_seconds=60),
    "messages": RateLimitRule(window_seconds=60, max_requests=30, block_seconds=120),
    "dashboard": RateLimitRule(window_seconds=900, max_requests=5, block_seconds=1800),
    "default": RateLimitRule(window_seconds=60, max_requests=60, block_seconds=60),
}


class RateLimiter:
    """
    Fixed-window rate limiter with block escalation.

    Increments are serialized with an asyncio lock so concurrent
    requests on the same event loop never over- or under-count.

    Usage:
        limiter = RateLimiter.from_settings(settings.rate_limit)
        await limiter.start()
        decision = await limiter.check(client_id, "reframe")
        ...
        await limiter.stop()
    """

    def __init__(
        self,
        rules: Optional[Mapping[str, RateLimitRule]] = None,
        sweep_interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize limiter.

        Args:
            rules: Rule per endpoint class; must contain "default"
            sweep_interval_seconds: Cadence of the eviction sweep
            clock: Monotonic clock, injectable for tests
        """
        self._rules = dict(DEFAULT_RULES if rules is None else rules)
        self._rules.setdefault("default", DEFAULT_RULES["default"])
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._records: dict[tuple[str, str], RateLimitRecord] = {}
        self._lock = asyncio.Lock()
        self._sweep_task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(
        cls,
        settings: RateLimitSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> "RateLimiter":
        """Build a limiter whose caps come from configuration."""
        rules = dict(DEFAULT_RULES)
        rules["reframe"] = RateLimitRule(
            window_seconds=settings.reframe_window_seconds,
            max_requests=settings.reframe_max_requests,
            block_seconds=settings.reframe_block_seconds,
        )
        rules["session"] = RateLimitRule(
            window_seconds=DEFAULT_RULES["session"].window_seconds,
            max_requests=settings.session_max_requests,
            block_seconds=DEFAULT_RULES["session"].block_seconds,
        )
        rules["messages"] = RateLimitRule(
            window_seconds=DEFAULT_RULES["messages"].window_seconds,
            max_requests=settings.messages_max_requests,
            block_seconds=DEFAULT_RULES["messages"].block_seconds,
        )
        return cls(
            rules=rules,
            sweep_interval_seconds=settings.sweep_interval_seconds,
            clock=clock,
        )

    def rule_for(self, endpoint_class: str) -> RateLimitRule:
        """Rule for an endpoint class, falling back to "default"."""
        return self._rules.get(endpoint_class, self._rules["default"])

    async def check(self, identifier: str, endpoint_class: str = "default") -> RateLimitDecision:
        """
        Count one request and decide whether it is admitted.

        Args:
            identifier: Client identifier (usually an IP address)
            endpoint_class: Which rule applies

        Returns:
            RateLimitDecision
        """
        rule = self.rule_for(endpoint_class)
        key = (endpoint_class, identifier)

        async with self._lock:
            now = self._clock()
            record = self._records.get(key)

            if record is not None and record.blocked_until is not None:
                if now < record.blocked_until:
                    return self._deny(
                        identifier,
                        endpoint_class,
                        math.ceil(record.blocked_until - now),
                    )
                del self._records[key]
                record = None

            if record is None or now >= record.window_reset_at:
                self._records[key] = RateLimitRecord(
                    count=1,
                    window_reset_at=now + rule.window_seconds,
                )
                return RateLimitDecision(allowed=True, remaining=rule.max_requests - 1)

            record.count += 1
            if record.count > rule.max_requests:
                record.blocked_until = now + rule.block_seconds
                logger.warning(
                    "Client blocked",
                    endpoint_class=endpoint_class,
                    block_seconds=rule.block_seconds,
                )
                return self._deny(identifier, endpoint_class, rule.block_seconds)

            return RateLimitDecision(
                allowed=True,
                remaining=max(0, rule.max_requests - record.count),
            )

    def _deny(self, identifier: str, endpoint_class: str, retry_after: int) -> RateLimitDecision:
        track_rate_limit(endpoint_class)
        logger.warning(
            "Rate limit exceeded",
            client_id=identifier[:8] + "...",  # Truncate for privacy
            endpoint_class=endpoint_class,
            retry_after_seconds=retry_after,
        )
        return RateLimitDecision(
            allowed=False,
            retry_after_seconds=max(1, retry_after),
            remaining=0,
        )

    async def sweep(self) -> int:
        """
        Evict expired records.

        Removes unblocked records whose window ended and blocked
        records whose block ended.

        Returns:
            Number of records evicted
        """
        async with self._lock:
            now = self._clock()
            expired = [
                key for key, record in self._records.items()
                if (record.blocked_until is None and now >= record.window_reset_at)
                or (record.blocked_until is not None and now >= record.blocked_until)
            ]
            for key in expired:
                del self._records[key]

        if expired:
            logger.debug("Rate limit records evicted", count=len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)

    async def start(self) -> None:
        """Start background task that sweeps expired records."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Stop sweep task."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            await self.sweep()


def client_identifier(headers: Mapping[str, str], peer: Optional[str] = None) -> str:
    """
    Resolve the client identifier used as the rate-limit key.

    Order: first X-Forwarded-For entry, X-Real-IP, socket peer.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return peer or "unknown"
