"""Serve-stale TTL bookkeeping for cached records."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

Clock = Callable[[], float]

MAX_TTL = 0xFFFFFFFF


@dataclass(frozen=True, slots=True)
class ServeStalePolicy:
    """Tunables for cached record TTLs.

    Attributes:
        stale_answer_ttl: TTL reported for a record past its freshness but
            still inside the serve-stale window.
        expiry_threshold: Remaining seconds under which a deadline counts as
            reached.
        serve_stale_ttl: Length of the serve-stale window, in seconds.
        minimum_ttl: Lower clamp applied to the TTL when caching.
        maximum_ttl: Upper clamp applied to the TTL when caching.
    """

    stale_answer_ttl: int = 30
    expiry_threshold: int = 1
    serve_stale_ttl: int = 3 * 24 * 60 * 60
    minimum_ttl: int = 0
    maximum_ttl: int = 7 * 24 * 60 * 60

    def __post_init__(self) -> None:
        for field_name in (
            "stale_answer_ttl",
            "expiry_threshold",
            "serve_stale_ttl",
            "minimum_ttl",
            "maximum_ttl",
        ):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_TTL:
                raise ValueError(f"{field_name} must be an integer in 0..{MAX_TTL}, got {value!r}")
        if self.serve_stale_ttl < 1:
            raise ValueError("serve_stale_ttl must be at least 1 second")
        if self.minimum_ttl > self.maximum_ttl:
            raise ValueError("minimum_ttl must not exceed maximum_ttl")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ServeStalePolicy:
        """Build a policy from a config section, defaults for missing keys.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"unknown serve_stale option(s): {', '.join(sorted(unknown))}")
        return cls(**data)

    def clamp(self, ttl: int) -> int:
        return min(max(ttl, self.minimum_ttl), self.maximum_ttl)


DEFAULT_POLICY = ServeStalePolicy()


@dataclass(frozen=True, slots=True)
class ExpiryState:
    """Absolute deadlines of a cached record, in `clock` seconds."""

    fresh_until: float
    stale_serve_until: float
    policy: ServeStalePolicy = DEFAULT_POLICY
    clock: Clock = time.monotonic

    @classmethod
    def start(cls, ttl: int, policy: ServeStalePolicy = DEFAULT_POLICY,
              clock: Clock = time.monotonic) -> ExpiryState:
        """Arm deadlines for a record with `ttl` seconds left, as of now."""
        fresh_until = clock() + ttl
        return cls(fresh_until, fresh_until + policy.serve_stale_ttl, policy, clock)

    def ttl_value(self) -> int:
        """Current TTL to present for the record.

        0 once the serve-stale window has closed, ``policy.stale_answer_ttl``
        while stale but servable, otherwise the whole seconds left.
        """
        now = self.clock()
        threshold = self.policy.expiry_threshold
        if round(self.stale_serve_until - now) < threshold:
            return 0
        remaining = round(self.fresh_until - now)
        if remaining < threshold:
            return self.policy.stale_answer_ttl
        return min(remaining, MAX_TTL)

    def is_stale(self) -> bool:
        return round(self.fresh_until - self.clock()) < self.policy.expiry_threshold
