"""
Rate limiting utilities for the public survey endpoints

Fixed-window counters keyed by client identity and policy, stored in the
Django cache (Redis or LocMemCache). The counter store is injectable so
callers and tests can supply their own.
"""
import logging
import time
from collections import namedtuple

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

RateLimitPolicy = namedtuple('RateLimitPolicy', ['name', 'limit', 'window'])
RateLimitResult = namedtuple('RateLimitResult', ['allowed', 'remaining', 'reset_at'])


def token_read_policy():
    return RateLimitPolicy('survey_token', settings.SURVEY_TOKEN_RATE_LIMIT, settings.SURVEY_TOKEN_RATE_WINDOW)


def submission_policy():
    return RateLimitPolicy('survey_submit', settings.SURVEY_SUBMIT_RATE_LIMIT, settings.SURVEY_SUBMIT_RATE_WINDOW)


class FixedWindowRateLimiter:
    """
    Rate limiter for one identity under one policy

    Windows are aligned to multiples of ``policy.window`` seconds; each
    window has its own counter that expires with it.
    """

    def __init__(self, identity, policy, now=None, store=None):
        """
        Initialize rate limiter.

        Args:
            identity: Who is limited (client IP, email, ...)
            policy: RateLimitPolicy
            now: Current UNIX time (defaults to time.time())
            store: Cache-like counter store (defaults to the Django cache)
        """
        self.identity = identity
        self.policy = policy
        self.store = store if store is not None else cache
        now = time.time() if now is None else now
        self.window_start = int(now // policy.window) * policy.window
        self.cache_key = f"rate_{policy.name}_{identity}_{self.window_start}"

    @property
    def reset_at(self):
        """UNIX time at which the current window ends."""
        return self.window_start + self.policy.window

    def get_current_count(self):
        return self.store.get(self.cache_key, 0)

    def get_remaining(self):
        return max(0, self.policy.limit - self.get_current_count())

    def hit(self):
        """
        Count one request and return the new total.

        ``add`` creates the counter with the window's TTL only when missing,
        and ``incr`` is atomic on Redis.
        """
        self.store.add(self.cache_key, 0, self.policy.window)
        try:
            return self.store.incr(self.cache_key)
        except ValueError:
            # counter expired between add and incr
            self.store.set(self.cache_key, 1, self.policy.window)
            return 1

    def reset(self):
        """
        Reset the counter of the current window (tests and admin use).
        """
        self.store.delete(self.cache_key)
        logger.info(f"Rate limit reset for {self.identity} on {self.policy.name}")


def check_rate_limit(identity, policy, now=None, store=None):
    """
    Count a request for ``identity`` and decide whether it may proceed.

    Args:
        identity: Client identity
        policy: RateLimitPolicy
        now: Current UNIX time
        store: Optional counter store

    Returns:
        RateLimitResult(allowed, remaining, reset_at) with reset_at as UNIX time
    """
    limiter = FixedWindowRateLimiter(identity, policy, now=now, store=store)
    count = limiter.hit()
    allowed = count <= policy.limit

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for {identity} on {policy.name}: "
            f"{count}/{policy.limit} in {policy.window}s"
        )

    return RateLimitResult(allowed, max(0, policy.limit - count), limiter.reset_at)


def get_rate_limit_info(identity, policy, now=None, store=None):
    """
    Current usage for ``identity`` without counting a request.

    Returns:
        dict with current, limit, remaining, window and reset_at
    """
    limiter = FixedWindowRateLimiter(identity, policy, now=now, store=store)
    current = limiter.get_current_count()
    return {
        'current': current,
        'limit': policy.limit,
        'remaining': max(0, policy.limit - current),
        'window': policy.window,
        'reset_at': limiter.reset_at,
    }
