"""
Login attempt tracking.

Locks an email address out after too many failed logins inside a short
window. State lives in the Django cache so it is shared between workers
when Redis is configured.
"""

import logging
import time
from collections import namedtuple

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

LoginAttemptStatus = namedtuple('LoginAttemptStatus', ['allowed', 'remaining_attempts', 'locked_until'])


def _normalize(email):
    return (email or '').strip().lower()


def _cache_key(email):
    return f"login_attempts_{_normalize(email)}"


def check_login_rate_limit(email, now=None):
    """
    Record a login attempt for ``email`` and decide whether it may proceed.

    Args:
        email: Address being used to log in
        now: Current UNIX time (defaults to time.time())

    Returns:
        LoginAttemptStatus; ``locked_until`` is a UNIX timestamp when locked
    """
    max_attempts = settings.LOGIN_MAX_ATTEMPTS
    window = settings.LOGIN_ATTEMPT_WINDOW
    lock_duration = settings.LOGIN_LOCK_DURATION
    now = time.time() if now is None else now

    key = _cache_key(email)
    timeout = max(window, lock_duration)
    attempt = cache.get(key)

    if attempt is None:
        cache.set(key, {'count': 1, 'last_attempt': now, 'locked_until': None}, timeout)
        return LoginAttemptStatus(True, max_attempts - 1, None)

    locked_until = attempt.get('locked_until')
    if locked_until and now < locked_until:
        return LoginAttemptStatus(False, 0, locked_until)

    if now - attempt['last_attempt'] > window:
        cache.set(key, {'count': 1, 'last_attempt': now, 'locked_until': None}, timeout)
        return LoginAttemptStatus(True, max_attempts - 1, None)

    attempt['count'] += 1
    attempt['last_attempt'] = now

    if attempt['count'] >= max_attempts:
        attempt['locked_until'] = now + lock_duration
        cache.set(key, attempt, timeout)
        logger.warning(f"Login locked for {_normalize(email)} after {attempt['count']} attempts")
        return LoginAttemptStatus(False, 0, attempt['locked_until'])

    cache.set(key, attempt, timeout)
    return LoginAttemptStatus(True, max_attempts - attempt['count'], None)


def reset_login_attempts(email):
    """Forget attempts after a successful login."""
    cache.delete(_cache_key(email))
