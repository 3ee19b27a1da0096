"""
Password strength rules for portal accounts.

Scores a password from 0 to 100, classifies it and lists every rule it
breaks. ``StrongPasswordValidator`` plugs the same rules into Django's
AUTH_PASSWORD_VALIDATORS.
"""

import re
from collections import namedtuple

from django.core.exceptions import ValidationError

MIN_LENGTH = 8
MAX_LENGTH = 128

SPECIAL_CHARACTERS = re.compile(r'[!@#$%^&*()_+\-=\[\]{};\':"\\|,.<>/?]')

COMMON_PATTERNS = [
    (re.compile(r'^123456'), 'Password is too common (123456...)'),
    (re.compile(r'^password', re.IGNORECASE), 'Password is too common (password)'),
    (re.compile(r'^qwerty', re.IGNORECASE), 'Password is too common (qwerty)'),
    (re.compile(r'^abc123', re.IGNORECASE), 'Password is too common (abc123)'),
    (re.compile(r'^admin', re.IGNORECASE), 'Password is too common (admin)'),
    (re.compile(r'^letmein', re.IGNORECASE), 'Password is too common (letmein)'),
    (re.compile(r'^welcome', re.IGNORECASE), 'Password is too common (welcome)'),
    (re.compile(r'^monkey', re.IGNORECASE), 'Password is too common (monkey)'),
    (re.compile(r'^1234567890'), 'Numeric sequence is too obvious'),
    (re.compile(r'^(.)\1{3,}'), 'Too many repeated characters'),
]

ALPHABETIC_RUN = re.compile(
    'abc|bcd|cde|def|efg|fgh|ghi|hij|ijk|jkl|klm|lmn|mno|nop|opq|pqr|qrs|rst|stu|tuv|uvw|vwx|wxy|xyz',
    re.IGNORECASE,
)

PasswordStrength = namedtuple('PasswordStrength', ['valid', 'errors', 'strength', 'score'])


def check_password_strength(password):
    """
    Evaluate password complexity.

    Returns:
        PasswordStrength(valid, errors, strength, score) where strength is
        one of 'weak', 'medium', 'strong' or 'very-strong'
    """
    password = password or ''
    errors = []
    score = 0

    if len(password) > MAX_LENGTH:
        return PasswordStrength(False, [f'Password is too long (maximum {MAX_LENGTH} characters)'], 'weak', 0)

    if len(password) < MIN_LENGTH:
        errors.append(f'Password must have at least {MIN_LENGTH} characters')
    else:
        score += 20
    if len(password) >= 12:
        score += 10
    if len(password) >= 16:
        score += 10

    if not re.search(r'[a-z]', password):
        errors.append('Password must contain at least one lowercase letter')
    else:
        score += 15

    if not re.search(r'[A-Z]', password):
        errors.append('Password must contain at least one uppercase letter')
    else:
        score += 15

    if not re.search(r'[0-9]', password):
        errors.append('Password must contain at least one number')
    else:
        score += 15

    if not SPECIAL_CHARACTERS.search(password):
        errors.append('Password must contain at least one special character (!@#$%...)')
    else:
        score += 15

    for pattern, message in COMMON_PATTERNS:
        if pattern.search(password):
            errors.append(message)
            score = max(0, score - 30)

    if ALPHABETIC_RUN.search(password):
        errors.append('Avoid alphabetic sequences')
        score = max(0, score - 10)

    if password and len(set(password)) >= len(password) * 0.7:
        score += 10

    if score < 40:
        strength = 'weak'
    elif score < 60:
        strength = 'medium'
    elif score < 80:
        strength = 'strong'
    else:
        strength = 'very-strong'

    return PasswordStrength(not errors, errors, strength, min(100, score))


class StrongPasswordValidator:
    """
    Django password validator enforcing check_password_strength().
    """

    def validate(self, password, user=None):
        result = check_password_strength(password)
        if not result.valid:
            raise ValidationError(
                [ValidationError(message, code='password_too_weak') for message in result.errors]
            )

    def get_help_text(self):
        return (
            f"Your password must have {MIN_LENGTH} to {MAX_LENGTH} characters and include "
            "lowercase and uppercase letters, a number and a special character."
        )
