"""
Text sanitisation for administrator-entered content.

Form titles, question texts, option labels and respondent details are
stripped of any HTML before storage.
"""

import logging

import bleach
from rest_framework import serializers

logger = logging.getLogger(__name__)


def sanitize_text_input(value):
    """
    Remove every HTML tag from a string.

    Non-string values are returned untouched.
    """
    if not isinstance(value, str):
        return value

    cleaned = bleach.clean(value, tags=[], attributes={}, strip=True)
    if cleaned != value:
        logger.debug("Stripped markup from text input")
    return cleaned.strip()


def validate_and_sanitize_text_input(value, field_name='text', min_length=0, max_length=None):
    """
    Sanitise a text field and enforce its length bounds.

    Raises:
        serializers.ValidationError: when the cleaned text is too short or too long
    """
    cleaned = sanitize_text_input(value)
    if cleaned is None:
        return cleaned

    if len(cleaned) < min_length:
        raise serializers.ValidationError(
            f"{field_name} must have at least {min_length} characters"
        )
    if max_length is not None and len(cleaned) > max_length:
        raise serializers.ValidationError(
            f"{field_name} must have at most {max_length} characters"
        )
    return cleaned
