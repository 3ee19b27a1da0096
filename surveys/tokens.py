"""
Respondent token generation and public link building.
"""

import secrets

from django.conf import settings

# bytes of randomness; hex encoding doubles the length
RESPONDENT_TOKEN_BYTES = 32
SHARE_TOKEN_BYTES = 16


def generate_respondent_token():
    """64 hex characters, used for per-respondent distribution."""
    return secrets.token_hex(RESPONDENT_TOKEN_BYTES)


def generate_share_token():
    """32 hex characters, used for anonymous share links."""
    return secrets.token_hex(SHARE_TOKEN_BYTES)


def build_response_url(token):
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/r/{token}"
