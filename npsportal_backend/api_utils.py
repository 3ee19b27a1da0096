"""
Shared helpers for API views.
"""

from rest_framework.response import Response


def uniform_response(success=True, message="", data=None, status_code=200):
    """
    Create uniform API response following established patterns.
    """
    return Response({
        'status': 'success' if success else 'error',
        'message': message,
        'data': data
    }, status=status_code)


def get_client_ip(request):
    """
    Best-effort client address: first X-Forwarded-For hop, then X-Real-IP,
    then REMOTE_ADDR.
    """
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        first = forwarded.split(',')[0].strip()
        if first:
            return first

    real_ip = request.META.get('HTTP_X_REAL_IP')
    if real_ip:
        return real_ip.strip()

    return request.META.get('REMOTE_ADDR') or 'unknown'


def mask_token(token):
    """Short token prefix safe to write to logs."""
    if not token:
        return ''
    return f"{token[:8]}..."
