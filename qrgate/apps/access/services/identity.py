import logging
from typing import Optional

from django.db import DatabaseError
from rest_framework.authtoken.models import Token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def parse_bearer(header: Optional[str]) -> Optional[str]:
    """Extract the token from an 'Authorization: Bearer <token>' header value."""
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def resolve_viewer_id(authorization: Optional[str]) -> Optional[str]:
    """
    Map a bearer credential to the viewer's user id.
    Identity is informational only, so any lookup failure resolves to None.
    """
    key = parse_bearer(authorization)
    if key is None:
        return None

    try:
        token = Token.objects.select_related("user").filter(key=key).first()
    except DatabaseError:
        logger.exception("Identity lookup failed; continuing without viewer id")
        return None

    if token is None or not token.user.is_active:
        return None
    return str(token.user.pk)
