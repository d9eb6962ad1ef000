from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from django.conf import settings

from qrgate.apps.access.models import AccessGrant
from qrgate.apps.documents.models import Document

logger = logging.getLogger(__name__)


def create_grant(
    document: Document,
    fence_latitude: Optional[float] = None,
    fence_longitude: Optional[float] = None,
    fence_radius_meters: Optional[int] = None,
    expires_at: Optional[datetime] = None,
    require_otp: bool = False,
    password_secret: Optional[str] = None,
) -> AccessGrant:
    """Create a grant with a fresh random public code."""
    if (fence_latitude is None) != (fence_longitude is None):
        raise ValueError("Fence latitude and longitude must be provided together.")

    grant = AccessGrant.objects.create(
        document=document,
        fence_latitude=fence_latitude,
        fence_longitude=fence_longitude,
        fence_radius_meters=(
            fence_radius_meters
            if fence_radius_meters is not None
            else settings.DEFAULT_FENCE_RADIUS_METERS
        ),
        expires_at=expires_at,
        require_otp=require_otp,
        password_secret=password_secret or None,
    )
    logger.info(f"Created grant {grant.id} for document {document.id}")
    return grant


def revoke_grant(grant: AccessGrant) -> None:
    """Permanently deactivate a grant; there is no way back."""
    if not grant.is_active:
        return
    grant.is_active = False
    grant.save(update_fields=["is_active"])
    logger.info(f"Revoked grant {grant.id}")
