from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from django.db import DatabaseError, transaction

from qrgate.apps.audit.models import REASON_SEPARATOR, AccessAttempt

if TYPE_CHECKING:
    from qrgate.apps.access.models import AccessGrant
    from qrgate.apps.access.services.rules import ScanRequest, Verdict

logger = logging.getLogger(__name__)


def record_attempt(
    grant: "AccessGrant",
    verdict: "Verdict",
    scan: "ScanRequest",
    viewer_id: Optional[str] = None,
) -> Optional[str]:
    """
    Persist one access attempt and return its id.

    The decision has already been made when this runs, so a failed write is
    logged and reported as None instead of being raised.
    """
    try:
        with transaction.atomic():
            attempt = AccessAttempt.objects.create(
                grant=grant,
                document_id=grant.document_id,
                viewer_id=viewer_id,
                granted=verdict.granted,
                denial_reason=REASON_SEPARATOR.join(verdict.reasons) or None,
                viewer_latitude=scan.latitude,
                viewer_longitude=scan.longitude,
                user_agent=scan.user_agent or None,
                ip_address=scan.ip_address or None,
                reported_ip_address=scan.reported_ip_address or None,
            )
    except DatabaseError:
        logger.exception(f"Error logging access attempt for grant {grant.id}")
        return None

    return str(attempt.id)


def attach_alert(attempt_id: str, message: str) -> bool:
    """Set the alert fields once; returns False if the row is gone or already alerted."""
    updated = AccessAttempt.objects.filter(
        id=attempt_id, granted=False, alert_generated=False
    ).update(alert_generated=True, alert_message=message)
    return updated == 1


def latest_denied_attempt_id(grant_id: str) -> Optional[str]:
    """Most recent denied attempt for a grant, ties broken by latest created_at."""
    attempt = (
        AccessAttempt.objects.filter(grant_id=grant_id, granted=False)
        .order_by("-created_at")
        .values_list("id", flat=True)
        .first()
    )
    return str(attempt) if attempt else None
