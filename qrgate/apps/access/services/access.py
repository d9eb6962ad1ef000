"""
Scan validation: load the grant, evaluate the rules, audit, alert on denial.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from django.utils import timezone

from qrgate.apps.access.exceptions import GrantNotFound
from qrgate.apps.access.models import AccessGrant
from qrgate.apps.access.services.identity import resolve_viewer_id
from qrgate.apps.access.services.rules import ScanRequest, Verdict, evaluate
from qrgate.apps.alerts.services import dispatch_denial_alert
from qrgate.apps.audit.services import record_attempt

logger = logging.getLogger(__name__)


def load_active_grant(code: str) -> AccessGrant:
    """Fresh read of an active grant and its document; raises GrantNotFound."""
    grant = (
        AccessGrant.objects.select_related("document")
        .filter(code=code, is_active=True)
        .first()
    )
    if grant is None:
        raise GrantNotFound("Invalid or inactive QR code")
    return grant


def validate_access(scan: ScanRequest, now: Optional[datetime] = None) -> Verdict:
    """
    Decide one scan. GrantNotFound is the only early exit and leaves no audit
    row; every other outcome is audited, and denials also enqueue an alert.
    """
    grant = load_active_grant(scan.code)
    now = now or timezone.now()

    verdict = evaluate(grant, scan, now)
    viewer_id = resolve_viewer_id(scan.authorization)

    attempt_id = record_attempt(grant, verdict, scan, viewer_id)

    if verdict.granted:
        logger.info(f"Access granted for grant {grant.id}")
    else:
        logger.info(f"Access denied for grant {grant.id}: {'; '.join(verdict.reasons)}")
        dispatch_denial_alert(
            grant_id=str(grant.id),
            document_id=str(grant.document_id),
            denial_reasons=verdict.reasons,
            latitude=scan.latitude,
            longitude=scan.longitude,
            attempt_id=attempt_id,
        )

    return verdict
