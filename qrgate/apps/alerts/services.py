import logging
from typing import Optional

from qrgate.apps.alerts.tasks import dispatch_anomaly_alert

logger = logging.getLogger(__name__)


def dispatch_denial_alert(
    grant_id: str,
    document_id: str,
    denial_reasons: list[str],
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    attempt_id: Optional[str] = None,
) -> None:
    """Enqueue the alert task and return at once; enqueue errors never reach the caller."""
    try:
        dispatch_anomaly_alert.delay(
            grant_id=grant_id,
            document_id=document_id,
            denial_reasons=list(denial_reasons),
            latitude=latitude,
            longitude=longitude,
            attempt_id=attempt_id,
        )
    except Exception:  # broker down, serialization, ...
        logger.exception(f"Could not dispatch anomaly alert for grant {grant_id}")
