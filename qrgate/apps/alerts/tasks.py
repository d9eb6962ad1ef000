from __future__ import annotations

import logging
from typing import Optional

import requests
from celery import shared_task

from qrgate.apps.alerts.analyzer import (
    AnomalyAnalyzerClient,
    build_alert_context,
    build_fallback_message,
)
from qrgate.apps.audit.services import attach_alert, latest_denied_attempt_id

logger = logging.getLogger(__name__)


@shared_task(queue="alerts", ignore_result=True)
def dispatch_anomaly_alert(
    grant_id: str,
    document_id: str,
    denial_reasons: list[str],
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    attempt_id: Optional[str] = None,
) -> Optional[str]:
    """
    Ask the analyzer for an alert message about a denied scan and attach it
    to the audit row. Analyzer failures fall back to a local message; a
    missing audit row ends the task without retry.
    """
    context = build_alert_context(grant_id, document_id, denial_reasons, latitude, longitude)

    try:
        message = AnomalyAnalyzerClient().generate_alert(context)
    except (requests.RequestException, RuntimeError) as exc:
        logger.warning(f"Anomaly analyzer unavailable for grant {grant_id}: {exc}")
        message = build_fallback_message(denial_reasons)

    target_id = attempt_id or latest_denied_attempt_id(grant_id)
    if target_id is None:
        logger.error(f"No denied access attempt found for grant {grant_id}; alert dropped")
        return None

    if not attach_alert(target_id, message):
        logger.error(f"Access attempt {target_id} not updated with alert (missing or already alerted)")
        return None

    logger.info(f"Alert attached to access attempt {target_id}")
    return target_id
