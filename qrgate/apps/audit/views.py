from django.conf import settings
from django.http import JsonResponse

from qrgate.apps.access.services.identity import resolve_viewer_id
from qrgate.apps.audit.models import AccessAttempt
from qrgate.apps.documents.models import Document


def _serialize_attempt(attempt: AccessAttempt) -> dict:
    return {
        "id": str(attempt.id),
        "qrCodeId": str(attempt.grant_id),
        "documentId": str(attempt.document_id),
        "viewerId": attempt.viewer_id,
        "accessGranted": attempt.granted,
        "denialReasons": attempt.denial_reasons,
        "viewerLatitude": attempt.viewer_latitude,
        "viewerLongitude": attempt.viewer_longitude,
        "userAgent": attempt.user_agent,
        "ipAddress": attempt.ip_address,
        "reportedIpAddress": attempt.reported_ip_address,
        "aiAlertGenerated": attempt.alert_generated,
        "aiAlertMessage": attempt.alert_message,
        "createdAt": attempt.created_at.isoformat(),
    }


def document_access_logs(request, document_id):
    """Recent access attempts for a document, visible to its owner only."""
    if request.method != "GET":
        return JsonResponse({"error": "Method not allowed"}, status=405)

    viewer_id = resolve_viewer_id(request.headers.get("Authorization"))
    if viewer_id is None:
        return JsonResponse({"error": "Not authenticated"}, status=401)

    document = Document.objects.filter(id=document_id, owner_id=viewer_id).first()
    if document is None:
        return JsonResponse({"error": "Document not found"}, status=404)

    try:
        limit = int(request.GET.get("limit", settings.ACCESS_LOG_PAGE_SIZE))
    except (TypeError, ValueError):
        return JsonResponse({"error": "Invalid limit"}, status=400)
    limit = max(1, min(limit, 500))

    attempts = AccessAttempt.objects.filter(document=document).order_by("-created_at")[:limit]
    return JsonResponse({"logs": [_serialize_attempt(a) for a in attempts]})
