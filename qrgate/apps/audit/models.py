import uuid
from django.db import models
from qrgate.apps.access.models import AccessGrant
from qrgate.apps.documents.models import Document

REASON_SEPARATOR = "; "


class AccessAttempt(models.Model):
    """Every evaluated scan, granted or denied. Only the alert fields change after insert."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    grant = models.ForeignKey(AccessGrant, on_delete=models.CASCADE, related_name="attempts")
    document = models.ForeignKey(Document, on_delete=models.CASCADE, related_name="access_attempts")
    viewer_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)  # opaque identity id
    granted = models.BooleanField(db_index=True)
    denial_reason = models.TextField(null=True, blank=True)  # reasons joined with "; "
    viewer_latitude = models.FloatField(null=True, blank=True)
    viewer_longitude = models.FloatField(null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)
    ip_address = models.CharField(max_length=64, null=True, blank=True)  # transport source address
    reported_ip_address = models.CharField(max_length=64, null=True, blank=True)  # client-supplied hint
    alert_generated = models.BooleanField(default=False)
    alert_message = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        indexes = [models.Index(fields=["grant", "granted", "created_at"])]
        ordering = ["-created_at"]

    @property
    def denial_reasons(self) -> list[str]:
        if not self.denial_reason:
            return []
        return self.denial_reason.split(REASON_SEPARATOR)
