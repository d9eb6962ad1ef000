# qrgate/access/models.py
import uuid
from django.core.exceptions import ValidationError
from django.db import models
from qrgate.apps.documents.models import Document


def generate_grant_code() -> str:
    return str(uuid.uuid4())


class AccessGrant(models.Model):
    """A scannable permission (the QR code) scoped to one document."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    document = models.ForeignKey(Document, on_delete=models.CASCADE, related_name="grants")
    code = models.CharField(max_length=64, unique=True, default=generate_grant_code, editable=False)

    # Geofence: both coordinates or neither
    fence_latitude = models.FloatField(null=True, blank=True)
    fence_longitude = models.FloatField(null=True, blank=True)
    fence_radius_meters = models.PositiveIntegerField(default=100)

    expires_at = models.DateTimeField(null=True, blank=True)  # null = never expires

    # Outstanding OTP challenge; issuing a new one overwrites these
    require_otp = models.BooleanField(default=False)
    otp_code = models.CharField(max_length=6, null=True, blank=True)
    otp_expires_at = models.DateTimeField(null=True, blank=True)

    password_secret = models.CharField(max_length=128, null=True, blank=True)  # plain text, see DESIGN.md

    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=["code", "is_active"])]

    @property
    def has_fence(self) -> bool:
        return self.fence_latitude is not None and self.fence_longitude is not None

    def clean(self):
        if (self.fence_latitude is None) != (self.fence_longitude is None):
            raise ValidationError("Fence latitude and longitude must be set together.")

    def __str__(self):
        return self.code
