"""
Access rules evaluated against a grant for one scan.

Every rule is a pure predicate returning a denial reason or None. All rules
run; reasons are collected in the order of RULES so the verdict is
deterministic. A scan is granted only when no rule produced a reason.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from qrgate.apps.access.models import AccessGrant
from qrgate.apps.access.services.geo import distance_meters
from qrgate.apps.access.services.otp import validate_otp

DOCUMENT_INACTIVE = "Document is no longer active"
GRANT_EXPIRED = "QR code has expired"
LOCATION_MISSING = "Location verification required but not provided"
PASSWORD_MISSING = "Password required but not provided"
PASSWORD_INVALID = "Invalid password"


def location_outside_radius(distance: float) -> str:
    return f"Location outside allowed radius ({round(distance)}m away)"


@dataclass(frozen=True)
class ScanRequest:
    """What a viewer sent when scanning a code, plus transport details."""

    code: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    otp_code: Optional[str] = None
    password: Optional[str] = None
    authorization: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    reported_ip_address: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class Verdict:
    granted: bool
    reasons: list[str] = field(default_factory=list)
    document_id: Optional[str] = None
    storage_path: Optional[str] = None
    filename: Optional[str] = None

    def as_response(self) -> dict:
        return {
            "success": self.granted,
            "documentId": self.document_id,
            "storagePath": self.storage_path,
            "filename": self.filename,
            "reasons": list(self.reasons),
        }


Rule = Callable[[AccessGrant, ScanRequest, datetime], Optional[str]]


def check_document_active(grant: AccessGrant, scan: ScanRequest, now: datetime) -> Optional[str]:
    if not grant.document.is_active:
        return DOCUMENT_INACTIVE
    return None


def check_expiry(grant: AccessGrant, scan: ScanRequest, now: datetime) -> Optional[str]:
    if grant.expires_at is not None and now > grant.expires_at:
        return GRANT_EXPIRED
    return None


def check_geofence(grant: AccessGrant, scan: ScanRequest, now: datetime) -> Optional[str]:
    if not grant.has_fence:
        return None
    if not scan.has_location:
        return LOCATION_MISSING

    distance = distance_meters(
        grant.fence_latitude, grant.fence_longitude, scan.latitude, scan.longitude
    )
    if distance > grant.fence_radius_meters:
        return location_outside_radius(distance)
    return None


def check_otp(grant: AccessGrant, scan: ScanRequest, now: datetime) -> Optional[str]:
    if not grant.require_otp:
        return None
    result = validate_otp(grant, scan.otp_code, now)
    return None if result.ok else result.reason


def check_password(grant: AccessGrant, scan: ScanRequest, now: datetime) -> Optional[str]:
    if not grant.password_secret:
        return None
    if not scan.password:
        return PASSWORD_MISSING
    # Plain equality against the stored secret; see DESIGN.md (open questions).
    if scan.password != grant.password_secret:
        return PASSWORD_INVALID
    return None


RULES: tuple[Rule, ...] = (
    check_document_active,
    check_expiry,
    check_geofence,
    check_otp,
    check_password,
)


def evaluate(grant: AccessGrant, scan: ScanRequest, now: datetime) -> Verdict:
    """Run every rule and build the verdict; success fields only when granted."""
    reasons = [reason for reason in (rule(grant, scan, now) for rule in RULES) if reason]

    if reasons:
        return Verdict(granted=False, reasons=reasons)

    document = grant.document
    return Verdict(
        granted=True,
        reasons=[],
        document_id=str(document.id),
        storage_path=document.storage_path,
        filename=document.original_filename,
    )
