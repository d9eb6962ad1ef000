"""
One-time passcode challenges bound to an access grant.
A grant holds at most one outstanding code; issuing a new one overwrites it.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from qrgate.apps.access.exceptions import GrantNotFound, OtpNotRequired
from qrgate.apps.access.models import AccessGrant

logger = logging.getLogger(__name__)

OTP_DIGITS = 6
OTP_SPACE = 10**OTP_DIGITS

OTP_MISSING = "OTP required but not provided"
OTP_INVALID = "Invalid OTP code"
OTP_EXPIRED = "OTP has expired"


@dataclass(frozen=True)
class OtpChallenge:
    code: str
    expires_at: datetime


@dataclass(frozen=True)
class OtpResult:
    ok: bool
    reason: Optional[str] = None


def generate_otp_code() -> str:
    """Uniform draw from [0, 1_000_000), zero padded to six digits."""
    return f"{secrets.randbelow(OTP_SPACE):0{OTP_DIGITS}d}"


def _otp_ttl() -> timedelta:
    return timedelta(minutes=getattr(settings, "OTP_TTL_MINUTES", 10))


def issue_otp(grant_id, now: Optional[datetime] = None) -> OtpChallenge:
    """
    Issue a fresh challenge for an active grant and persist it.

    Raises GrantNotFound for a missing/inactive grant (or an id that is not a
    UUID) and OtpNotRequired when the grant does not use OTP.
    """
    try:
        grant = AccessGrant.objects.filter(id=grant_id, is_active=True).first()
    except ValidationError:
        grant = None
    if grant is None:
        raise GrantNotFound("Invalid or inactive QR code")

    if not grant.require_otp:
        raise OtpNotRequired("OTP not required for this QR code")

    now = now or timezone.now()
    grant.otp_code = generate_otp_code()
    grant.otp_expires_at = now + _otp_ttl()
    grant.save(update_fields=["otp_code", "otp_expires_at"])

    # Delivery (email/SMS) is left to the caller; the code is returned as-is.
    logger.info(f"Issued OTP for grant {grant.id}, expires {grant.otp_expires_at.isoformat()}")
    return OtpChallenge(code=grant.otp_code, expires_at=grant.otp_expires_at)


def validate_otp(grant: AccessGrant, supplied_code: Optional[str], now: datetime) -> OtpResult:
    """
    Check a supplied code against the grant's outstanding challenge.

    Fails closed. A matching but expired code reports expiry, not invalidity.
    The stored code is left in place either way.
    """
    if not grant.require_otp:
        return OtpResult(ok=True)
    if not supplied_code:
        return OtpResult(ok=False, reason=OTP_MISSING)
    if grant.otp_code is None or grant.otp_code != supplied_code:
        return OtpResult(ok=False, reason=OTP_INVALID)
    if grant.otp_expires_at is not None and now > grant.otp_expires_at:
        return OtpResult(ok=False, reason=OTP_EXPIRED)
    return OtpResult(ok=True)
