import json
import math

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .exceptions import GrantNotFound, OtpNotRequired
from .services.access import validate_access
from .services.otp import issue_otp
from .services.rules import ScanRequest

# Matches AccessAttempt.ip_address / reported_ip_address
MAX_IP_ADDRESS_LENGTH = 64


class MalformedRequest(ValueError):
    pass


def _json_body(request) -> dict:
    try:
        data = json.loads(request.body.decode("utf-8") or "null")
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedRequest("Request body must be valid JSON") from e
    if not isinstance(data, dict):
        raise MalformedRequest("Request body must be a JSON object")
    return data


def _optional_coordinate(data: dict, key: str):
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise MalformedRequest(f"{key} must be a number")
    return float(value)


def _optional_string(data: dict, key: str, max_length=None):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedRequest(f"{key} must be a string")
    if max_length is not None and len(value) > max_length:
        raise MalformedRequest(f"{key} must be at most {max_length} characters")
    return value


def _client_ip(request):
    """Source address of the request; X-Forwarded-For only behind a trusted proxy."""
    address = None
    if settings.TRUST_X_FORWARDED_FOR:
        forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
        if forwarded:
            address = forwarded.split(",")[0].strip()
    address = address or request.META.get("REMOTE_ADDR")
    return address[:MAX_IP_ADDRESS_LENGTH] if address else None


def parse_scan_request(request) -> ScanRequest:
    data = _json_body(request)
    code = data.get("qrCode")
    if not isinstance(code, str) or not code.strip():
        raise MalformedRequest("qrCode is required")

    return ScanRequest(
        code=code.strip(),
        latitude=_optional_coordinate(data, "latitude"),
        longitude=_optional_coordinate(data, "longitude"),
        otp_code=_optional_string(data, "otpCode"),
        password=_optional_string(data, "password"),
        authorization=request.headers.get("Authorization"),
        user_agent=_optional_string(data, "userAgent") or request.headers.get("User-Agent"),
        ip_address=_client_ip(request),
        # client-reported address is kept as a hint only
        reported_ip_address=_optional_string(data, "ipAddress", max_length=MAX_IP_ADDRESS_LENGTH),
    )


@csrf_exempt
def validate_access_view(request):
    """Grant or deny a QR scan. 200 granted, 403 denied, 404 unknown/inactive code."""
    if request.method != "POST":
        return JsonResponse({"error": "Method not allowed"}, status=405)

    try:
        scan = parse_scan_request(request)
    except MalformedRequest as e:
        return JsonResponse({"success": False, "error": str(e), "reasons": []}, status=400)

    try:
        verdict = validate_access(scan)
    except GrantNotFound as e:
        return JsonResponse({"success": False, "reason": str(e), "reasons": []}, status=404)

    return JsonResponse(verdict.as_response(), status=200 if verdict.granted else 403)


@csrf_exempt
def generate_otp_view(request):
    """Issue a fresh OTP for a grant that requires one."""
    if request.method != "POST":
        return JsonResponse({"error": "Method not allowed"}, status=405)

    try:
        data = _json_body(request)
    except MalformedRequest as e:
        return JsonResponse({"error": str(e)}, status=400)

    grant_id = data.get("qrCodeGrantId") or data.get("qrCodeId")
    if not isinstance(grant_id, str) or not grant_id:
        return JsonResponse({"error": "qrCodeGrantId is required"}, status=400)

    try:
        challenge = issue_otp(grant_id)
    except GrantNotFound as e:
        return JsonResponse({"error": str(e)}, status=404)
    except OtpNotRequired as e:
        return JsonResponse({"error": str(e)}, status=400)

    return JsonResponse(
        {
            "success": True,
            "otpCode": challenge.code,  # delivery channel is out of scope; returned directly
            "expiresAt": challenge.expires_at.isoformat(),
            "message": "OTP generated successfully",
        }
    )
