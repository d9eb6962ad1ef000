class AccessError(Exception):
    """Base class for access pipeline errors surfaced to the caller."""


class GrantNotFound(AccessError):
    """No active grant matches the supplied code or id."""


class OtpNotRequired(AccessError):
    """OTP issuance was requested for a grant that does not use OTP."""
