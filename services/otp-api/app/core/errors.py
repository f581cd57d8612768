"""
Error taxonomy for the OTP service.

Every error raised on a request path derives from OtpAuthError and carries the
HTTP status it maps to; `main` renders them as `{"message": ...}`.
Notification failures are not part of this taxonomy: senders log and return False.
"""
from fastapi import status


class OtpAuthError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(OtpAuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class StorageError(OtpAuthError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Storage error"


class InvalidOtpError(OtpAuthError):
    # Same message for never-issued, superseded, expired and wrong code.
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "OTP is invalid or expired"


class InvalidTokenError(OtpAuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Token is invalid or expired"
