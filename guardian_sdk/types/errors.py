"""
Error types and classification for the Guardian SDK.
Every failure surfaced by the SDK is a GuardianException carrying an ErrorKind.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Broad origin of an error."""
    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    PROTOCOL_UNPARSEABLE = "protocol_unparseable"
    INVALID_RESPONSE = "invalid_response"
    VALIDATION = "validation"
    INVALID_ARGUMENT = "invalid_argument"
    SIGNING = "signing"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


ERROR_INVALID_OTP = "invalid_otp"
ERROR_INVALID_TOKEN = "invalid_token"
ERROR_DEVICE_ACCOUNT_NOT_FOUND = "device_account_not_found"
ERROR_ENROLLMENT_NOT_FOUND = "enrollment_not_found"
ERROR_ENROLLMENT_TRANSACTION_NOT_FOUND = "enrollment_transaction_not_found"
ERROR_LOGIN_TRANSACTION_NOT_FOUND = "login_transaction_not_found"

HTTP_NOT_FOUND = 404


def is_invalid_otp(error_code: Optional[str]) -> bool:
    return error_code == ERROR_INVALID_OTP


def is_invalid_token(error_code: Optional[str]) -> bool:
    return error_code == ERROR_INVALID_TOKEN


def is_enrollment_not_found(error_code: Optional[str]) -> bool:
    return error_code in (ERROR_DEVICE_ACCOUNT_NOT_FOUND, ERROR_ENROLLMENT_NOT_FOUND)


def is_enrollment_transaction_not_found(error_code: Optional[str]) -> bool:
    return error_code == ERROR_ENROLLMENT_TRANSACTION_NOT_FOUND


def is_login_transaction_not_found(error_code: Optional[str]) -> bool:
    return error_code == ERROR_LOGIN_TRANSACTION_NOT_FOUND


def is_resource_not_found(error_code: Optional[str], status_code: Optional[int]) -> bool:
    """True for HTTP 404 or any error code containing ``not_found``."""
    if status_code == HTTP_NOT_FOUND:
        return True
    return error_code is not None and "not_found" in error_code.lower()


class GuardianException(Exception):
    """Base exception for all Guardian SDK errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        error_body: Optional[Any] = None,
        kind: ErrorKind = ErrorKind.PROTOCOL,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.error_body = error_body
        self.kind = kind
        self.cause = cause
        self.details = details or {}
        if cause is not None:
            self.__cause__ = cause

    @classmethod
    def from_error_body(cls, body: Dict[str, Any],
                        status_code: Optional[int] = None) -> "GuardianException":
        """Build an error from a structured server error body."""
        error_code = body.get('errorCode')
        if status_code is None and isinstance(body.get('statusCode'), int):
            status_code = body['statusCode']
        message = body.get('error') or body.get('message') or "Server error"
        return cls(
            str(message),
            error_code=str(error_code) if error_code is not None else None,
            status_code=status_code,
            error_body=body,
            kind=ErrorKind.PROTOCOL,
        )

    @classmethod
    def unparseable(cls, status_code: int, raw_body: Optional[str] = None,
                    cause: Optional[BaseException] = None) -> "GuardianException":
        """Build an error for an HTTP failure whose body is not a structured error."""
        return cls(
            f"Error parsing server error (HTTP {status_code})",
            status_code=status_code,
            error_body=raw_body,
            kind=ErrorKind.PROTOCOL_UNPARSEABLE,
            cause=cause,
        )

    @classmethod
    def from_transport_error(cls, error: BaseException) -> "TransportError":
        """Wrap a network/IO failure."""
        return TransportError(f"Request failed: {error}", cause=error)

    def is_invalid_otp(self) -> bool:
        return is_invalid_otp(self.error_code)

    def is_invalid_token(self) -> bool:
        return is_invalid_token(self.error_code)

    def is_enrollment_not_found(self) -> bool:
        return is_enrollment_not_found(self.error_code)

    def is_enrollment_transaction_not_found(self) -> bool:
        return is_enrollment_transaction_not_found(self.error_code)

    def is_login_transaction_not_found(self) -> bool:
        return is_login_transaction_not_found(self.error_code)

    def is_resource_not_found(self) -> bool:
        return is_resource_not_found(self.error_code, self.status_code)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            'kind': self.kind.value,
            'message': self.message,
            'error_code': self.error_code,
            'status_code': self.status_code,
            'details': self.details,
        }

        if self.cause:
            result['cause'] = str(self.cause)

        return result

    def __str__(self) -> str:
        if self.error_code:
            return f"{self.kind.value}: {self.message} ({self.error_code})"
        return f"{self.kind.value}: {self.message}"


class TransportError(GuardianException):
    """Raised when the HTTP call itself fails (DNS, connection, timeout)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, kind=ErrorKind.TRANSPORT, cause=cause)


class InvalidResponseError(GuardianException):
    """Raised when a successful response cannot be turned into the expected value."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 error_body: Optional[Any] = None, cause: Optional[BaseException] = None):
        super().__init__(message, status_code=status_code, error_body=error_body,
                         kind=ErrorKind.INVALID_RESPONSE, cause=cause)


class ValidationError(GuardianException):
    """Raised when local input is malformed, before any network call."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, kind=ErrorKind.VALIDATION, cause=cause)
        self.field = field
        self.value = value

        if field:
            self.details['field'] = field
        if value is not None:
            self.details['value'] = str(value)


class InvalidArgumentError(GuardianException, ValueError):
    """Raised for invalid arguments such as a malformed TOTP secret or a non-RSA key."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, kind=ErrorKind.INVALID_ARGUMENT, cause=cause)


class SigningError(GuardianException):
    """Raised when a JWT cannot be signed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, kind=ErrorKind.SIGNING, cause=cause)


class CancelledRequestError(GuardianException):
    """Raised when a pending request was cancelled by the caller."""

    def __init__(self, message: str = "Request was cancelled"):
        super().__init__(message, kind=ErrorKind.CANCELLED)
