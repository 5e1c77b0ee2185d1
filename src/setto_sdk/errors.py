"""Error types for Setto SDK.

Errors are raised inside the SDK internals and converted at the client
boundary into a FAILED ``PaymentResult`` (payment flow) or an error
``PaymentInfoResponse`` (status query).
"""

from enum import Enum
from typing import Optional


class SettoErrorCode(str, Enum):
    """Error codes reported by the wallet page or raised by the SDK."""

    # User action
    USER_CANCELLED = "USER_CANCELLED"

    # Payment failures
    PAYMENT_FAILED = "PAYMENT_FAILED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    TRANSACTION_REJECTED = "TRANSACTION_REJECTED"

    # Network / system
    NETWORK_ERROR = "NETWORK_ERROR"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    NOT_INITIALIZED = "NOT_INITIALIZED"

    # Parameters
    INVALID_PARAMS = "INVALID_PARAMS"
    INVALID_MERCHANT = "INVALID_MERCHANT"

    @classmethod
    def from_code(cls, code: Optional[str]) -> "SettoErrorCode":
        """Look up a code, falling back to PAYMENT_FAILED for unknown values."""
        for member in cls:
            if member.value == code:
                return member
        return cls.PAYMENT_FAILED


_MESSAGES = {
    SettoErrorCode.USER_CANCELLED: "The user cancelled the payment.",
    SettoErrorCode.INSUFFICIENT_BALANCE: "Insufficient balance.",
    SettoErrorCode.TRANSACTION_REJECTED: "The transaction was rejected.",
    SettoErrorCode.NETWORK_ERROR: "A network error occurred.",
    SettoErrorCode.SESSION_EXPIRED: "The session has expired.",
    SettoErrorCode.INVALID_PARAMS: "Invalid parameters.",
    SettoErrorCode.INVALID_MERCHANT: "Invalid merchant.",
    SettoErrorCode.NOT_INITIALIZED: "SDK not initialized",
    SettoErrorCode.MALFORMED_RESPONSE: "Malformed response from Setto.",
}


def describe_error(code: Optional[str]) -> Optional[str]:
    """Human-readable message for a wallet ``error`` callback parameter.

    Unknown codes are returned unchanged.
    """
    error_code = SettoErrorCode.from_code(code)
    return _MESSAGES.get(error_code, code)


class SettoError(Exception):
    """Base class for all Setto SDK errors."""

    code: SettoErrorCode = SettoErrorCode.PAYMENT_FAILED

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or _MESSAGES.get(self.code, self.code.value))


class ConfigError(SettoError):
    """Raised when the supplied configuration is invalid."""

    code = SettoErrorCode.INVALID_PARAMS


class NotInitializedError(SettoError):
    """Raised when an operation needs configuration but none was set."""

    code = SettoErrorCode.NOT_INITIALIZED


class NetworkError(SettoError):
    """Transport failure or non-200 response from Setto."""

    code = SettoErrorCode.NETWORK_ERROR

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(SettoError):
    """Response body is missing expected fields or is not JSON."""

    code = SettoErrorCode.MALFORMED_RESPONSE
