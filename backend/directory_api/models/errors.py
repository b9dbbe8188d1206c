"""Error models"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Error codes"""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    CONFLICT = "CONFLICT"
    BUSINESS_NOT_OPERATIONAL = "BUSINESS_NOT_OPERATIONAL"
    GOOGLE_RATE_LIMIT = "GOOGLE_RATE_LIMIT"
    GOOGLE_REQUEST_DENIED = "GOOGLE_REQUEST_DENIED"
    GOOGLE_INVALID_REQUEST = "GOOGLE_INVALID_REQUEST"
    GOOGLE_API_ERROR = "GOOGLE_API_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    MATERIALIZATION_FAILED = "MATERIALIZATION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_HTTP_STATUS = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_STATE: 409,
    ErrorCode.CONFLICT: 409,
    ErrorCode.BUSINESS_NOT_OPERATIONAL: 400,
    ErrorCode.GOOGLE_RATE_LIMIT: 429,
    ErrorCode.GOOGLE_REQUEST_DENIED: 403,
    ErrorCode.GOOGLE_INVALID_REQUEST: 400,
    ErrorCode.GOOGLE_API_ERROR: 500,
    ErrorCode.CONFIGURATION_ERROR: 503,
    ErrorCode.MATERIALIZATION_FAILED: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


class ApplicationError(Exception):
    """Base class for errors that map onto an HTTP response"""

    default_code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, code: Optional[ErrorCode] = None, hint: Optional[str] = None):
        self.code = code or self.default_code
        self.message = message
        self.hint = hint
        super().__init__(self.message)

    def model_dump(self) -> Dict[str, Any]:
        """Return dict representation for API responses"""
        body: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code.value,
        }
        if self.hint:
            body["hint"] = self.hint
        return body

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS.get(self.code, 500)


class ValidationError(ApplicationError):
    """Malformed or missing client input"""
    default_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, fields: Optional[List[str]] = None, hint: Optional[str] = None):
        super().__init__(message, hint=hint)
        self.fields = fields or []


class AuthorizationError(ApplicationError):
    """Missing identity (401) or insufficient privilege (403)"""
    default_code = ErrorCode.FORBIDDEN

    @classmethod
    def unauthenticated(cls, message: str = "Unauthorized") -> "AuthorizationError":
        return cls(message, code=ErrorCode.UNAUTHENTICATED)

    @classmethod
    def forbidden(cls, message: str = "Forbidden") -> "AuthorizationError":
        return cls(message, code=ErrorCode.FORBIDDEN)


class NotFoundError(ApplicationError):
    default_code = ErrorCode.NOT_FOUND


class InvalidStateError(ApplicationError):
    """Transition attempted from a terminal submission state"""
    default_code = ErrorCode.INVALID_STATE


class ConflictError(ApplicationError):
    """Unique key violation in the datastore"""
    default_code = ErrorCode.CONFLICT

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class BusinessNotOperationalError(ApplicationError):
    default_code = ErrorCode.BUSINESS_NOT_OPERATIONAL


class ConfigurationError(ApplicationError):
    default_code = ErrorCode.CONFIGURATION_ERROR


class MaterializationError(ApplicationError):
    """A submission was approved but its listing could not be created"""
    default_code = ErrorCode.MATERIALIZATION_FAILED


# Google Places status -> error code
_EXTERNAL_STATUS_CODES = {
    "OVER_QUERY_LIMIT": ErrorCode.GOOGLE_RATE_LIMIT,
    "REQUEST_DENIED": ErrorCode.GOOGLE_REQUEST_DENIED,
    "NOT_FOUND": ErrorCode.GOOGLE_INVALID_REQUEST,
    "INVALID_REQUEST": ErrorCode.GOOGLE_INVALID_REQUEST,
}


class ExternalServiceError(ApplicationError):
    """Error status returned by the Google Places API"""

    def __init__(self, message: str, status: str = "UNKNOWN_ERROR"):
        super().__init__(message, code=_EXTERNAL_STATUS_CODES.get(status, ErrorCode.GOOGLE_API_ERROR))
        self.status = status

    @property
    def is_rate_limited(self) -> bool:
        return self.status == "OVER_QUERY_LIMIT"
