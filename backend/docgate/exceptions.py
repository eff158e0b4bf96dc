"""DocGate exceptions.

Each exception knows its HTTP status and machine-readable code, so the
handler in ``middleware.exception_handler`` can render any of them as
``{"error": ..., "message": ..., "details": ...}``.

A denied access decision is *not* an exception: the engine returns False and
only the gate turns that into ``ForbiddenError``.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RESOURCE_UNAVAILABLE = "RESOURCE_UNAVAILABLE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class DocGateException(Exception):
    """Base class. Subclasses set ``error_code`` and ``status_code``."""

    error_code: ErrorCode
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class DocumentNotFoundError(DocGateException):
    error_code = ErrorCode.DOCUMENT_NOT_FOUND
    status_code = 404

    def __init__(self, doc_id: str):
        super().__init__(f"Document not found: {doc_id}", {"doc_id": doc_id})


class ValidationError(DocGateException):
    error_code = ErrorCode.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)


class AuthenticationError(DocGateException):
    """No principal: token missing, malformed, expired or badly signed."""

    error_code = ErrorCode.UNAUTHORIZED
    status_code = 401

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(message)


class ForbiddenError(DocGateException):
    error_code = ErrorCode.FORBIDDEN
    status_code = 403

    def __init__(self, message: str = "You do not have permission to access this document"):
        super().__init__(message)


class StoreError(DocGateException):
    """A backing store could not answer a read."""

    error_code = ErrorCode.STORE_UNAVAILABLE
    status_code = 503

    def __init__(self, message: str, resource: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, {"resource": resource, **(details or {})})
        self.resource = resource


class ResourceUnavailableError(StoreError):
    """A store's table has not been provisioned (e.g. migration not yet applied).

    Grant sources treat this as "zero grants from this source". It only
    reaches a client when a mandatory store (documents) is missing.
    """

    error_code = ErrorCode.RESOURCE_UNAVAILABLE

    def __init__(self, resource: str):
        super().__init__(f"Resource not provisioned: {resource}", resource)


class TransientStoreError(StoreError):
    """Timeout, lost connection, or any unclassified store failure.

    Aborts the whole access decision; never coerced into a denial.
    """

    def __init__(self, resource: str, original_error: Optional[Exception] = None):
        extra = {"original_error": type(original_error).__name__} if original_error is not None else None
        super().__init__(f"Store read failed: {resource}", resource, extra)
        self.original_error = original_error
