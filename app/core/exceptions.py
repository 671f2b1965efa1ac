"""
Custom Exceptions for the Meeting Settlement Service

This module defines custom exception classes used throughout the application
for better error handling and debugging. Every exception carries the HTTP
status it maps to, so the API layer can render it without a lookup table.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    OPERATION_FAILED = "OPERATION_FAILED"

    # Authentication & Authorization
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_FORMAT = "INVALID_FORMAT"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Verification protocol
    INVALID_STATE = "INVALID_STATE"
    ALREADY_RESOLVED = "ALREADY_RESOLVED"
    ATTEMPTS_EXCEEDED = "ATTEMPTS_EXCEEDED"
    ALREADY_SUBMITTED = "ALREADY_SUBMITTED"

    # Settlement
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_GATEWAY_ERROR = "PAYMENT_GATEWAY_ERROR"
    PAYOUT_DESTINATION_MISSING = "PAYOUT_DESTINATION_MISSING"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# General Application Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when data validation fails"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = 422
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details, status_code)


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


class ForbiddenError(BaseAppException):
    """Exception raised when the caller may not act on a resource"""

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        error_code: ErrorCode = ErrorCode.AUTHORIZATION_FAILED,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, details, 403)


class DatabaseError(BaseAppException):
    """Exception raised for database-related errors"""

    def __init__(
        self,
        message: str = "Database operation failed",
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, details, 500)


# ========================================
# Verification Protocol Exceptions
# ========================================

class InvalidStateError(BaseAppException):
    """Exception raised when a booking is not in a state that allows the operation"""

    def __init__(
        self,
        message: str = "Booking is not in a valid state for this operation",
        current_state: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if current_state is not None:
            details["current_state"] = current_state
        super().__init__(message, ErrorCode.INVALID_STATE, details, 409)


class AlreadyResolvedError(BaseAppException):
    """Exception raised when a verification or dispute already reached a terminal outcome"""

    def __init__(
        self,
        message: str = "Already resolved",
        resolution: Optional[str] = None
    ):
        details = {"resolution": resolution} if resolution else {}
        super().__init__(message, ErrorCode.ALREADY_RESOLVED, details, 409)


class AttemptsExceededError(BaseAppException):
    """Exception raised when a party has spent its code attempt budget"""

    def __init__(
        self,
        message: str = "Maximum verification attempts exceeded",
        max_attempts: Optional[int] = None
    ):
        details = {"max_attempts": max_attempts} if max_attempts is not None else {}
        super().__init__(message, ErrorCode.ATTEMPTS_EXCEEDED, details, 429)


class AlreadySubmittedError(BaseAppException):
    """Exception raised when a party resubmits after entering the correct code"""

    def __init__(
        self,
        message: str = "You have already entered your verification code",
        role: Optional[str] = None
    ):
        details = {"role": role} if role else {}
        super().__init__(message, ErrorCode.ALREADY_SUBMITTED, details, 409)


# ========================================
# Settlement Exceptions
# ========================================

class ProcessorFailure(BaseAppException):
    """Exception raised when a payment processor call fails"""

    def __init__(
        self,
        message: str = "Payment processor request failed",
        operation: Optional[str] = None,
        processor_error: Optional[str] = None
    ):
        details: Dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if processor_error:
            details["processor_error"] = processor_error
        super().__init__(message, ErrorCode.PAYMENT_GATEWAY_ERROR, details, 502)


class PayoutDestinationMissingError(BaseAppException):
    """Exception raised when a provider has no active payout destination"""

    def __init__(
        self,
        provider_id: Optional[str] = None,
        message: str = "Provider does not have an active payout account"
    ):
        details = {"provider_id": provider_id} if provider_id else {}
        super().__init__(message, ErrorCode.PAYOUT_DESTINATION_MISSING, details, 422)


class ConfigurationError(BaseAppException):
    """Exception raised for configuration-related errors"""

    def __init__(
        self,
        message: str = "Configuration error",
        config_key: Optional[str] = None
    ):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details, 500)
