"""
Domain Exceptions - Custom exceptions for domain-specific errors.
"""
from typing import Any, Dict, Optional
from uuid import UUID


class DomainException(Exception):
    """
    Base exception for all domain-related errors.

    All domain exceptions should inherit from this class to allow
    for consistent error handling across the application.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            'error': self.code,
            'message': self.message,
            'details': self.details
        }


class EntityNotFoundException(DomainException):
    """Raised when a requested entity cannot be found."""

    def __init__(
        self,
        entity_type: str,
        entity_id: Optional[UUID] = None,
        message: Optional[str] = None
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        msg = message or f"{entity_type} not found"
        if entity_id:
            msg = f"{entity_type} with id '{entity_id}' not found"
        super().__init__(
            message=msg,
            code='ENTITY_NOT_FOUND',
            details={'entity_type': entity_type, 'entity_id': str(entity_id) if entity_id else None}
        )


class ValidationException(DomainException):
    """
    Raised when domain validation fails.

    Can contain multiple validation errors for different fields.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[Dict[str, list]] = None
    ):
        self.errors = errors or {}
        super().__init__(
            message=message,
            code='VALIDATION_ERROR',
            details={'validation_errors': self.errors}
        )

    def add_error(self, field: str, error: str) -> None:
        """Add a validation error for a specific field."""
        if field not in self.errors:
            self.errors[field] = []
        self.errors[field].append(error)
        self.details['validation_errors'] = self.errors


class QueryValidationError(ValidationException):
    """
    Raised when a time-series request is malformed.

    Carries a short error title, a human readable detail line and the
    name of the offending request field.
    """

    def __init__(self, error: str, details: str, field: str):
        self.error = error
        self.detail = details
        self.field = field
        super().__init__(message=error, errors={field: [details]})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the 400 response body."""
        return {
            'error': self.error,
            'details': self.detail,
            'field': self.field
        }


class AuthorizationException(DomainException):
    """Raised when a caller lacks the credential for an operation."""

    def __init__(
        self,
        message: str = "Not authorized to perform this action",
        missing: bool = False
    ):
        self.missing = missing
        super().__init__(
            message=message,
            code='MISSING_AUTHORIZATION' if missing else 'NOT_AUTHORIZED'
        )


class StorageException(DomainException):
    """
    Raised when the backing store fails.

    The underlying message is kept for logging; API responses never
    expose it.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        message = f"Storage operation '{operation}' failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(
            message=message,
            code='STORAGE_ERROR',
            details={'operation': operation}
        )
