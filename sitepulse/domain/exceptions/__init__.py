# Domain Exceptions
from .domain_exceptions import (
    DomainException,
    EntityNotFoundException,
    ValidationException,
    QueryValidationError,
    AuthorizationException,
    StorageException,
)

__all__ = [
    'DomainException',
    'EntityNotFoundException',
    'ValidationException',
    'QueryValidationError',
    'AuthorizationException',
    'StorageException',
]
