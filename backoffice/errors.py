"""Custom domain exceptions for the application."""

# Stable, machine-readable error codes for API consumers.
NOT_FOUND = "NOT_FOUND"
CONFLICT = "CONFLICT"
VALIDATION_ERROR = "VALIDATION_ERROR"
UNAUTHORIZED = "UNAUTHORIZED"
FORBIDDEN = "FORBIDDEN"
TRANSACTION_ERROR = "TRANSACTION_ERROR"
DATA_QUALITY_ERROR = "DATA_QUALITY_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    pass


class ConflictError(DomainError):
    """Raised when a business rule forbids the requested state (e.g. a second active contract for an estate)."""

    pass


class DuplicateResourceError(ConflictError):
    """Raised when attempting to create or update a resource that would violate a uniqueness constraint."""

    pass


class DomainValidationError(DomainError):
    """Raised when business rules or domain validation fail (e.g. invalid dates, missing required fields)."""

    pass


class UnauthorizedError(DomainError):
    """Raised when credentials are missing or invalid."""

    pass


class ForbiddenError(DomainError):
    """Raised when the authenticated user may not perform the operation."""

    pass


class TransactionError(DomainError):
    """Raised when the store fails during an atomic write. The transaction has been rolled back."""

    pass


class DataQualityError(DomainError):
    """Raised when stored data holds a value outside a closed set (e.g. an unknown contract status)."""

    pass
