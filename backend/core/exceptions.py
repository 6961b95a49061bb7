"""
Domain exceptions raised by services and mapped to HTTP responses in main.py.
"""


class DomainError(Exception):
    """Base exception for service-layer errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Raised when a requested record does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when an operation conflicts with existing state."""

    status_code = 409


class ValidationError(DomainError):
    """Raised when input is well-formed but violates a business rule."""

    status_code = 400


class StorageError(DomainError):
    """Raised when the file storage backend fails."""

    status_code = 502


class ConversionError(DomainError):
    """Raised when a document cannot be converted."""

    status_code = 400
