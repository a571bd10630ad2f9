"""Custom exception classes for the RSAMS backend.

This module defines application-specific exceptions following Google Python
Style Guide.
"""

from rsams.core.results import ErrorKind, Failure


class RSAMSError(Exception):
    """Base exception for all RSAMS errors."""

    pass


class ConfigurationError(RSAMSError):
    """Raised when there is a configuration error."""

    pass


class InternalError(RSAMSError):
    """Raised when an unexpected persistence, hashing or token fault occurs."""

    pass


class DuplicateEmailError(RSAMSError):
    """Raised when the email uniqueness constraint is violated."""

    def __init__(self, email: str):
        """Initialize the exception.

        Args:
            email: The email address that is already registered.
        """
        self.email = email
        super().__init__(f"Account with email '{email}' already exists")


class DuplicateStudentIdError(RSAMSError):
    """Raised when the student identifier uniqueness constraint is violated."""

    def __init__(self, student_id: str):
        """Initialize the exception.

        Args:
            student_id: The student identifier that is already in use.
        """
        self.student_id = student_id
        super().__init__(f"Student ID '{student_id}' already exists")


class AccountNotFoundError(RSAMSError):
    """Raised when a requested account cannot be found."""

    def __init__(self, account_id: str):
        """Initialize the exception.

        Args:
            account_id: The ID of the account that was not found.
        """
        self.account_id = account_id
        super().__init__(f"Account '{account_id}' not found")


# HTTP status returned for each failure kind
HTTP_STATUS_BY_KIND = {
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.DUPLICATE_EMAIL: 400,
    ErrorKind.DUPLICATE_STUDENT_ID: 400,
    ErrorKind.WEAK_PASSWORD: 400,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.ACCOUNT_DEACTIVATED: 401,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ACCOUNT_LOCKED: 423,
    ErrorKind.INTERNAL_ERROR: 500,
}


class ApiError(RSAMSError):
    """Raised by the route layer to produce a failure response."""

    def __init__(self, kind: ErrorKind, message: str):
        """Initialize the exception.

        Args:
            kind: Machine-readable failure kind.
            message: Human-readable message returned to the client.
        """
        self.kind = kind
        self.message = message
        super().__init__(message)

    @classmethod
    def from_failure(cls, failure: Failure) -> "ApiError":
        return cls(failure.kind, failure.message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]
