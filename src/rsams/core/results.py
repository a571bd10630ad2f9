"""Result values returned across the authentication boundary.

Expected, user-recoverable outcomes (bad credentials, a locked account, a
duplicate email and so on) are returned as a failed ``Result`` carrying an
``ErrorKind``. Only unexpected faults are raised as exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Stable, machine-distinguishable failure kinds."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    DUPLICATE_STUDENT_ID = "DUPLICATE_STUDENT_ID"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    ACCOUNT_DEACTIVATED = "ACCOUNT_DEACTIVATED"
    UNAUTHORIZED = "UNAUTHORIZED"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a Failure."""

    value: Optional[T] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "Result[T]":
        return cls(failure=Failure(kind, message))
