"""Result pattern for non-fatal outcomes in CatalogMaster.

Operations that may legitimately find nothing to act on (updating or
removing an unknown id) return a Result instead of raising, so the caller
can treat them as a no-op.
"""
from dataclasses import dataclass
from typing import Optional, TypeVar, Generic

T = TypeVar('T')


@dataclass
class Result(Generic[T]):
    """Represents the outcome of an operation.

    Attributes:
        success: Whether the operation succeeded.
        value: The return value on success, None on failure.
        error: Error message on failure, None on success.
        error_type: Category of error (see ErrorType).

    Usage:
        result = ledger.remove(actor, "t1")
        if not result:
            print(result.error)
    """
    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, value: T = None) -> 'Result[T]':
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, error_type: str = None) -> 'Result[T]':
        """Create a failure result."""
        return cls(success=False, error=error, error_type=error_type)

    def __bool__(self) -> bool:
        return self.success


class ErrorType:
    """Standard error type constants."""
    NOT_FOUND = "NOT_FOUND"
