"""Custom exceptions for CatalogMaster application."""


class CatalogMasterError(Exception):
    """Base exception for all CatalogMaster errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class DatabaseError(CatalogMasterError):
    """Raised when a storage operation fails."""
    pass


class TransactionError(DatabaseError):
    """Raised when a database transaction fails to complete."""
    pass


class ValidationError(CatalogMasterError):
    """Raised when input is missing or out of range. Nothing is written."""

    def __init__(self, message: str, field: str = None):
        details = {'field': field} if field else {}
        super().__init__(message, details)
        self.field = field


class PermissionDenied(CatalogMasterError):
    """Raised when the acting user's role lacks a capability."""

    def __init__(self, permission: str, role: str = None, username: str = None):
        details = {'permission': permission}
        if role:
            details['role'] = role
        if username:
            details['username'] = username

        message = f"Permission '{permission}' denied"
        if role:
            message = f"Role '{role}' is not allowed to '{permission}'"

        super().__init__(message, details)
        self.permission = permission
        self.role = role


class ExternalServiceUnavailable(CatalogMasterError):
    """Raised when an external service (AI description) cannot be used."""

    def __init__(self, service: str, reason: str = None):
        details = {'service': service}
        if reason:
            details['reason'] = reason
        super().__init__(f"{service} unavailable", details)
        self.reason = reason
