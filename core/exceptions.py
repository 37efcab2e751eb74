"""
Custom exceptions for better error handling.

Parsing and aggregation never raise on malformed data; these classes cover
collaborator failures (fetching raw text, persisting profiles) and bad
requests made against the profile service.
"""
from typing import Any, Dict, Optional


class BankDisplayException(Exception):
    """Base exception for all banking display errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize exception.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class FetchError(BankDisplayException):
    """Raised when raw CSV text cannot be read from a file or URL."""
    pass


class StorageError(BankDisplayException):
    """Raised when the profile store fails."""
    pass


class ValidationError(BankDisplayException):
    """Raised when request data validation fails."""
    pass


class ConfigurationError(BankDisplayException):
    """Raised when configuration is invalid."""
    pass


class ProfileNotFoundError(BankDisplayException):
    """Raised when a profile id is unknown."""
    pass


class CustomSummaryNotFoundError(BankDisplayException):
    """Raised when a custom summary id is unknown for a profile."""
    pass
