"""
Unit tests for custom exceptions.
"""
from core.exceptions import (
    BankDisplayException,
    ConfigurationError,
    CustomSummaryNotFoundError,
    FetchError,
    ProfileNotFoundError,
    StorageError,
    ValidationError,
)


def test_base_exception():
    """Test base exception class."""
    exc = BankDisplayException("Test error", details={"key": "value"})
    assert str(exc) == "Test error"
    assert exc.message == "Test error"
    assert exc.details == {"key": "value"}


def test_exception_hierarchy():
    """Test exception inheritance."""
    for cls in (
        FetchError,
        StorageError,
        ValidationError,
        ConfigurationError,
        ProfileNotFoundError,
        CustomSummaryNotFoundError,
    ):
        assert issubclass(cls, BankDisplayException)


def test_exception_with_details():
    """Test exception with details dictionary."""
    exc = FetchError("Fetch failed", details={"source": "/tmp/x.csv", "error": "boom"})
    assert exc.message == "Fetch failed"
    assert exc.details["source"] == "/tmp/x.csv"


def test_exception_without_details():
    """Test exception without details."""
    exc = StorageError("Disk full")
    assert exc.message == "Disk full"
    assert exc.details == {}
