"""
Error types for class discovery.

Per-record and per-container failures are recoverable and stay inside the
loader; only ``EmptyResultError`` is ever raised to callers of
``ClassFinder.find_classes``.
"""

from typing import Optional, Any, Dict


class ClassFinderError(Exception):
    """
    Base exception for all class discovery errors.

    Carries a message and an optional dictionary of structured context.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize class finder error.

        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnreadableClassError(ClassFinderError):
    """
    Raised when a class file cannot be decoded.

    Covers bad magic numbers, truncated data and malformed constant pools.
    """

    def __init__(self, message: str,
                 source: Optional[str] = None,
                 offset: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize unreadable class error.

        Args:
            message: Error message
            source: Path or archive entry the data came from
            offset: Byte offset at which decoding failed
            details: Additional error context
        """
        super().__init__(message, details)
        self.source = source
        self.offset = offset

        self.details.update({
            'source': source,
            'offset': offset
        })


class ContainerError(ClassFinderError):
    """Raised when a directory or archive cannot be opened or listed."""

    def __init__(self, message: str,
                 container: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.container = container
        self.details.update({'container': container})


class EmptyResultError(ClassFinderError):
    """Raised when a search finds no classes and the finder was told to fail on that."""

    def __init__(self, message: str = "Didn't find any classes",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


def is_unreadable_class(error: Exception) -> bool:
    """Check if error is a class-file decoding failure."""
    return isinstance(error, UnreadableClassError)


def is_container_error(error: Exception) -> bool:
    """Check if error is a container open/list failure."""
    return isinstance(error, ContainerError)


def is_empty_result(error: Exception) -> bool:
    """Check if error signals an empty search result."""
    return isinstance(error, EmptyResultError)
