"""Exceptions raised by the stream compositions backend.

The API layer translates these into HTTP responses in ``main.py``.
"""

from typing import Optional


class StreamCompositionsException(Exception):
    """Base exception for the stream compositions backend."""

    def __init__(self, message: Optional[str] = "An error occurred"):
        """Create a new exception.

        Args:
            message: Human readable description of the failure
        """
        self.message = message
        super().__init__(message)


class NotFoundException(StreamCompositionsException):
    """Raised when a requested record does not exist."""

    def __init__(self, message: Optional[str] = "Object not found"):
        """Create a new NotFoundException."""
        super().__init__(message)


class ParseException(StreamCompositionsException):
    """Raised when stored or submitted text cannot be parsed.

    ``kind`` tells which representation was broken.
    """

    MALFORMED_JSON = "malformed_json"
    MALFORMED_DATE = "malformed_date"

    def __init__(self, message: str, kind: str = MALFORMED_JSON):
        """Create a new ParseException.

        Args:
            message: Description of the parse failure
            kind: Which representation was malformed
        """
        self.kind = kind
        super().__init__(message)


class SerializationException(StreamCompositionsException):
    """Raised when a value cannot be serialized for storage."""

    pass


class IntegrationException(StreamCompositionsException):
    """Raised when a downstream integration call fails.

    Wraps the message of the original error.
    """

    def __init__(self, message: str, service: str = "transaction-composition"):
        """Create a new IntegrationException.

        Args:
            message: Message of the original downstream error
            service: Name of the downstream service
        """
        self.service = service
        super().__init__(message)


class ConflictException(StreamCompositionsException):
    """Raised when a write collides with a record owned by another key."""

    def __init__(self, message: Optional[str] = "Conflicting record exists"):
        """Create a new ConflictException."""
        super().__init__(message)
