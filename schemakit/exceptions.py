"""
Exception types for schemakit.

Expected validation failures are never raised: they travel as ValidationReport
messages. The exceptions below cover fail-fast mode, registration misuse and
data that falls outside the JSON data model.
"""
from typing import Any, Optional


class SchemaKitError(Exception):
    """Base exception for schemakit errors."""
    pass


class InvalidDocumentError(SchemaKitError, ValueError):
    """Raised when a schema or instance is not a JSON-compatible value."""

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.value = value


class KeywordRegistrationError(SchemaKitError):
    """Raised for an invalid keyword or format registration."""
    pass


class KeywordAlreadyRegisteredError(KeywordRegistrationError):
    """Raised when registering a keyword that is already registered."""

    def __init__(self, keyword: str):
        super().__init__(
            f"Keyword '{keyword}' is already registered; unregister it first to replace it"
        )
        self.keyword = keyword


class FormatAlreadyRegisteredError(KeywordRegistrationError):
    """Raised when registering a format name that is already registered."""

    def __init__(self, format_name: str):
        super().__init__(
            f"Format '{format_name}' is already registered; unregister it first to replace it"
        )
        self.format_name = format_name


class ValidationFailureError(SchemaKitError):
    """
    Raised on the first validation failure when the context is in fail-fast mode.

    Attributes:
        validation_message: The ValidationMessage that triggered the failure
        report: A report holding only that message
    """

    def __init__(self, validation_message: Any, report: Optional[Any] = None):
        super().__init__(str(validation_message))
        self.validation_message = validation_message
        self.report = report


class UnsupportedInstanceError(SchemaKitError, TypeError):
    """Raised when a checker is invoked with an instance kind it does not handle."""
    pass


class DepthExceededError(SchemaKitError):
    """Raised when instance nesting goes past max_depth or the interpreter recursion limit."""

    def __init__(self, max_depth: Optional[int], pointer: Any):
        if max_depth is None:
            super().__init__(f"Interpreter recursion limit exceeded at {pointer}")
        else:
            super().__init__(f"Maximum validation depth {max_depth} exceeded at {pointer}")
        self.max_depth = max_depth
        self.pointer = pointer
