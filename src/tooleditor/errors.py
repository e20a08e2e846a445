"""
Tool Editor Errors

Exception hierarchy for the tool editor core. Every error carries a
machine-readable kind so the dialog and the CLI can branch on it without
string matching, plus the human-readable message that is shown to the user.
"""

from enum import Enum
from typing import Any


# =============================================================================
# Error Kinds
# =============================================================================


class ErrorKind(Enum):
    """Classification of editor failures"""
    INVALID_NAME = "invalid_name"
    MISSING_FIELD = "missing_field"
    SYNTAX_ERROR = "syntax_error"
    EMPTY_DOCUMENT = "empty_document"
    MISSING_TYPE = "missing_type"
    MISSING_SUBTYPE = "missing_subtype"
    UNKNOWN_TYPE = "unknown_type"
    UNKNOWN_SUBTYPE = "unknown_subtype"
    VALIDATION_FAILED = "validation_failed"
    OWNERSHIP_DENIED = "ownership_denied"
    UNSUPPORTED_TOOL_KIND = "unsupported_tool_kind"
    SAVE_IN_PROGRESS = "save_in_progress"
    PERSISTENCE = "persistence"


# =============================================================================
# Exceptions
# =============================================================================


class ToolEditorError(Exception):
    """Base exception for tool editor errors."""
    kind: ErrorKind = ErrorKind.VALIDATION_FAILED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidNameError(ToolEditorError):
    """Raised when a tool name violates the naming policy."""
    kind = ErrorKind.INVALID_NAME


class MissingFieldError(ToolEditorError):
    """Raised when a JSON document lacks a required field."""
    kind = ErrorKind.MISSING_FIELD

    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


class JsonSyntaxError(ToolEditorError):
    """Raised when text that should be JSON does not parse."""
    kind = ErrorKind.SYNTAX_ERROR

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class EmptyDocumentError(ToolEditorError):
    """Raised when the JSON buffer is empty at save time."""
    kind = ErrorKind.EMPTY_DOCUMENT


class MissingTypeError(ToolEditorError):
    """Raised when a tool document has no "type" field."""
    kind = ErrorKind.MISSING_TYPE


class MissingSubtypeError(ToolEditorError):
    """Raised when a server tool document has no "subtype" field."""
    kind = ErrorKind.MISSING_SUBTYPE


class UnknownTypeError(ToolEditorError):
    """Raised when "type" is neither client nor server."""
    kind = ErrorKind.UNKNOWN_TYPE

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.value = value


class UnknownSubtypeError(ToolEditorError):
    """Raised when "subtype" is neither knowledge nor webhook."""
    kind = ErrorKind.UNKNOWN_SUBTYPE

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.value = value


class ValidationFailedError(ToolEditorError):
    """Raised when field-level validation fails."""
    kind = ErrorKind.VALIDATION_FAILED

    def __init__(self, message: str, field_errors: dict[str, str] | None = None):
        super().__init__(message)
        self.field_errors = dict(field_errors or {})


class OwnershipDeniedError(ToolEditorError):
    """Raised when the ownership check rejects the selected folders."""
    kind = ErrorKind.OWNERSHIP_DENIED


class UnsupportedToolKindError(ToolEditorError):
    """Raised for tool kinds that cannot be saved yet."""
    kind = ErrorKind.UNSUPPORTED_TOOL_KIND


class SaveInProgressError(ToolEditorError):
    """Raised when a save is requested while another is still running."""
    kind = ErrorKind.SAVE_IN_PROGRESS


class PersistenceError(ToolEditorError):
    """Raised when the persistence collaborator fails."""
    kind = ErrorKind.PERSISTENCE
