"""
Exception hierarchy for clonup-editor.

Nothing raised here is fatal to the process: transport errors surface as a
failed save or a stale display, validation errors reject an edit before the
document is touched, and script parse errors skip a single block.
"""

from typing import Optional


class EditorError(Exception):
    """Base class for all clonup-editor errors."""


class ConfigurationError(EditorError):
    """Configuration loading or parsing error."""


class TransportError(EditorError):
    """A call to the persistence or hosting API failed or timed out."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InputValidationError(EditorError, ValueError):
    """User input was rejected before mutating the document."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class ScriptParseError(EditorError):
    """A block of script manager text could not be turned into elements."""

    def __init__(self, message: str, block: str = "") -> None:
        super().__init__(message)
        self.block = block


class SubscriptionRequiredError(EditorError):
    """The action needs an active subscription."""
