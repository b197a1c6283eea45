"""
Selection and attribute editing for clonup-editor.
"""

from clonup_editor.editor.commands import AttributeCommand, CommandKind
from clonup_editor.editor.controller import (
    NON_STYLABLE_TAGS,
    SelectionController,
    is_stylable,
)
from clonup_editor.editor.validation import validate_url

__all__ = [
    "AttributeCommand",
    "CommandKind",
    "NON_STYLABLE_TAGS",
    "SelectionController",
    "is_stylable",
    "validate_url",
]
