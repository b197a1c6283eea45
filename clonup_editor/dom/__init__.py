"""
DOM layer for clonup-editor.

This module provides:
- ElementAddressing: opaque ``data-ot-id`` element addresses
- RenderingSurface: the live lxml rendering with editor instrumentation
- EditableDocument/DOMParser: document model and lxml parsing helpers
- InlineStyle: inline style declarations
"""

from clonup_editor.dom.addressing import ElementAddressing
from clonup_editor.dom.document import (
    DOMParser,
    DocumentParts,
    EditableDocument,
    absolutize_asset_paths,
    detach,
    extract_head_and_body,
)
from clonup_editor.dom.instrumentation import strip_instrumentation
from clonup_editor.dom.styles import InlineStyle, get_style, set_style
from clonup_editor.dom.surface import COMPONENT_LIBRARY, RenderingSurface, build_selector

__all__ = [
    "ElementAddressing",
    "DOMParser",
    "DocumentParts",
    "EditableDocument",
    "absolutize_asset_paths",
    "detach",
    "extract_head_and_body",
    "strip_instrumentation",
    "InlineStyle",
    "get_style",
    "set_style",
    "COMPONENT_LIBRARY",
    "RenderingSurface",
    "build_selector",
]
