"""
Script management for clonup-editor.

Extracts tracking and user-added scripts as editable text, filters out
runtime-injected loaders, and re-inserts edited text with identity-based
deduplication.
"""

from clonup_editor.scripts.identity import normalize_src, script_identity
from clonup_editor.scripts.manager import (
    ScriptCollection,
    ScriptManager,
    parse_block,
    split_blocks,
)
from clonup_editor.scripts.rules import (
    COMMENT_KEYWORDS,
    DYNAMIC_SRC_PATTERNS,
    RELEVANCE_KEYWORDS,
    USER_ADDED_ATTR,
    ScriptRules,
)

__all__ = [
    "normalize_src",
    "script_identity",
    "ScriptCollection",
    "ScriptManager",
    "parse_block",
    "split_blocks",
    "COMMENT_KEYWORDS",
    "DYNAMIC_SRC_PATTERNS",
    "RELEVANCE_KEYWORDS",
    "USER_ADDED_ATTR",
    "ScriptRules",
]
