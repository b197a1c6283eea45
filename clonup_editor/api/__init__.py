"""
HTTP API access for clonup-editor.
"""

from clonup_editor.api.client import ClonupClient
from clonup_editor.api.response import ApiResponse, DomainResponse, Verification

__all__ = [
    "ApiResponse",
    "ClonupClient",
    "DomainResponse",
    "Verification",
]
