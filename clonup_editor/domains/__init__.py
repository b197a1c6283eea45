"""
Custom-domain configuration for clonup-editor.
"""

from clonup_editor.domains.workflow import DomainWorkflow, normalize_domain

__all__ = [
    "DomainWorkflow",
    "normalize_domain",
]
