"""
clonup-editor - live-document editing and serialization for cloned pages.

Load a captured page into a rendering surface, edit elements in place
through the selection controller, manage tracking scripts as text, and
save a clean, instrumentation-free HTML snapshot back to the hosting API.
"""

__version__ = "0.1.0"
__author__ = "clonup"

from clonup_editor.api import ApiResponse, ClonupClient, DomainResponse
from clonup_editor.config import EditorConfig, load_config
from clonup_editor.dom import EditableDocument, ElementAddressing, RenderingSurface
from clonup_editor.domains import DomainWorkflow
from clonup_editor.editor import AttributeCommand, CommandKind, SelectionController
from clonup_editor.events import AsyncEventEmitter, EventChannel, EventType
from clonup_editor.exceptions import (
    ConfigurationError,
    EditorError,
    InputValidationError,
    ScriptParseError,
    SubscriptionRequiredError,
    TransportError,
)
from clonup_editor.models import (
    DomainConfig,
    DomainState,
    ElementFields,
    SaveResult,
    ScriptEntry,
    ScriptLocation,
    SelectionState,
    SubscriptionStatus,
)
from clonup_editor.scripts import ScriptManager
from clonup_editor.serialize import ManagedDomainSet, SerializationPipeline
from clonup_editor.session import EditSession

__all__ = [
    "__version__",
    # Session
    "EditSession",
    # DOM
    "EditableDocument",
    "ElementAddressing",
    "RenderingSurface",
    # Editing
    "AttributeCommand",
    "CommandKind",
    "SelectionController",
    # Serialization and scripts
    "ManagedDomainSet",
    "SerializationPipeline",
    "ScriptManager",
    # API and domains
    "ApiResponse",
    "ClonupClient",
    "DomainResponse",
    "DomainWorkflow",
    # Events
    "AsyncEventEmitter",
    "EventChannel",
    "EventType",
    # Config
    "EditorConfig",
    "load_config",
    # Models
    "DomainConfig",
    "DomainState",
    "ElementFields",
    "SaveResult",
    "ScriptEntry",
    "ScriptLocation",
    "SelectionState",
    "SubscriptionStatus",
    # Exceptions
    "ConfigurationError",
    "EditorError",
    "InputValidationError",
    "ScriptParseError",
    "SubscriptionRequiredError",
    "TransportError",
]
