"""
Typed events for clonup-editor.

Messages posted by the rendering surface and notifications emitted by the
controller and session.
"""

from dataclasses import dataclass, field
from typing import Optional

from .bus import Event, EventType


# Rendering surface messages

@dataclass
class ElementSelectedEvent(Event):
    """Posted when the user clicks an element in the rendering surface."""

    type: EventType = field(default=EventType.ELEMENT_SELECTED)
    tag: str = ""
    element_id: str = ""
    selector: str = ""

    def __post_init__(self):
        if self.data is None:
            self.data = {
                "tag": self.tag,
                "element_id": self.element_id,
                "selector": self.selector,
            }


@dataclass
class ElementMovedEvent(Event):
    """Posted when an element is dragged to a new position."""

    type: EventType = field(default=EventType.ELEMENT_MOVED)
    element_id: str = ""
    target_id: Optional[str] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {"element_id": self.element_id, "target_id": self.target_id}


@dataclass
class ComponentDroppedEvent(Event):
    """Posted when a library component is dropped onto the document."""

    type: EventType = field(default=EventType.COMPONENT_DROPPED)
    kind: str = ""
    element_ids: list[str] = field(default_factory=list)

    def __post_init__(self):
        if self.data is None:
            self.data = {"kind": self.kind, "element_ids": list(self.element_ids)}


# Controller notifications

@dataclass
class SelectionChangedEvent(Event):
    """Emitted after the controller hydrated a new selection."""

    type: EventType = field(default=EventType.SELECTION_CHANGED)
    tag: Optional[str] = None
    element_id: Optional[str] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {"tag": self.tag, "element_id": self.element_id}
