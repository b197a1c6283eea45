"""
Attribute edit commands.

Every edit the controller can apply is an AttributeCommand tagged with a
CommandKind; the controller dispatches it through a handler table keyed
by kind.
"""

from dataclasses import dataclass
from enum import Enum


class CommandKind(str, Enum):
    """Editable properties of the selected element."""

    TEXT = "text"
    ID = "id"
    CLASS = "class"
    HREF = "href"
    SRC = "src"
    ALT = "alt"
    BG_COLOR = "bgColor"
    COLOR = "color"
    RADIUS = "radius"
    PADDING = "padding"
    MARGIN = "margin"
    TEXT_ALIGN = "textAlign"
    WIDTH = "width"
    HEIGHT = "height"
    FONT_SIZE = "fontSize"
    FONT_FAMILY = "fontFamily"
    FONT_WEIGHT = "fontWeight"
    FONT_STYLE = "fontStyle"


# CSS property written by each plain style command
STYLE_PROPERTIES: dict[CommandKind, str] = {
    CommandKind.BG_COLOR: "background-color",
    CommandKind.COLOR: "color",
    CommandKind.RADIUS: "border-radius",
    CommandKind.PADDING: "padding",
    CommandKind.MARGIN: "margin",
    CommandKind.WIDTH: "width",
    CommandKind.HEIGHT: "height",
    CommandKind.FONT_SIZE: "font-size",
    CommandKind.FONT_FAMILY: "font-family",
    CommandKind.FONT_WEIGHT: "font-weight",
    CommandKind.FONT_STYLE: "font-style",
}

# ElementFields attribute mirrored by each kind
FIELD_NAMES: dict[CommandKind, str] = {
    CommandKind.TEXT: "text",
    CommandKind.ID: "id",
    CommandKind.CLASS: "class_name",
    CommandKind.HREF: "href",
    CommandKind.SRC: "src",
    CommandKind.ALT: "alt",
    CommandKind.BG_COLOR: "bg_color",
    CommandKind.COLOR: "color",
    CommandKind.RADIUS: "radius",
    CommandKind.PADDING: "padding",
    CommandKind.MARGIN: "margin",
    CommandKind.TEXT_ALIGN: "text_align",
    CommandKind.WIDTH: "width",
    CommandKind.HEIGHT: "height",
    CommandKind.FONT_SIZE: "font_size",
    CommandKind.FONT_FAMILY: "font_family",
    CommandKind.FONT_WEIGHT: "font_weight",
    CommandKind.FONT_STYLE: "font_style",
}

STYLE_KINDS = frozenset(STYLE_PROPERTIES) | {CommandKind.TEXT_ALIGN}


@dataclass(frozen=True)
class AttributeCommand:
    """One edit: a property kind and its new value."""

    kind: CommandKind
    value: str = ""

    def __post_init__(self):
        if not isinstance(self.kind, CommandKind):
            object.__setattr__(self, "kind", CommandKind(self.kind))

    @property
    def is_style(self) -> bool:
        return self.kind in STYLE_KINDS
