"""
Selection and attribute synchronization.

The controller owns the current selection, hydrates its editable fields
from the live element and applies every edit straight to the live
rendering while keeping the field mirror in step.
"""

import logging
from typing import Callable, Optional

from lxml.html import Element, HtmlElement

from clonup_editor.dom.document import detach
from clonup_editor.dom.instrumentation import INSTRUMENTATION_CLASSES, clean_classes
from clonup_editor.dom.styles import InlineStyle, set_style
from clonup_editor.dom.surface import RenderingSurface, build_selector
from clonup_editor.events.bus import AsyncEventEmitter, EventType
from clonup_editor.events.types import ElementSelectedEvent, SelectionChangedEvent
from clonup_editor.models import ElementFields, SelectionState

from .commands import FIELD_NAMES, STYLE_PROPERTIES, AttributeCommand, CommandKind
from .validation import validate_url

logger = logging.getLogger(__name__)

NON_STYLABLE_TAGS = frozenset({"script", "style", "meta", "title", "link"})
TEXT_ALIGN_TAGS = frozenset({"p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "span"})
BOX_ALIGN_TAGS = frozenset({"button", "img", "a", "input"})
TYPOGRAPHY_TAGS = frozenset({
    "p", "span", "h1", "h2", "h3", "h4", "h5", "h6", "a", "div", "b", "strong",
    "em", "i", "u", "small", "label", "button", "input", "textarea",
})
VOID_TAGS = frozenset({"img", "input", "br", "hr", "meta", "link", "source", "area", "embed", "wbr"})
PROTECTED_TAGS = frozenset({"html", "head", "body"})

# margin-left / margin-right for aligning replaced elements
_BOX_MARGINS = {
    "left": ("0", "auto"),
    "center": ("auto", "auto"),
    "right": ("auto", "0"),
}

Handler = Callable[[HtmlElement, str], Optional[str]]


def is_stylable(element: HtmlElement) -> bool:
    return element.tag not in NON_STYLABLE_TAGS


class SelectionController:
    """Selection state and property editing for one rendering surface.

    Every operation is a no-op returning False when the selected element
    no longer resolves. Invalid link or media URLs raise
    InputValidationError before anything is mutated.
    """

    def __init__(self, surface: RenderingSurface, emitter: Optional[AsyncEventEmitter] = None) -> None:
        self.surface = surface
        self.emitter = emitter
        self.state = SelectionState()
        self._handlers: dict[CommandKind, Handler] = {
            CommandKind.TEXT: self._set_text,
            CommandKind.ID: self._set_id,
            CommandKind.CLASS: self._set_class,
            CommandKind.HREF: self._set_href,
            CommandKind.SRC: self._set_src,
            CommandKind.ALT: self._set_alt,
            CommandKind.TEXT_ALIGN: self._set_alignment,
        }
        for kind, prop in STYLE_PROPERTIES.items():
            self._handlers[kind] = self._style_handler(prop)

        missing = set(CommandKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for command kinds: {sorted(k.value for k in missing)}")

        if emitter is not None:
            emitter.on(EventType.ELEMENT_SELECTED, self._on_element_selected)

    @property
    def supported_kinds(self) -> frozenset[CommandKind]:
        return frozenset(self._handlers)

    @property
    def selected_element(self) -> Optional[HtmlElement]:
        return self.surface.element_by_id(self.state.selected_id)

    @property
    def fields(self) -> ElementFields:
        return self.state.fields

    # Selection

    def select(self, tag: Optional[str], element_id: str) -> bool:
        """Select an element by id.

        Selecting a descendant of an anchor selects the anchor.
        """
        element = self.surface.element_by_id(element_id)
        if element is None:
            logger.debug(f"Selection of missing element {tag}:{element_id} ignored")
            return False

        anchor = self._enclosing_anchor(element)
        if anchor is not None and anchor is not element:
            element = anchor
            element_id = self.surface.addressing.ensure_id(anchor)

        self._focus(element, element_id)
        return True

    def _focus(self, element: HtmlElement, element_id: str) -> None:
        self.surface.mark_selected(element)
        self.state = SelectionState(
            selected_tag=element.tag,
            selected_id=element_id,
            selector=build_selector(element),
            fields=self.hydrate(element),
        )

    def clear_selection(self) -> None:
        self.state = SelectionState()
        if self.surface.loaded:
            self.surface.mark_selected(None)

    @staticmethod
    def _enclosing_anchor(element: HtmlElement) -> Optional[HtmlElement]:
        if element.tag == "a":
            return element
        return next(element.iterancestors("a"), None)

    def hydrate(self, element: HtmlElement) -> ElementFields:
        """Read the editable values of an element from the live tree."""
        tag = element.tag
        stylable = is_stylable(element)
        fields = ElementFields(
            text=element.text_content(),
            id=element.get("id", ""),
            class_name=clean_classes(element.get("class", "")),
            href=element.get("href", "") if tag == "a" else "",
            src=element.get("src", "") if tag in ("img", "video") else "",
            alt=element.get("alt", "") if tag == "img" else "",
            stylable=stylable,
            typography=stylable and tag in TYPOGRAPHY_TAGS,
        )
        if not stylable:
            return fields

        style = InlineStyle.of(element)
        for kind, prop in STYLE_PROPERTIES.items():
            setattr(fields, FIELD_NAMES[kind], style.get(prop))
        fields.text_align = self._read_alignment(element, style)
        return fields

    @staticmethod
    def _read_alignment(element: HtmlElement, style: InlineStyle) -> str:
        if element.tag in TEXT_ALIGN_TAGS:
            return style.get("text-align")
        if element.tag in BOX_ALIGN_TAGS:
            margins = (style.get("margin-left"), style.get("margin-right"))
            for name, expected in _BOX_MARGINS.items():
                if margins == expected:
                    return name
            return ""
        return style.get("float")

    def breadcrumb(self) -> list[str]:
        """Tag path from ``body`` down to the selected element."""
        element = self.selected_element
        if element is None:
            return []
        path = [element.tag]
        for ancestor in element.iterancestors():
            if ancestor.tag == "html":
                break
            path.append(ancestor.tag)
        return list(reversed(path))

    # Edits

    def apply(self, command: AttributeCommand) -> bool:
        """Apply one edit to the selected element and mirror it.

        Returns:
            True if the live element was changed.
        """
        if command.kind is CommandKind.HREF:
            command = AttributeCommand(command.kind, validate_url(command.value, "href"))
        elif command.kind is CommandKind.SRC:
            command = AttributeCommand(command.kind, validate_url(command.value, "src", allow_data=True))

        element = self.selected_element
        if element is None:
            logger.debug(f"Edit {command.kind.value} ignored: no selected element")
            return False

        if command.is_style and not is_stylable(element):
            logger.debug(f"Style edit {command.kind.value} ignored on <{element.tag}>")
            return False

        mirrored = self._handlers[command.kind](element, command.value)
        if mirrored is None:
            return False

        setattr(self.state.fields, FIELD_NAMES[command.kind], mirrored)
        self.state.selector = build_selector(element)
        return True

    def set_value(self, kind: CommandKind, value: str) -> bool:
        return self.apply(AttributeCommand(kind, value))

    def _set_text(self, element: HtmlElement, value: str) -> Optional[str]:
        if element.tag in VOID_TAGS:
            return None
        for child in list(element):
            element.remove(child)
        element.text = value
        return value

    def _set_id(self, element: HtmlElement, value: str) -> Optional[str]:
        value = value.strip()
        if value:
            element.set("id", value)
        elif "id" in element.attrib:
            del element.attrib["id"]
        return value

    def _set_class(self, element: HtmlElement, value: str) -> Optional[str]:
        kept = [c for c in element.get("class", "").split() if c in INSTRUMENTATION_CLASSES]
        classes = " ".join(value.split() + kept)
        if classes:
            element.set("class", classes)
        elif "class" in element.attrib:
            del element.attrib["class"]
        return clean_classes(classes)

    def _set_href(self, element: HtmlElement, value: str) -> Optional[str]:
        if element.tag != "a":
            return None
        element.set("href", value)
        return value

    def _set_src(self, element: HtmlElement, value: str) -> Optional[str]:
        if element.tag not in ("img", "video"):
            return None
        element.set("src", value)
        return value

    def _set_alt(self, element: HtmlElement, value: str) -> Optional[str]:
        if element.tag != "img":
            return None
        element.set("alt", value)
        return value

    @staticmethod
    def _style_handler(prop: str) -> Handler:
        def handler(element: HtmlElement, value: str) -> Optional[str]:
            style = InlineStyle.of(element)
            style.set(prop, value)
            style.apply_to(element)
            return value.strip()

        return handler

    def _set_alignment(self, element: HtmlElement, value: str) -> Optional[str]:
        value = value.strip().lower()
        tag = element.tag
        if tag in TEXT_ALIGN_TAGS:
            set_style(element, text_align=value)
        elif tag in BOX_ALIGN_TAGS:
            if value in _BOX_MARGINS:
                left, right = _BOX_MARGINS[value]
                set_style(element, display="block", margin_left=left, margin_right=right, float="")
            else:
                set_style(element, display="", margin_left="", margin_right="", float="")
        else:
            set_style(element, float=value if value in ("left", "right") else "")
        return value

    # Structure

    def set_link(self, url: str) -> bool:
        """Link the selected element to a URL.

        An anchor (or an element inside one) only gets its ``href``
        updated. Anything else is wrapped in a new anchor, which becomes
        the selection.
        """
        url = validate_url(url, "href")
        element = self.selected_element
        if element is None:
            logger.debug("Link ignored: no selected element")
            return False
        if element.tag in PROTECTED_TAGS:
            logger.debug(f"Refusing to wrap <{element.tag}> in a link")
            return False

        anchor = self._enclosing_anchor(element)
        if anchor is not None:
            anchor.set("href", url)
            anchor_id = self.surface.addressing.ensure_id(anchor)
        elif next(element.iterdescendants("a"), None) is not None:
            logger.debug(f"Refusing to wrap <{element.tag}>: it already contains a link")
            return False
        else:
            anchor = Element("a")
            anchor.set("href", url)
            tail, element.tail = element.tail, None
            element.addprevious(anchor)
            anchor.append(element)
            anchor.tail = tail
            anchor_id = self.surface.addressing.ensure_id(anchor)
            logger.debug(f"Wrapped <{element.tag}> in new anchor {anchor_id}")

        self._focus(anchor, anchor_id)
        return True

    def remove_selected(self) -> bool:
        """Remove the selected subtree and clear the selection.

        The document root, ``<html>``, ``<head>`` and ``<body>`` are never
        removed.
        """
        element = self.selected_element
        if element is None:
            logger.debug("Removal ignored: no selected element")
            return False
        if element is self.surface.root or element.tag in PROTECTED_TAGS:
            logger.warning(f"Refusing to remove <{element.tag}>")
            return False

        handle = element.getprevious()
        if handle is not None and handle.get("data-ot-handle-for") == self.state.selected_id:
            detach(handle)
        detach(element)
        self.clear_selection()
        return True

    # Channel messages

    async def _on_element_selected(self, event: ElementSelectedEvent) -> None:
        if not self.select(event.tag, event.element_id):
            return
        if self.emitter is not None:
            await self.emitter.emit(
                SelectionChangedEvent(
                    tag=self.state.selected_tag,
                    element_id=self.state.selected_id,
                    source="controller",
                )
            )
