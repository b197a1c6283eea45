"""
Rendering surface.

Hosts the live rendering of the open clone as an lxml tree, injects the
editor instrumentation and relays selection, drag and drop events to the
controller through an EventChannel.
"""

import logging
from typing import Optional

from lxml.html import Element, HtmlElement

from clonup_editor.config.options import EditorOptions
from clonup_editor.events.channel import EventChannel
from clonup_editor.events.types import (
    ComponentDroppedEvent,
    ElementMovedEvent,
    ElementSelectedEvent,
)
from clonup_editor.exceptions import InputValidationError

from .addressing import ElementAddressing
from .document import (
    DOMParser,
    EditableDocument,
    absolutize_asset_paths,
    detach,
    extract_head_and_body,
)
from .instrumentation import (
    DRAGGABLE_CLASS,
    EDITOR_SCRIPT_ID,
    EDITOR_STYLES_ID,
    INSTRUMENTATION_CLASSES,
    SELECTED_ATTR,
    make_drag_handle,
    make_editor_script_element,
    make_editor_style_element,
)

logger = logging.getLogger(__name__)

COMPONENT_LIBRARY: dict[str, str] = {
    "button": "<button>Button</button>",
    "text": "<p>Sample text</p>",
    "image": '<img src="https://placehold.co/200x100" alt="Image">',
    "video": '<video src="https://www.w3schools.com/html/mov_bbb.mp4" controls width="200"></video>',
    "link": '<a href="#">Link</a>',
    "input": '<input type="text" placeholder="Type here">',
    "header": (
        '<header style="background:#222;color:#fff;padding:24px;text-align:center;'
        'font-size:2rem;">Modern Header</header>'
    ),
    "hero": (
        '<section style="padding:48px;text-align:center;background:#f5f5f5;">'
        "<h1>Hero Section</h1><p>Highlight your offer</p></section>"
    ),
    "cta": (
        '<section style="padding:32px;text-align:center;background:#2563eb;color:#fff;">'
        '<h2>Call to action</h2><button style="margin-top:16px;">Learn more</button></section>'
    ),
    "contact": (
        '<section style="padding:32px;text-align:center;"><h2>Contact us</h2><form>'
        '<input type="text" placeholder="Your name" style="margin:8px;">'
        '<input type="email" placeholder="Your email" style="margin:8px;">'
        "<button>Send</button></form></section>"
    ),
    "pricing": (
        '<section style="padding:32px;text-align:center;background:#f0f0f0;"><h2>Plans</h2>'
        '<div style="display:flex;justify-content:center;gap:16px;">'
        '<div style="background:#fff;padding:16px;">Basic</div>'
        '<div style="background:#fff;padding:16px;">Pro</div></div></section>'
    ),
}

_UNSELECTABLE_TAGS = frozenset({"html", "head", "body"})


def build_selector(element: HtmlElement) -> str:
    """``tag#id.class1.class2`` description of an element."""
    selector = element.tag
    if element.get("id"):
        selector += "#" + element.get("id")
    classes = [c for c in (element.get("class") or "").split() if c not in INSTRUMENTATION_CLASSES]
    if classes:
        selector += "." + ".".join(classes)
    return selector


class RenderingSurface:
    """Live rendering of the open document.

    Args:
        channel: Channel selection and drag messages are posted to.
        addressing: Id service shared with the controller.
        options: Editor options (mobile preview, asset absolutization).
        root_domain: Managed root domain used when absolutizing assets.
    """

    def __init__(
        self,
        channel: Optional[EventChannel] = None,
        addressing: Optional[ElementAddressing] = None,
        options: Optional[EditorOptions] = None,
        root_domain: str = "clonup.site",
    ) -> None:
        self.channel = channel
        self.addressing = addressing or ElementAddressing()
        self.options = options or EditorOptions()
        self.root_domain = root_domain
        self.document: Optional[EditableDocument] = None
        self.instrumented = False
        self._root: Optional[HtmlElement] = None

    @property
    def loaded(self) -> bool:
        return self._root is not None

    @property
    def root(self) -> Optional[HtmlElement]:
        return self._root

    @property
    def head(self) -> Optional[HtmlElement]:
        return self._root.find("head") if self._root is not None else None

    @property
    def body(self) -> Optional[HtmlElement]:
        return self._root.find("body") if self._root is not None else None

    @property
    def doctype(self) -> Optional[str]:
        return self.document.doctype if self.document else None

    def load(self, document: EditableDocument) -> None:
        """Render a document, replacing whatever was open before."""
        markup = document.html
        if self.options.absolutize_assets and document.subdomain:
            markup = absolutize_asset_paths(markup, document.subdomain, self.root_domain)

        parts = extract_head_and_body(markup)
        self._root = DOMParser.parse_document(parts.compose())
        self.document = document
        self.instrumented = False
        self.addressing.reindex(self._root)
        self.ensure_editor_elements()
        logger.info(f"Loaded document for {document.subdomain or 'unnamed clone'}")

    def ensure_editor_elements(self) -> bool:
        """Attach ``#editor-styles`` and ``#editor-script`` if either is missing.

        Returns:
            True if anything was attached.
        """
        if self._root is None:
            return False

        if self.head is None:
            self._root.insert(0, Element("head"))
        if self.body is None:
            self._root.append(Element("body"))

        attached = False
        if not self._root.xpath("//*[@id=$v]", v=EDITOR_STYLES_ID):
            self.head.append(
                make_editor_style_element(self.options.mobile_preview, self.options.mobile_width)
            )
            attached = True
        if not self._root.xpath("//*[@id=$v]", v=EDITOR_SCRIPT_ID):
            self.body.append(make_editor_script_element())
            attached = True

        if attached and self.instrumented:
            logger.debug("Re-attached editor elements")
        self.instrumented = True
        return attached

    def element_by_id(self, element_id: Optional[str]) -> Optional[HtmlElement]:
        if self._root is None:
            return None
        return self.addressing.find(self._root, element_id)

    def query(self, selector: str) -> list[HtmlElement]:
        """CSS query against the live rendering."""
        if self._root is None:
            return []
        return self._root.cssselect(selector)

    def mark_selected(self, element: Optional[HtmlElement]) -> None:
        for el in self._root.xpath(f"//*[@{SELECTED_ATTR}]"):
            del el.attrib[SELECTED_ATTR]
        if element is not None:
            element.set(SELECTED_ATTR, "true")

    def _post(self, event) -> None:
        if self.channel is not None:
            self.channel.post(event)

    def click(self, element: HtmlElement) -> Optional[ElementSelectedEvent]:
        """Simulate a click: address the element and post a selection."""
        if element.tag in _UNSELECTABLE_TAGS:
            return None
        element_id = self.addressing.ensure_id(element)
        self.mark_selected(element)
        event = ElementSelectedEvent(
            tag=element.tag,
            element_id=element_id,
            selector=build_selector(element),
            source="surface",
        )
        self._post(event)
        return event

    def drag_to(self, element: HtmlElement, target: HtmlElement) -> ElementMovedEvent:
        """Move an element to just after the target."""
        element_id = self.addressing.ensure_id(element)
        target_id = self.addressing.ensure_id(target)
        handle = element.getprevious()
        detach(element)
        target.addnext(element)
        if handle is not None and handle.get("data-ot-handle-for") == element_id:
            detach(handle)
            element.addprevious(handle)

        event = ElementMovedEvent(element_id=element_id, target_id=target_id, source="surface")
        self._post(event)
        return event

    def drop_component(self, kind: str) -> ComponentDroppedEvent:
        """Append a component from the library to the body.

        Each dropped element is addressed, marked draggable and given a
        drag handle. Components go before the editor script.
        """
        if self._root is None:
            raise InputValidationError("component", "no document loaded")
        try:
            markup = COMPONENT_LIBRARY[kind]
        except KeyError:
            raise InputValidationError("component", f"unknown component {kind!r}") from None

        body = self.body
        script = body.find(f"script[@id='{EDITOR_SCRIPT_ID}']")
        element_ids = []
        for el in DOMParser.parse_fragment(markup):
            if script is not None:
                script.addprevious(el)
            else:
                body.append(el)
            element_id = self.addressing.ensure_id(el)
            el.set("class", " ".join(filter(None, [el.get("class"), DRAGGABLE_CLASS])))
            el.addprevious(make_drag_handle(element_id))
            element_ids.append(element_id)

        event = ComponentDroppedEvent(kind=kind, element_ids=element_ids, source="surface")
        self._post(event)
        return event

    def snapshot(self) -> str:
        """Outer markup of the live rendering."""
        if self._root is None:
            return ""
        return DOMParser.to_string(self._root)
