"""
Editor instrumentation markers.

Everything the rendering surface adds to a document to support in-editor
interaction is named here, so the serialization pipeline can remove the
exact same set.
"""

import re

from lxml import etree
from lxml.html import Element, HtmlElement

ID_ATTR = "data-ot-id"
SELECTED_ATTR = "data-editor-selected"
INSTRUMENTATION_ATTR_PREFIX = "data-ot-"

SELECTED_CLASS = "__ot-selected"
DRAGGABLE_CLASS = "__ot-draggable"
PREVIEW_SELECTED_CLASS = "ot-preview-selected"
INSTRUMENTATION_CLASSES = frozenset({SELECTED_CLASS, DRAGGABLE_CLASS, PREVIEW_SELECTED_CLASS})

DRAG_HANDLE_CLASS = "__ot-drag-handle"
DRAG_HANDLE_TITLE = "Drag to move"
DRAG_HANDLE_GLYPH = "↕"

EDITOR_STYLES_ID = "editor-styles"
EDITOR_SCRIPT_ID = "editor-script"
EDITOR_ELEMENT_IDS = frozenset({EDITOR_STYLES_ID, EDITOR_SCRIPT_ID})

EDITOR_STYLES = """
[data-editor-selected] {
  outline: 2px solid #2563eb !important;
  outline-offset: 2px !important;
}
.__ot-drag-handle {
  cursor: move;
  display: inline-block;
  padding: 0 4px;
  background: #2563eb;
  color: #fff;
  font-size: 12px;
}
"""

MOBILE_STYLES = """
@media screen {
  html, body {
    width: %(width)dpx !important;
    min-width: %(width)dpx !important;
    max-width: %(width)dpx !important;
    margin: 0 !important;
    padding: 0 !important;
    overflow-x: hidden !important;
  }
}
"""

EDITOR_SCRIPT = """
document.body.addEventListener('click', function (e) {
  e.preventDefault();
  e.stopPropagation();
  var el = e.target;
  if (!el || el === document.body) return;
  if (!el.dataset.otId) el.dataset.otId = Date.now().toString(36) + Math.random().toString(36).slice(2);
  document.querySelectorAll('[data-editor-selected]').forEach(function (x) {
    x.removeAttribute('data-editor-selected');
  });
  el.setAttribute('data-editor-selected', 'true');
  var selector = el.tagName.toLowerCase();
  if (el.id) selector += '#' + el.id;
  if (el.classList.length) selector += '.' + Array.prototype.join.call(el.classList, '.');
  window.parent.postMessage({type: 'element-selected', selector: selector, otId: el.dataset.otId}, '*');
}, true);
"""

# Text-level scrub of markers that survived tree stripping
_RESIDUAL_ATTR_RE = re.compile(
    r'\s(?:data-ot-[\w-]+|data-editor-selected)(?:\s*=\s*(?:"[^"]*"|\'[^\']*\'|[^\s>]+))?',
    re.IGNORECASE,
)
_RESIDUAL_CLASS_RE = re.compile(r"(?<![\w-])(?:__ot-draggable|__ot-selected|ot-preview-selected)(?![\w-])")
_CLASS_ATTR_RE = re.compile(r'\sclass="([^"]*)"')
_EMPTY_ATTR_RE = re.compile(r'\s(?:class|style)=(?:""|\'\')')
_ATTRS = r"""(?:\s+[^\s"'=<>/`]+(?:\s*=\s*(?:"[^"]*"|'[^']*'|[^\s"'=<>`]+))?)*\s*/?"""
_MARKUP_RE = re.compile(rf"<!--.*?-->|<(?P<name>[A-Za-z][\w:-]*){_ATTRS}>", re.DOTALL)
RAW_TEXT_TAGS = frozenset({"script", "style"})


def build_editor_styles(mobile: bool = False, mobile_width: int = 390) -> str:
    """CSS text for the ``#editor-styles`` element."""
    css = EDITOR_STYLES
    if mobile:
        css += MOBILE_STYLES % {"width": mobile_width}
    return css


def make_editor_style_element(mobile: bool = False, mobile_width: int = 390) -> HtmlElement:
    el = Element("style")
    el.set("id", EDITOR_STYLES_ID)
    el.text = build_editor_styles(mobile, mobile_width)
    return el


def make_editor_script_element() -> HtmlElement:
    el = Element("script")
    el.set("id", EDITOR_SCRIPT_ID)
    el.text = EDITOR_SCRIPT
    return el


def make_drag_handle(element_id: str) -> HtmlElement:
    handle = Element("div")
    handle.set("class", DRAG_HANDLE_CLASS)
    handle.set("title", DRAG_HANDLE_TITLE)
    handle.set("data-ot-handle-for", element_id)
    handle.text = DRAG_HANDLE_GLYPH
    return handle


def is_instrumentation_attr(name: str) -> bool:
    return name.startswith(INSTRUMENTATION_ATTR_PREFIX) or name == SELECTED_ATTR


def clean_classes(value: str) -> str:
    """Remove instrumentation classes from a class attribute value."""
    return " ".join(c for c in value.split() if c not in INSTRUMENTATION_CLASSES)


def is_drag_handle(element: HtmlElement) -> bool:
    return DRAG_HANDLE_CLASS in (element.get("class") or "").split()


def strip_instrumentation(root: HtmlElement) -> int:
    """Remove every editor marker from a tree in place.

    Drops instrumentation attributes and classes, drag handles and the
    editor's own style and script elements. Tail text of removed
    elements is kept.

    Returns:
        Number of elements removed.
    """
    removed = 0
    for el in list(root.iter(etree.Element)):
        if el is not root and (is_drag_handle(el) or el.get("id") in EDITOR_ELEMENT_IDS):
            el.drop_tree()
            removed += 1
            continue

        for name in [n for n in el.attrib if is_instrumentation_attr(n)]:
            del el.attrib[name]

        cls = el.get("class")
        if cls is not None:
            cleaned = clean_classes(cls)
            if cleaned:
                el.set("class", cleaned)
            else:
                del el.attrib["class"]
    return removed


def _scrub_tag(tag: str) -> str:
    tag = _RESIDUAL_ATTR_RE.sub("", tag)

    def _clean(match: re.Match) -> str:
        value = " ".join(_RESIDUAL_CLASS_RE.sub("", match.group(1)).split())
        return f' class="{value}"'

    tag = _CLASS_ATTR_RE.sub(_clean, tag)
    return _EMPTY_ATTR_RE.sub("", tag)


def scrub_markup(html: str) -> str:
    """Text-level removal of residual markers and empty class/style.

    Only start tags are rewritten. Comments, text and the bodies of
    ``script`` and ``style`` elements are copied unchanged.
    """
    out: list[str] = []
    pos = 0
    while True:
        match = _MARKUP_RE.search(html, pos)
        if match is None:
            break
        out.append(html[pos:match.start()])
        pos = match.end()
        name = match.group("name")
        if name is None:
            out.append(match.group(0))
            continue

        out.append(_scrub_tag(match.group(0)))
        if name.lower() in RAW_TEXT_TAGS:
            close = re.compile(rf"</{name}\s*>", re.IGNORECASE).search(html, pos)
            end = close.start() if close else len(html)
            out.append(html[pos:end])
            pos = end
    out.append(html[pos:])
    return "".join(out)
