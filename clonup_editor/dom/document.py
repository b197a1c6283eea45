"""
Editable documents and lxml helpers.

The document opened for editing, the head/body extraction used to build
the live rendering, and the relative-asset absolutization applied while
editing.
"""

import html as html_lib
import re
from dataclasses import dataclass, field
from typing import Optional

from lxml import etree
from lxml.html import (
    HtmlElement,
    document_fromstring,
    fragments_fromstring,
    tostring,
)

DOCTYPE_RE = re.compile(r"^\s*(?:<!--.*?-->\s*)*(<!DOCTYPE[^>]*>)", re.IGNORECASE | re.DOTALL)

_ASSET_ATTR_RE = re.compile(
    r"""(?<=\s)(href|src)=(['"])((?!https?://|//|data:|#|mailto:|tel:|javascript:)[^"']+)(['"])""",
    re.IGNORECASE,
)


@dataclass
class EditableDocument:
    """The clone currently open for editing.

    Replaced wholesale when another clone is opened; only a derived
    serialization is ever persisted.
    """

    html: str
    css: str = ""
    assets: dict[str, str] = field(default_factory=dict)
    subdomain: str = ""

    @property
    def doctype(self) -> Optional[str]:
        """The original doctype declaration, if the markup had one."""
        match = DOCTYPE_RE.match(self.html)
        return match.group(1) if match else None


@dataclass
class DocumentParts:
    """Head and body contents with the attributes of the wrapping tags."""

    html_attrs: dict[str, str] = field(default_factory=dict)
    head_attrs: dict[str, str] = field(default_factory=dict)
    body_attrs: dict[str, str] = field(default_factory=dict)
    head: str = ""
    body: str = ""

    def compose(self) -> str:
        """Rebuild one document string from the parts."""
        return (
            f"<html{_render_attrs(self.html_attrs)}>"
            f"<head{_render_attrs(self.head_attrs)}>{self.head}</head>"
            f"<body{_render_attrs(self.body_attrs)}>{self.body}</body>"
            "</html>"
        )


def _render_attrs(attrs: dict[str, str]) -> str:
    return "".join(f' {k}="{html_lib.escape(v, quote=True)}"' for k, v in attrs.items())


def inner_html(element: Optional[HtmlElement]) -> str:
    """Serialize an element's content without its own tags."""
    if element is None:
        return ""
    parts = [html_lib.escape(element.text, quote=False)] if element.text else []
    parts.extend(tostring(child, encoding="unicode", method="html") for child in element)
    return "".join(parts)


def extract_head_and_body(markup: str) -> DocumentParts:
    """Split a page into head and body content.

    The attributes of ``<html>``, ``<head>`` and ``<body>`` are kept.
    Markup without a head or body is treated as body content.
    """
    if not markup or not markup.strip():
        return DocumentParts()

    root = DOMParser.parse_document(markup)
    head = root.find("head")
    body = root.find("body")
    return DocumentParts(
        html_attrs=dict(root.attrib),
        head_attrs=dict(head.attrib) if head is not None else {},
        body_attrs=dict(body.attrib) if body is not None else {},
        head=inner_html(head),
        body=inner_html(body),
    )


def _normalize_asset_path(path: str) -> str:
    path = re.sub(r"^\.\.?/", "", path)
    return path.lstrip("/")


def absolutize_asset_paths(markup: str, subdomain: str, root_domain: str = "clonup.site") -> str:
    """Point relative ``href``/``src`` values at the clone's managed host.

    Absolute, protocol-relative, ``data:``, fragment, ``mailto:``,
    ``tel:`` and ``javascript:`` values are left alone.
    """
    base = f"https://{subdomain}.{root_domain}"

    def _replace(match: re.Match) -> str:
        attr, q1, path, q2 = match.groups()
        return f"{attr}={q1}{base}/{_normalize_asset_path(path)}{q2}"

    return _ASSET_ATTR_RE.sub(_replace, markup)


def detach(element: HtmlElement) -> None:
    """Remove an element from its parent, leaving its tail text in place."""
    parent = element.getparent()
    if parent is None:
        return
    tail = element.tail
    if tail:
        prev = element.getprevious()
        if prev is not None:
            prev.tail = (prev.tail or "") + tail
        else:
            parent.text = (parent.text or "") + tail
    element.tail = None
    parent.remove(element)


def iter_elements(root: HtmlElement, *tags: str):
    """Iterate elements only, skipping comments and processing instructions."""
    for el in root.iter(*tags) if tags else root.iter(etree.Element):
        if isinstance(el.tag, str):
            yield el


class DOMParser:
    """HTML parsing and serialization with lxml."""

    @staticmethod
    def parse_document(markup: str) -> HtmlElement:
        """Parse a full document; the result is always the ``<html>`` element."""
        return document_fromstring(markup)

    @staticmethod
    def parse_fragment(markup: str) -> list[HtmlElement]:
        """Parse a fragment into its top-level elements."""
        return [el for el in fragments_fromstring(markup) if isinstance(el, HtmlElement)]

    @staticmethod
    def to_string(element: HtmlElement) -> str:
        return tostring(element, encoding="unicode", method="html")
