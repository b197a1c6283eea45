"""Deduplication identity of script and no-script elements."""

import hashlib
from urllib.parse import urlsplit

from lxml.html import HtmlElement

from clonup_editor.dom.document import inner_html


def _digest(text: str) -> str:
    return hashlib.sha1(text.strip().encode("utf-8")).hexdigest()


def normalize_src(src: str) -> str:
    """Lowercased origin and path of a script URL, query and fragment dropped."""
    src = src.strip()
    if src.startswith("//"):
        src = "https:" + src
    parts = urlsplit(src)
    if parts.netloc:
        return f"{parts.scheme}://{parts.netloc}{parts.path}".lower()
    return parts.path.lower()


def script_identity(element: HtmlElement) -> str:
    """``src:<origin+path>``, ``inline:<sha1>`` or ``noscript:<sha1>``."""
    if element.tag == "noscript":
        return "noscript:" + _digest(inner_html(element))
    src = element.get("src")
    if src and src.strip():
        return "src:" + normalize_src(src)
    return "inline:" + _digest(element.text or "")
