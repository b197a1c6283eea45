"""
Serialization pipeline.

Builds the HTML persisted on save. Edits happen on the live rendering,
but output comes from a freshly parsed working copy of it, which is
brought back in line with the live attribute state over several passes:

1. snapshot the live tree, decode entities, parse a working copy
2. sync attributes of addressed elements by address
3. sync unaddressed img/video/a elements by document order
4. strip editor instrumentation
5. rewrite managed-domain URLs to site-relative form
6. re-apply live src/href/alt on img/video/a and rewrite them again
7. prepend the original doctype
8. scrub residual markers from the text, collapse empty class/style
9. decode entities once more
"""

import logging
from typing import Optional

from lxml.html import HtmlElement

from clonup_editor.dom.addressing import ElementAddressing
from clonup_editor.dom.document import DOMParser, iter_elements
from clonup_editor.dom.instrumentation import ID_ATTR, scrub_markup, strip_instrumentation
from clonup_editor.dom.surface import RenderingSurface
from clonup_editor.exceptions import EditorError

from .entities import decode_entities
from .urls import ManagedDomainSet

logger = logging.getLogger(__name__)

SYNC_ATTRIBUTES = ("src", "href", "alt", "style", "class")
FALLBACK_ATTRIBUTES = ("src", "href", "alt", "style")
RECONCILE_ATTRIBUTES = ("src", "href", "alt")
MEDIA_TAGS = ("img", "video", "a")


def _address_keys(element: HtmlElement) -> list[str]:
    keys = []
    if element.get(ID_ATTR):
        keys.append("ot:" + element.get(ID_ATTR))
    if element.get("id"):
        keys.append("id:" + element.get("id"))
    return keys


def _copy_attributes(source: HtmlElement, target: HtmlElement, names: tuple[str, ...]) -> bool:
    """Make ``target`` carry exactly the source's values for ``names``."""
    changed = False
    for name in names:
        value = source.get(name)
        if value is None:
            if name in target.attrib:
                del target.attrib[name]
                changed = True
        elif target.get(name) != value:
            target.set(name, value)
            changed = True
    return changed


class SerializationPipeline:
    """Turns a rendering surface into the HTML string that gets persisted.

    Args:
        domains: Base URLs the clone is hosted under.
        addressing: Address service; only its marker attribute is used.
    """

    def __init__(
        self,
        domains: ManagedDomainSet,
        addressing: Optional[ElementAddressing] = None,
    ) -> None:
        self.domains = domains
        self.addressing = addressing or ElementAddressing()

    def serialize(self, surface: RenderingSurface, snapshot: Optional[str] = None) -> str:
        """Produce the cleaned HTML for a surface.

        Args:
            surface: Surface holding the live rendering.
            snapshot: Markup to build the working copy from instead of a
                fresh snapshot of the live tree.

        Raises:
            EditorError: If the surface has no document loaded.
        """
        live = surface.root
        if live is None:
            raise EditorError("No document loaded")

        markup = snapshot if snapshot is not None else surface.snapshot()
        work = DOMParser.parse_document(decode_entities(markup))

        addressed = self._sync_addressed(live, work)
        live_media, work_media = self._media(live), self._media(work)
        positional = self._sync_positional(live_media, work_media)

        removed = strip_instrumentation(work)
        rewritten = self.domains.rewrite_tree(work)
        reconciled = self._reconcile(live_media, work_media, addressed)

        html = DOMParser.to_string(work)
        if surface.doctype:
            html = f"{surface.doctype}\n{html}"
        html = decode_entities(scrub_markup(html))

        logger.debug(
            f"Serialized document: {len(addressed)} addressed, {positional} positional, "
            f"{removed} instrumentation elements removed, {rewritten} URLs rewritten, "
            f"{reconciled} reconciled"
        )
        return html

    def _index(self, root: HtmlElement) -> dict[str, HtmlElement]:
        index: dict[str, HtmlElement] = {}
        for el in iter_elements(root):
            for key in _address_keys(el):
                index.setdefault(key, el)
        return index

    def _sync_addressed(self, live: HtmlElement, work: HtmlElement) -> dict[str, HtmlElement]:
        """Push live attributes into working-copy elements with the same address.

        Returns:
            Working-copy element for each resolved live address key.
        """
        index = self._index(work)
        resolved: dict[str, HtmlElement] = {}
        for el in iter_elements(live):
            keys = _address_keys(el)
            if not keys:
                continue
            target = next((index[k] for k in keys if k in index), None)
            if target is None:
                # Stale address: element exists only on one side
                continue
            _copy_attributes(el, target, SYNC_ATTRIBUTES)
            resolved[keys[0]] = target
        return resolved

    @staticmethod
    def _media(root: HtmlElement) -> list[HtmlElement]:
        return list(iter_elements(root, *MEDIA_TAGS))

    @staticmethod
    def _sync_positional(live_media: list[HtmlElement], work_media: list[HtmlElement]) -> int:
        synced = 0
        for live_el, work_el in zip(live_media, work_media):
            if _address_keys(live_el) or live_el.tag != work_el.tag:
                continue
            _copy_attributes(live_el, work_el, FALLBACK_ATTRIBUTES)
            synced += 1
        return synced

    def _reconcile(
        self,
        live_media: list[HtmlElement],
        work_media: list[HtmlElement],
        addressed: dict[str, HtmlElement],
    ) -> int:
        """Re-apply live src/href/alt after stripping and rewriting."""
        reconciled = 0
        for position, live_el in enumerate(live_media):
            keys = _address_keys(live_el)
            target = addressed.get(keys[0]) if keys else None
            if target is None and position < len(work_media):
                candidate = work_media[position]
                if candidate.tag == live_el.tag:
                    target = candidate
            if target is None:
                continue

            _copy_attributes(live_el, target, RECONCILE_ATTRIBUTES)
            for attr in ("src", "href"):
                value = target.get(attr)
                if value:
                    target.set(attr, self.domains.rewrite_url(value))
            reconciled += 1
        return reconciled
