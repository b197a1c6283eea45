"""
Element addressing.

Gives elements a process-local opaque id, stored as a transient
``data-ot-id`` marker, so the same element can be found again across
re-renders and in a separately parsed copy of the document. Ids are
handed out lazily and stripped from every serialized output.
"""

import logging
import secrets
import time
from typing import Optional

from lxml.html import HtmlElement

from .instrumentation import ID_ATTR

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number: int) -> str:
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def _root_of(element: HtmlElement) -> HtmlElement:
    return element.getroottree().getroot()


class ElementAddressing:
    """Issues and resolves opaque element ids.

    An id is never handed to two elements: every issued id is remembered,
    and an element that carries an id already owned by an earlier element
    in the same document (a clone of an instrumented node) gets a new one.
    """

    def __init__(self, attribute: str = ID_ATTR) -> None:
        self.attribute = attribute
        self._issued: set[str] = set()

    @property
    def issued(self) -> frozenset[str]:
        return frozenset(self._issued)

    def _generate(self, root: Optional[HtmlElement] = None) -> str:
        while True:
            token = _base36(time.time_ns() // 1_000_000) + secrets.token_hex(4)
            if token in self._issued:
                continue
            if root is not None and self.find(root, token) is not None:
                continue
            self._issued.add(token)
            return token

    def _owner(self, root: HtmlElement, element_id: str) -> Optional[HtmlElement]:
        matches = root.xpath(f"//*[@{self.attribute}=$v]", v=element_id)
        return matches[0] if matches else None

    def ensure_id(self, element: HtmlElement) -> str:
        """Return the element's id, assigning a fresh one if needed."""
        root = _root_of(element)
        existing = element.get(self.attribute)
        if existing:
            owner = self._owner(root, existing)
            if owner is None or owner is element:
                self._issued.add(existing)
                return existing
            logger.debug(f"Element shares id {existing} with an earlier element, reassigning")

        element_id = self._generate(root)
        element.set(self.attribute, element_id)
        return element_id

    def has_id(self, element: HtmlElement) -> bool:
        return bool(element.get(self.attribute))

    def get_id(self, element: HtmlElement) -> Optional[str]:
        return element.get(self.attribute) or None

    def find(self, root: HtmlElement, element_id: Optional[str]) -> Optional[HtmlElement]:
        """Resolve an id in a tree; None when nothing carries it."""
        if not element_id:
            return None
        return self._owner(root, element_id)

    def reindex(self, root: HtmlElement) -> int:
        """Record ids already present in a tree and repair duplicates.

        Returns:
            Number of elements that were given a new id.
        """
        repaired = 0
        for el in root.xpath(f"//*[@{self.attribute}]"):
            before = el.get(self.attribute)
            if self.ensure_id(el) != before:
                repaired += 1
        return repaired

    def strip(self, root: HtmlElement) -> int:
        """Remove every id marker from a tree."""
        marked = root.xpath(f"//*[@{self.attribute}]")
        for el in marked:
            del el.attrib[self.attribute]
        return len(marked)
