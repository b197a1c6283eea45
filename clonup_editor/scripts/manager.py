"""
Script manager.

Exposes the head and body scripts of the live rendering as editable text
and writes edited text back without duplicating what is already there.
"""

import copy
import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, Optional

from lxml import etree
from lxml.html import HtmlElement, fragments_fromstring, tostring

from clonup_editor.dom.document import detach
from clonup_editor.dom.instrumentation import EDITOR_SCRIPT_ID
from clonup_editor.dom.surface import RenderingSurface
from clonup_editor.exceptions import EditorError, ScriptParseError
from clonup_editor.models import ScriptEntry, ScriptLocation

from .identity import script_identity
from .rules import USER_ADDED_ATTR, ScriptRules

logger = logging.getLogger(__name__)

SCRIPT_TAGS = ("script", "noscript")

_BLANK_LINE_RE = re.compile(r"\n[ \t]*\n")
_OPEN_RE = re.compile(r"<(script|noscript)\b", re.IGNORECASE)
_CLOSE_RE = re.compile(r"</(script|noscript)\s*>", re.IGNORECASE)


def _is_comment(node) -> bool:
    return node is not None and node.tag is etree.Comment


def _blank(text: Optional[str]) -> bool:
    return not text or not text.strip()


@dataclass
class _Managed:
    element: HtmlElement
    identity: str
    leading: Optional[etree._Comment] = None
    trailing: Optional[etree._Comment] = None


@dataclass
class _Block:
    element: HtmlElement
    leading: list = field(default_factory=list)
    trailing: list = field(default_factory=list)


@dataclass
class ScriptCollection:
    """Deduplicated editable script entries of a document."""

    entries: list[ScriptEntry] = field(default_factory=list)

    def for_location(self, location: ScriptLocation) -> list[ScriptEntry]:
        return [e for e in self.entries if e.location == location]

    def identities(self, location: Optional[ScriptLocation] = None) -> list[str]:
        return [e.identity for e in self.entries if location is None or e.location == location]

    def __iter__(self) -> Iterator[ScriptEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def markup_of(element: HtmlElement) -> str:
    """Outer markup of a script element without the user-added marker."""
    clone = copy.deepcopy(element)
    clone.attrib.pop(USER_ADDED_ATTR, None)
    return tostring(clone, encoding="unicode", method="html", with_tail=False)


def split_blocks(text: str) -> list[str]:
    """Split manager text on blank lines that are outside script bodies."""
    blocks: list[str] = []
    pending = ""
    for chunk in _BLANK_LINE_RE.split(text.strip()):
        pending = f"{pending}\n\n{chunk}" if pending else chunk
        if len(_OPEN_RE.findall(pending)) <= len(_CLOSE_RE.findall(pending)):
            blocks.append(pending)
            pending = ""
    if pending:
        blocks.append(pending)
    return [b for b in blocks if b.strip()]


def parse_block(block: str) -> list[_Block]:
    """Parse one block of manager text into script elements and comments.

    Raises:
        ScriptParseError: If the block holds anything besides script,
            no-script and comment nodes.
    """
    try:
        nodes = fragments_fromstring(block)
    except (etree.ParserError, ValueError) as e:
        raise ScriptParseError(f"Unparsable script block: {e}", block) from e

    parsed: list[_Block] = []
    pending: list = []
    for node in nodes:
        if isinstance(node, str):
            raise ScriptParseError(f"Unexpected text {node.strip()[:40]!r}", block)
        if not _blank(node.tail):
            raise ScriptParseError(f"Unexpected text {node.tail.strip()[:40]!r}", block)
        if _is_comment(node):
            if parsed and ScriptRules.is_end_marker(node.text) and not pending:
                parsed[-1].trailing.append(node)
            else:
                pending.append(node)
            continue
        if node.tag not in SCRIPT_TAGS:
            raise ScriptParseError(f"Unexpected <{node.tag}> element", block)
        parsed.append(_Block(element=node, leading=pending))
        pending = []

    if not parsed:
        raise ScriptParseError("Block contains no script", block)
    if pending:
        parsed[-1].trailing.extend(pending)
    return parsed


class ScriptManager:
    """Editable view of the scripts in a rendering surface.

    Args:
        surface: Surface holding the live rendering.
        rules: Relevance rules; defaults to the built-in allowlists.
    """

    def __init__(self, surface: RenderingSurface, rules: Optional[ScriptRules] = None) -> None:
        self.surface = surface
        self.rules = rules or ScriptRules()

    def _container(self, location: ScriptLocation) -> HtmlElement:
        container = self.surface.head if location == ScriptLocation.HEAD else self.surface.body
        if container is None:
            raise EditorError("No document loaded")
        return container

    def _candidates(self, container: HtmlElement) -> Iterator[HtmlElement]:
        for el in container.iter(*SCRIPT_TAGS):
            if el.get("id") == EDITOR_SCRIPT_ID:
                continue
            if any(a.tag == "noscript" for a in el.iterancestors()):
                continue
            yield el

    def _managed(self, container: HtmlElement) -> Iterator[_Managed]:
        """Every relevant, non-dynamic element of a container, duplicates included."""
        for el in self._candidates(container):
            if self.rules.is_dynamic(el) or not self.rules.is_relevant(el):
                continue

            leading = el.getprevious()
            if not (
                _is_comment(leading)
                and _blank(leading.tail)
                and self.rules.comment_allowed(leading.text)
                and not self.rules.is_end_marker(leading.text)
            ):
                leading = None

            trailing = el.getnext()
            if not (
                _is_comment(trailing)
                and _blank(el.tail)
                and self.rules.is_end_marker(trailing.text)
                and self.rules.comment_allowed(trailing.text)
            ):
                trailing = None

            yield _Managed(el, script_identity(el), leading, trailing)

    def extract(self) -> ScriptCollection:
        """Collect the editable scripts of head and body."""
        collection = ScriptCollection()
        for location in ScriptLocation:
            seen: set[str] = set()
            for managed in self._managed(self._container(location)):
                if managed.identity in seen:
                    continue
                seen.add(managed.identity)
                collection.entries.append(
                    ScriptEntry(
                        location=location,
                        identity=managed.identity,
                        raw_markup=markup_of(managed.element),
                        adjacent_comment=managed.leading.text if managed.leading is not None else None,
                        trailing_comment=managed.trailing.text if managed.trailing is not None else None,
                    )
                )
        return collection

    def to_text(self, location: ScriptLocation, collection: Optional[ScriptCollection] = None) -> str:
        """Editable text for one container, blocks separated by blank lines."""
        collection = collection or self.extract()
        return "\n\n".join(entry.to_block() for entry in collection.for_location(location))

    def clear(self, location: ScriptLocation) -> int:
        """Remove every managed script of a container with its comments."""
        container = self._container(location)
        managed = list(self._managed(container))
        for item in managed:
            for node in (item.leading, item.element, item.trailing):
                if node is not None and node.getparent() is not None:
                    detach(node)
        return len(managed)

    def apply_text(self, location: ScriptLocation, text: str) -> int:
        """Replace the managed scripts of a container with edited text.

        Blocks whose identity is already present are skipped, so applying
        unchanged text leaves the script set as it was. Malformed blocks
        are skipped with a warning.

        Returns:
            Number of elements inserted.
        """
        removed = self.clear(location)
        inserted = self._insert(location, text)
        self.surface.ensure_editor_elements()
        logger.info(f"Applied {location.value} scripts: {removed} cleared, {inserted} inserted")
        return inserted

    def add_snippet(self, head_text: str = "", body_text: str = "") -> int:
        """Insert new scripts without clearing the existing ones."""
        inserted = 0
        if head_text.strip():
            inserted += self._insert(ScriptLocation.HEAD, head_text)
        if body_text.strip():
            inserted += self._insert(ScriptLocation.BODY, body_text)
        if inserted:
            logger.info(f"Inserted {inserted} script snippets")
        return inserted

    def _insert(self, location: ScriptLocation, text: str) -> int:
        container = self._container(location)
        present = {script_identity(el) for el in self._candidates(container)}
        anchor = container.find(f"script[@id='{EDITOR_SCRIPT_ID}']")

        inserted = 0
        for block in split_blocks(text):
            try:
                parsed = parse_block(block)
            except ScriptParseError as e:
                logger.warning(f"Skipping script block: {e}")
                continue

            for item in parsed:
                identity = script_identity(item.element)
                if identity in present:
                    logger.debug(f"Script {identity} already present, skipped")
                    continue
                present.add(identity)
                item.element.set(USER_ADDED_ATTR, "true")
                for node in [*item.leading, item.element, *item.trailing]:
                    node.tail = "\n"
                    if anchor is not None:
                        anchor.addprevious(node)
                    else:
                        container.append(node)
                inserted += 1
        return inserted
