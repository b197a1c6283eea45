"""
Inline ``style`` attribute handling.

There is no layout engine behind the rendering surface, so inline style
is the only style source the editor reads and writes.
"""

from typing import Iterator, Optional

from lxml.html import HtmlElement


def split_declarations(text: str) -> Iterator[str]:
    """Split a declaration block on ``;`` outside parentheses and quotes."""
    depth = 0
    quote: Optional[str] = None
    start = 0
    for i, ch in enumerate(text):
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")" and depth:
            depth -= 1
        elif ch == ";" and depth == 0:
            yield text[start:i]
            start = i + 1
    yield text[start:]


class InlineStyle:
    """Ordered, case-insensitive view of one element's inline style."""

    def __init__(self, text: Optional[str] = None) -> None:
        self._props: dict[str, str] = {}
        for decl in split_declarations(text or ""):
            name, sep, value = decl.partition(":")
            name = name.strip().lower()
            value = value.strip()
            if sep and name and value:
                self._props[name] = value

    @classmethod
    def of(cls, element: HtmlElement) -> "InlineStyle":
        return cls(element.get("style"))

    def get(self, name: str) -> str:
        return self._props.get(name.lower(), "")

    def set(self, name: str, value: Optional[str]) -> None:
        """Set a property; an empty value removes it."""
        name = name.lower()
        value = (value or "").strip()
        if value:
            self._props[name] = value
        else:
            self._props.pop(name, None)

    def items(self) -> list[tuple[str, str]]:
        return list(self._props.items())

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._props

    def __len__(self) -> int:
        return len(self._props)

    def __str__(self) -> str:
        return "; ".join(f"{k}: {v}" for k, v in self._props.items())

    def apply_to(self, element: HtmlElement) -> None:
        """Write back to the element, dropping the attribute when empty."""
        if self._props:
            element.set("style", str(self))
        elif "style" in element.attrib:
            del element.attrib["style"]


def get_style(element: HtmlElement, name: str) -> str:
    return InlineStyle.of(element).get(name)


def set_style(element: HtmlElement, **properties: Optional[str]) -> None:
    """Update inline style properties on an element.

    Keyword names use underscores for dashes (``margin_left``).
    """
    style = InlineStyle.of(element)
    for name, value in properties.items():
        style.set(name.replace("_", "-"), value)
    style.apply_to(element)
