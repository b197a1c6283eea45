"""
HTML entity decoding for serialized markup.

Named and numeric character references are turned into characters,
except those producing characters that are significant to markup
(``< > & " '``), which stay encoded so the result is still well-formed.
An escaped ampersand is text, so ``&amp;copy;`` is left as written.
"""

import re
from html.entities import html5
from typing import Optional

MARKUP_SIGNIFICANT = frozenset('<>&"\'')

_REF = r"&(#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);"
_REF_RE = re.compile(_REF)


def _resolve(name: str) -> Optional[str]:
    if name.startswith("#"):
        try:
            code = int(name[2:], 16) if name[1] in "xX" else int(name[1:])
        except ValueError:
            return None
        if code <= 0 or code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
            return None
        return chr(code)
    return html5.get(name + ";")


def decode_entities(markup: str) -> str:
    """Decode character references without breaking markup."""
    if "&" not in markup:
        return markup

    def _decode(match: re.Match) -> str:
        char = _resolve(match.group(1))
        if char is None or any(c in MARKUP_SIGNIFICANT for c in char):
            return match.group(0)
        return char

    return _REF_RE.sub(_decode, markup)
