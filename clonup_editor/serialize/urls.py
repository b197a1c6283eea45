"""
Managed-domain URL rewriting.

A clone is served from several equivalent base URLs (its subdomain under
each managed root domain, over https, http and protocol-relative, plus its
path on the hosting origin). Absolute URLs under any of them are turned
back into site-relative references before the document is saved.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from lxml import etree
from lxml.html import HtmlElement

URL_ATTRIBUTES = ("src", "href", "poster", "action", "data-src")
SRCSET_ATTRIBUTES = ("srcset",)

_STYLE_URL_RE = re.compile(r"""url\(\s*(['"]?)(.*?)\1\s*\)""", re.IGNORECASE)
_BOUNDARY = "/?#"


@dataclass(frozen=True)
class ManagedDomainSet:
    """Base URLs the current clone is hosted under, longest first."""

    bases: tuple[str, ...]

    def __post_init__(self):
        ordered = tuple(sorted({b.rstrip("/") for b in self.bases if b}, key=len, reverse=True))
        object.__setattr__(self, "bases", ordered)

    @classmethod
    def for_subdomain(
        cls,
        subdomain: str,
        root_domains: Iterable[str] = ("clonup.site",),
        hosting_url: Optional[str] = None,
    ) -> "ManagedDomainSet":
        bases = []
        for root in root_domains:
            host = f"{subdomain}.{root}"
            bases.extend([f"https://{host}", f"http://{host}", f"//{host}"])
        if hosting_url:
            bases.append(f"{hosting_url.rstrip('/')}/sites/{subdomain}")
        return cls(tuple(bases))

    @property
    def primary(self) -> Optional[str]:
        """The https base used when absolutizing."""
        for base in self.bases:
            if base.startswith("https://") and "/sites/" not in base:
                return base
        return self.bases[0] if self.bases else None

    def match(self, url: str) -> Optional[str]:
        """Longest base prefixing ``url`` at a path boundary."""
        lowered = url.lower()
        for base in self.bases:
            if lowered.startswith(base.lower()):
                rest = url[len(base):]
                if not rest or rest[0] in _BOUNDARY:
                    return base
        return None

    def contains(self, url: str) -> bool:
        return self.match(url.strip()) is not None

    def rewrite_url(self, url: str) -> str:
        """Strip a managed base, leaving a site-relative reference."""
        stripped = url.strip()
        base = self.match(stripped)
        if base is None:
            return url
        rest = stripped[len(base):]
        if not rest.startswith("/"):
            rest = "/" + rest
        return rest

    def absolutize(self, path: str) -> str:
        """Re-prefix a site-relative path with the primary base."""
        if self.primary is None or re.match(r"^(?:[a-z][a-z0-9+.-]*:|//)", path, re.IGNORECASE):
            return path
        return self.primary + "/" + path.lstrip("/")

    def rewrite_srcset(self, value: str) -> str:
        if "data:" in value:
            return value
        candidates = []
        for candidate in value.split(","):
            parts = candidate.strip().split(None, 1)
            if not parts:
                continue
            parts[0] = self.rewrite_url(parts[0])
            candidates.append(" ".join(parts))
        return ", ".join(candidates)

    def rewrite_style_urls(self, style: str) -> str:
        """Rewrite ``url(...)`` references inside an inline style."""

        def _replace(match: re.Match) -> str:
            quote, url = match.groups()
            return f"url({quote}{self.rewrite_url(url)}{quote})"

        return _STYLE_URL_RE.sub(_replace, style)

    def rewrite_element(self, element: HtmlElement) -> int:
        """Rewrite every URL-bearing attribute of one element.

        Returns:
            Number of attributes changed.
        """
        changed = 0
        for attr in URL_ATTRIBUTES:
            value = element.get(attr)
            if value:
                rewritten = self.rewrite_url(value)
                if rewritten != value:
                    element.set(attr, rewritten)
                    changed += 1
        for attr in SRCSET_ATTRIBUTES:
            value = element.get(attr)
            if value:
                rewritten = self.rewrite_srcset(value)
                if rewritten != value:
                    element.set(attr, rewritten)
                    changed += 1
        style = element.get("style")
        if style and "url(" in style.lower():
            rewritten = self.rewrite_style_urls(style)
            if rewritten != style:
                element.set("style", rewritten)
                changed += 1
        return changed

    def rewrite_tree(self, root: HtmlElement) -> int:
        return sum(self.rewrite_element(el) for el in root.iter(etree.Element))
