"""
Relevance rules for the script manager.

Decide which script and no-script elements are shown for editing, which
are runtime injections by a tracking SDK, and which neighbouring
comments travel with a script.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from lxml.html import HtmlElement

from clonup_editor.config.options import ScriptOptions
from clonup_editor.dom.document import inner_html

USER_ADDED_ATTR = "data-user-added"
DYNAMIC_FLAGS = ("data-dynamic", "data-injected")

# Tracking, storage, navigation and HTTP client markers
RELEVANCE_KEYWORDS = (
    "facebook",
    "fbq",
    "fbevents",
    "googletagmanager",
    "gtag",
    "google-analytics",
    "analytics",
    "pixel",
    "tiktok",
    "ttq",
    "hotjar",
    "clarity",
    "utm",
    "localStorage",
    "sessionStorage",
    "document.cookie",
    "window.location",
    "location.href",
    "history.",
    "fetch(",
    "XMLHttpRequest",
    "axios",
    "sendBeacon",
)

# Loader URLs that tag managers and pixel SDKs inject at runtime
DYNAMIC_SRC_PATTERNS = (
    r"connect\.facebook\.net/.*/fbevents\.js",
    r"connect\.facebook\.net/signals/config/",
    r"googletagmanager\.com/gtag/js\?.*l=dataLayer&cx=c",
    r"analytics\.tiktok\.com/.*pixel/(?:events|config)\.js",
    r"/(?:events|config)\.js(?:\?|$)",
)

COMMENT_KEYWORDS = ("pixel", "facebook", "meta", "analytics", "end")

_END_MARKER_RE = re.compile(r"\bend\b", re.IGNORECASE)


@dataclass
class ScriptRules:
    """Keyword and pattern sets used by the script manager."""

    keywords: tuple[str, ...] = RELEVANCE_KEYWORDS
    dynamic_patterns: tuple[str, ...] = DYNAMIC_SRC_PATTERNS
    comment_keywords: tuple[str, ...] = COMMENT_KEYWORDS
    _compiled: list[re.Pattern] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        self._compiled = [re.compile(p, re.IGNORECASE) for p in self.dynamic_patterns]

    @classmethod
    def from_options(cls, options: Optional[ScriptOptions] = None) -> "ScriptRules":
        if options is None:
            return cls()
        return cls(
            keywords=RELEVANCE_KEYWORDS + tuple(options.extra_keywords),
            dynamic_patterns=DYNAMIC_SRC_PATTERNS + tuple(options.extra_dynamic_patterns),
        )

    @staticmethod
    def body_of(element: HtmlElement) -> str:
        if element.tag == "noscript":
            return inner_html(element)
        return element.text or ""

    def _matches(self, text: str, needles: Iterable[str]) -> bool:
        lowered = text.lower()
        return any(n.lower() in lowered for n in needles)

    def is_user_added(self, element: HtmlElement) -> bool:
        return element.get(USER_ADDED_ATTR) is not None

    def is_relevant(self, element: HtmlElement) -> bool:
        """User-added, or mentions a tracking or navigation keyword."""
        if self.is_user_added(element):
            return True
        haystack = (element.get("src") or "") + "\n" + self.body_of(element)
        return self._matches(haystack, self.keywords)

    def is_dynamic(self, element: HtmlElement) -> bool:
        """Injected at runtime by an SDK rather than authored."""
        if any(element.get(flag) is not None for flag in DYNAMIC_FLAGS):
            return True
        src = element.get("src")
        if not src or self.body_of(element).strip():
            return False
        return any(p.search(src) for p in self._compiled)

    def comment_allowed(self, text: Optional[str]) -> bool:
        return bool(text) and self._matches(text, self.comment_keywords)

    @staticmethod
    def is_end_marker(text: Optional[str]) -> bool:
        return bool(text) and _END_MARKER_RE.search(text) is not None
