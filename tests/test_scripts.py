"""
Tests for script extraction, filtering and re-insertion.
"""

import logging

import pytest
from lxml.html import fragment_fromstring

from clonup_editor.config import ScriptOptions
from clonup_editor.dom import EditableDocument, RenderingSurface
from clonup_editor.dom.instrumentation import EDITOR_SCRIPT_ID
from clonup_editor.exceptions import ScriptParseError
from clonup_editor.models import ScriptLocation
from clonup_editor.scripts import (
    USER_ADDED_ATTR,
    ScriptManager,
    ScriptRules,
    normalize_src,
    parse_block,
    script_identity,
    split_blocks,
)

PAGE = """<html><head>
<title>Shop</title>
<!-- Meta Pixel Code -->
<script>fbq('init', '123');</script>
<!-- End Meta Pixel Code -->
<script src="https://connect.facebook.net/en_US/fbevents.js" async></script>
<script src="/js/app.js"></script>
<script>console.log('hi')</script>
<script src="https://www.googletagmanager.com/gtag/js?id=G-1"></script>
<script src="https://www.googletagmanager.com/gtag/js?id=G-1&amp;v=2"></script>
</head><body>
<p>Content</p>
<noscript><img src="https://www.facebook.com/tr?id=123"></noscript>
<script data-dynamic="1">gtag('event')</script>
</body></html>"""

FBQ_BLOCK = (
    "<!-- Meta Pixel Code -->\n"
    "<script>fbq('init', '123');</script>\n"
    "<!-- End Meta Pixel Code -->"
)
GTAG_BLOCK = '<script src="https://www.googletagmanager.com/gtag/js?id=G-1"></script>'


@pytest.fixture
def surface():
    surface = RenderingSurface()
    surface.load(EditableDocument(html=PAGE))
    return surface


@pytest.fixture
def manager(surface):
    return ScriptManager(surface)


def element(markup):
    return fragment_fromstring(markup)


class TestScriptRules:
    """Tests for relevance and dynamic-loader rules."""

    def test_keyword_relevance(self):
        rules = ScriptRules()
        assert rules.is_relevant(element("<script>gtag('config', 'G-1')</script>"))
        assert rules.is_relevant(element("<script>localStorage.setItem('a', 1)</script>"))
        assert rules.is_relevant(element('<script src="https://static.hotjar.com/c.js"></script>'))
        assert not rules.is_relevant(element("<script>console.log(1)</script>"))

    def test_user_added_is_relevant(self):
        rules = ScriptRules()
        el = element(f'<script {USER_ADDED_ATTR}="true">console.log(1)</script>')
        assert rules.is_relevant(el)

    def test_dynamic_loaders(self):
        rules = ScriptRules()
        assert rules.is_dynamic(
            element('<script src="https://connect.facebook.net/en_US/fbevents.js"></script>')
        )
        assert rules.is_dynamic(element('<script data-injected="1">fbq()</script>'))
        assert not rules.is_dynamic(
            element('<script src="https://connect.facebook.net/en_US/fbevents.js">fbq()</script>')
        )

    def test_extra_options(self):
        rules = ScriptRules.from_options(
            ScriptOptions(extra_keywords=["intercom"], extra_dynamic_patterns=[r"cdn\.example/loader\.js"])
        )
        assert rules.is_relevant(element("<script>Intercom('boot')</script>"))
        assert rules.is_dynamic(element('<script src="https://cdn.example/loader.js"></script>'))

    def test_comment_rules(self):
        rules = ScriptRules()
        assert rules.comment_allowed(" Google Analytics ")
        assert not rules.comment_allowed(" random note ")
        assert rules.is_end_marker(" End Meta Pixel Code ")
        assert not rules.is_end_marker(" Weekend offer ")


class TestScriptIdentity:
    def test_normalize_src(self):
        assert normalize_src("//CDN.Example.com/A.js?x=1#f") == "https://cdn.example.com/a.js"
        assert normalize_src("/js/App.js?v=3") == "/js/app.js"

    def test_identity_kinds(self):
        assert script_identity(element('<script src="https://a.example/x.js?v=1"></script>')) == (
            "src:https://a.example/x.js"
        )
        assert script_identity(element("<script>fbq()</script>")).startswith("inline:")
        assert script_identity(element("<noscript><p>x</p></noscript>")).startswith("noscript:")

    def test_inline_identity_ignores_outer_whitespace(self):
        a = script_identity(element("<script>fbq()</script>"))
        b = script_identity(element("<script>\n  fbq()\n</script>"))
        assert a == b


class TestBlockParsing:
    """Tests for splitting and parsing manager text."""

    def test_split_blocks(self):
        text = f"{FBQ_BLOCK}\n\n{GTAG_BLOCK}\n\n\n"
        assert split_blocks(text) == [FBQ_BLOCK, GTAG_BLOCK]

    def test_split_keeps_blank_lines_inside_scripts(self):
        script = "<script>\nvar a = 1;\n\nfbq('track');\n</script>"
        assert split_blocks(f"{script}\n\n{GTAG_BLOCK}") == [script, GTAG_BLOCK]

    def test_parse_block_comments(self):
        (block,) = parse_block(FBQ_BLOCK)
        assert block.element.tag == "script"
        assert [c.text for c in block.leading] == [" Meta Pixel Code "]
        assert [c.text for c in block.trailing] == [" End Meta Pixel Code "]

    @pytest.mark.parametrize(
        "block",
        ["just some text", "<div>not a script</div>", "<!-- only a comment -->"],
    )
    def test_parse_block_rejects(self, block):
        with pytest.raises(ScriptParseError):
            parse_block(block)


class TestScriptManager:
    """Tests for ScriptManager."""

    def test_extract_filters_and_deduplicates(self, manager):
        collection = manager.extract()
        head = collection.for_location(ScriptLocation.HEAD)

        assert len(head) == 2
        assert head[0].adjacent_comment == " Meta Pixel Code "
        assert head[0].trailing_comment == " End Meta Pixel Code "
        assert head[1].identity == "src:https://www.googletagmanager.com/gtag/js"
        assert not any("fbevents" in e.raw_markup for e in collection)
        assert not any("app.js" in e.raw_markup for e in collection)

    def test_extract_body_noscript(self, manager):
        body = manager.extract().for_location(ScriptLocation.BODY)
        assert len(body) == 1
        assert body[0].identity.startswith("noscript:")
        assert "facebook.com/tr" in body[0].raw_markup

    def test_editor_script_is_never_managed(self, surface, manager):
        assert surface.body[-1].get("id") == EDITOR_SCRIPT_ID
        assert all(EDITOR_SCRIPT_ID not in e.raw_markup for e in manager.extract())

    def test_to_text(self, manager):
        assert manager.to_text(ScriptLocation.HEAD) == f"{FBQ_BLOCK}\n\n{GTAG_BLOCK}"

    def test_apply_unchanged_text_is_idempotent(self, surface, manager):
        text = manager.to_text(ScriptLocation.HEAD)
        manager.apply_text(ScriptLocation.HEAD, text)
        manager.apply_text(ScriptLocation.HEAD, text)

        assert manager.to_text(ScriptLocation.HEAD) == text
        assert len(surface.query("head script[src*='gtag']")) == 1
        fbq = [s for s in surface.head.iter("script") if "fbq" in (s.text or "")]
        assert len(fbq) == 1
        assert fbq[0].get(USER_ADDED_ATTR) == "true"

    def test_apply_keeps_unmanaged_scripts(self, surface, manager):
        manager.apply_text(ScriptLocation.HEAD, "")
        assert manager.to_text(ScriptLocation.HEAD) == ""
        srcs = [s.get("src") for s in surface.head.iter("script")]
        assert "/js/app.js" in srcs
        assert "https://connect.facebook.net/en_US/fbevents.js" in srcs

    def test_apply_body_inserts_before_editor_script(self, surface, manager):
        inserted = manager.apply_text(
            ScriptLocation.BODY, "<script>ttq.load('ABC')</script>"
        )
        assert inserted == 1
        assert surface.body[-1].get("id") == EDITOR_SCRIPT_ID
        assert "ttq.load" in surface.body[-2].text
        assert manager.to_text(ScriptLocation.BODY) == "<script>ttq.load('ABC')</script>"

    def test_malformed_block_is_skipped(self, manager, caplog):
        text = "<div>nope</div>\n\n<script>ttq.load('X')</script>"
        with caplog.at_level(logging.WARNING):
            inserted = manager.apply_text(ScriptLocation.BODY, text)
        assert inserted == 1
        assert "Skipping script block" in caplog.text

    def test_add_snippet(self, surface, manager):
        inserted = manager.add_snippet(
            head_text="<script>console.log('custom')</script>",
            body_text="<script>fbq('track', 'Lead');</script>",
        )
        assert inserted == 2
        head = manager.extract().for_location(ScriptLocation.HEAD)
        assert head[-1].raw_markup == "<script>console.log('custom')</script>"
        assert len(manager.extract().for_location(ScriptLocation.BODY)) == 2

    def test_add_snippet_skips_present_scripts(self, manager):
        assert manager.add_snippet(head_text="<script>fbq('init', '123');</script>") == 0
        assert manager.add_snippet(head_text=GTAG_BLOCK.replace("G-1", "G-1&amp;v=9")) == 0

    def test_clear(self, surface, manager):
        assert manager.clear(ScriptLocation.HEAD) == 3
        assert not any(
            (c.text or "").strip().startswith("Meta Pixel")
            for c in surface.head.iter()
            if not isinstance(c.tag, str)
        )
