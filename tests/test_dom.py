"""
Tests for element addressing, inline styles, documents and the rendering surface.
"""

import copy

import pytest
from lxml.html import document_fromstring, tostring

from clonup_editor.config import EditorOptions
from clonup_editor.dom import (
    COMPONENT_LIBRARY,
    EditableDocument,
    ElementAddressing,
    InlineStyle,
    RenderingSurface,
    absolutize_asset_paths,
    detach,
    extract_head_and_body,
    get_style,
    set_style,
    strip_instrumentation,
)
from clonup_editor.dom.instrumentation import (
    DRAG_HANDLE_CLASS,
    EDITOR_SCRIPT_ID,
    EDITOR_STYLES_ID,
    ID_ATTR,
    SELECTED_ATTR,
    scrub_markup,
)
from clonup_editor.events import EventChannel, EventType
from clonup_editor.exceptions import InputValidationError


def make_surface(html, subdomain="", **kwargs):
    surface = RenderingSurface(**kwargs)
    surface.load(EditableDocument(html=html, subdomain=subdomain))
    return surface


class TestElementAddressing:
    """Tests for opaque element ids."""

    @pytest.fixture
    def root(self):
        return document_fromstring("<html><body><p>a</p><p>b</p></body></html>")

    def test_ensure_id_is_idempotent(self, root):
        addressing = ElementAddressing()
        p = root.find(".//p")
        first = addressing.ensure_id(p)
        assert addressing.ensure_id(p) == first
        assert p.get(ID_ATTR) == first

    def test_distinct_elements_get_distinct_ids(self, root):
        addressing = ElementAddressing()
        p1, p2 = root.findall(".//p")
        assert addressing.ensure_id(p1) != addressing.ensure_id(p2)

    def test_find(self, root):
        addressing = ElementAddressing()
        p2 = root.findall(".//p")[1]
        element_id = addressing.ensure_id(p2)
        assert addressing.find(root, element_id) is p2
        assert addressing.find(root, "missing") is None
        assert addressing.find(root, None) is None

    def test_cloned_marker_is_reassigned(self, root):
        """Test a copied element never shares its original's id."""
        addressing = ElementAddressing()
        p = root.find(".//p")
        original_id = addressing.ensure_id(p)
        clone = copy.deepcopy(p)
        p.addnext(clone)

        assert clone.get(ID_ATTR) == original_id
        new_id = addressing.ensure_id(clone)
        assert new_id != original_id
        assert addressing.ensure_id(p) == original_id

    def test_ids_never_reused(self, root):
        addressing = ElementAddressing()
        ids = {addressing.ensure_id(p) for p in root.findall(".//p")}
        addressing.strip(root)
        ids |= {addressing.ensure_id(p) for p in root.findall(".//p")}
        assert len(ids) == 4
        assert ids <= addressing.issued

    def test_lazy_assignment(self, root):
        addressing = ElementAddressing()
        addressing.ensure_id(root.find(".//p"))
        assert len(root.xpath(f"//*[@{ID_ATTR}]")) == 1

    def test_strip(self, root):
        addressing = ElementAddressing()
        for p in root.findall(".//p"):
            addressing.ensure_id(p)
        assert addressing.strip(root) == 2
        assert not addressing.has_id(root.find(".//p"))


class TestInlineStyle:
    """Tests for inline style parsing."""

    def test_parse_respects_parentheses_and_quotes(self):
        style = InlineStyle("color: red; background: url('a;b.png') no-repeat; content: \"x;y\"")
        assert style.get("color") == "red"
        assert style.get("background") == "url('a;b.png') no-repeat"
        assert style.get("content") == '"x;y"'

    def test_names_are_case_insensitive(self):
        style = InlineStyle("COLOR: Blue")
        assert style.get("color") == "Blue"
        assert "Color" in style

    def test_empty_value_removes_property(self):
        style = InlineStyle("color: red; margin: 0")
        style.set("color", "")
        assert str(style) == "margin: 0"

    def test_apply_drops_empty_attribute(self):
        el = document_fromstring('<html><body><p style="color: red">x</p></body></html>').find(".//p")
        set_style(el, color="")
        assert el.get("style") is None

    def test_set_style_keyword_names(self):
        el = document_fromstring("<html><body><p>x</p></body></html>").find(".//p")
        set_style(el, margin_left="auto", text_align="center")
        assert get_style(el, "margin-left") == "auto"
        assert get_style(el, "text-align") == "center"


class TestDocument:
    """Tests for document helpers."""

    def test_doctype(self):
        doc = EditableDocument(html="<!DOCTYPE html>\n<html><body></body></html>")
        assert doc.doctype == "<!DOCTYPE html>"
        assert EditableDocument(html="<html></html>").doctype is None

    def test_doctype_after_comment(self):
        doc = EditableDocument(html="<!-- saved --><!doctype html><html></html>")
        assert doc.doctype == "<!doctype html>"

    def test_extract_keeps_wrapper_attributes(self):
        parts = extract_head_and_body(
            '<html lang="pt"><head data-x="1"><title>T</title></head>'
            '<body class="home"><p>x</p></body></html>'
        )
        assert parts.html_attrs == {"lang": "pt"}
        assert parts.head_attrs == {"data-x": "1"}
        assert parts.body_attrs == {"class": "home"}
        assert "<title>T</title>" in parts.head
        assert "<p>x</p>" in parts.body

    def test_extract_fragment_goes_to_body(self):
        parts = extract_head_and_body("<p>only</p>")
        assert parts.head == ""
        assert "<p>only</p>" in parts.body

    def test_extract_empty(self):
        parts = extract_head_and_body("   ")
        assert parts.body == ""
        assert parts.compose() == "<html><head></head><body></body></html>"

    def test_absolutize_asset_paths(self):
        html = (
            '<img src="img/a.png"><link href="../css/x.css">'
            '<a href="/about">x</a><a href="https://x.com">y</a>'
            '<a href="#top">z</a><a href="mailto:a@b.c">m</a>'
            '<img src="data:image/png;base64,AAA">'
        )
        out = absolutize_asset_paths(html, "shop")
        assert 'src="https://shop.clonup.site/img/a.png"' in out
        assert 'href="https://shop.clonup.site/css/x.css"' in out
        assert 'href="https://shop.clonup.site/about"' in out
        assert 'href="https://x.com"' in out
        assert 'href="#top"' in out
        assert 'href="mailto:a@b.c"' in out
        assert 'src="data:image/png;base64,AAA"' in out

    def test_absolutize_skips_javascript_urls(self):
        html = '<a href="javascript:void(0)">x</a><a href="JavaScript:open()">y</a>'
        assert absolutize_asset_paths(html, "shop") == html

    def test_detach_keeps_tail(self):
        root = document_fromstring("<html><body><div><b>x</b> tail <i>y</i></div></body></html>")
        div = root.find(".//div")
        detach(div.find("b"))
        assert tostring(div, encoding="unicode") == "<div> tail <i>y</i></div>"


class TestInstrumentation:
    """Tests for stripping editor markers."""

    def test_strip_instrumentation(self):
        root = document_fromstring(
            '<html><head><style id="editor-styles">x</style></head><body>'
            '<div class="__ot-drag-handle" title="Drag to move">&#8597;</div>'
            '<p data-ot-id="1" data-editor-selected="true" class="a __ot-selected">t</p>'
            '<span class="__ot-draggable">s</span>'
            '<script id="editor-script">1</script></body></html>'
        )
        removed = strip_instrumentation(root)
        out = tostring(root, encoding="unicode")
        assert removed == 3
        assert "data-ot" not in out
        assert SELECTED_ATTR not in out
        assert "__ot" not in out
        assert EDITOR_STYLES_ID not in out
        assert EDITOR_SCRIPT_ID not in out
        assert '<p class="a">t</p>' in out
        assert "<span>s</span>" in out

    def test_scrub_markup(self):
        html = '<p data-ot-id="x" class="__ot-selected" style="">a</p><b class="k ot-preview-selected">b</b>'
        assert scrub_markup(html) == '<p>a</p><b class="k">b</b>'

    def test_scrub_markup_leaves_script_and_text(self):
        html = (
            '<script data-ot-id="s">var t = \'<div class="">\' + \'<i class="a  b">\';</script>'
            '<!-- <span style=""> --><p class="">data-ot-id="kept" text</p>'
            "<style>.x[class=\"\"] { color: red }</style>"
        )
        assert scrub_markup(html) == (
            '<script>var t = \'<div class="">\' + \'<i class="a  b">\';</script>'
            '<!-- <span style=""> --><p>data-ot-id="kept" text</p>'
            "<style>.x[class=\"\"] { color: red }</style>"
        )


class TestRenderingSurface:
    """Tests for RenderingSurface."""

    HTML = (
        "<!DOCTYPE html><html><head><title>Shop</title></head>"
        '<body><h1>Hi</h1><img id="hero" class="big" src="/a.png"></body></html>'
    )

    def test_load_instruments_document(self):
        surface = make_surface(self.HTML)
        assert surface.instrumented
        assert surface.head.find("style").get("id") == EDITOR_STYLES_ID
        assert surface.body[-1].get("id") == EDITOR_SCRIPT_ID
        assert surface.doctype == "<!DOCTYPE html>"

    def test_load_absolutizes_assets(self):
        surface = make_surface(self.HTML, subdomain="shop")
        assert surface.query("img")[0].get("src") == "https://shop.clonup.site/a.png"

    def test_absolutize_can_be_disabled(self):
        surface = make_surface(
            self.HTML, subdomain="shop", options=EditorOptions(absolutize_assets=False)
        )
        assert surface.query("img")[0].get("src") == "/a.png"

    def test_mobile_preview_css(self):
        surface = make_surface(self.HTML, options=EditorOptions(mobile_preview=True))
        assert "390px" in surface.head.find("style").text

    def test_ensure_editor_elements_reattaches(self):
        surface = make_surface(self.HTML)
        detach(surface.body[-1])
        assert surface.ensure_editor_elements() is True
        assert surface.ensure_editor_elements() is False
        assert len(surface.root.xpath(f"//*[@id='{EDITOR_SCRIPT_ID}']")) == 1

    def test_click_posts_selection(self):
        channel = EventChannel()
        surface = make_surface(self.HTML, channel=channel)
        img = surface.query("img#hero")[0]

        event = surface.click(img)
        assert event.type == EventType.ELEMENT_SELECTED
        assert event.selector == "img#hero.big"
        assert event.element_id == img.get(ID_ATTR)
        assert img.get(SELECTED_ATTR) == "true"
        assert channel.pending == 1

    def test_click_is_stable(self):
        surface = make_surface(self.HTML)
        img = surface.query("img")[0]
        h1 = surface.query("h1")[0]
        first = surface.click(img).element_id
        assert surface.click(img).element_id == first
        assert surface.click(h1).element_id != first
        assert img.get(SELECTED_ATTR) is None
        assert h1.get(SELECTED_ATTR) == "true"

    def test_click_body_is_ignored(self):
        surface = make_surface(self.HTML)
        assert surface.click(surface.body) is None

    def test_drop_component(self):
        surface = make_surface(self.HTML)
        event = surface.drop_component("button")

        assert event.type == EventType.COMPONENT_DROPPED
        assert len(event.element_ids) == 1
        button = surface.element_by_id(event.element_ids[0])
        assert button.tag == "button"
        assert "__ot-draggable" in button.get("class")
        assert DRAG_HANDLE_CLASS in button.getprevious().get("class")
        assert button.getnext().get("id") == EDITOR_SCRIPT_ID

    def test_every_component_drops(self):
        surface = make_surface(self.HTML)
        for kind in COMPONENT_LIBRARY:
            assert surface.drop_component(kind).element_ids

    def test_drop_unknown_component(self):
        surface = make_surface(self.HTML)
        with pytest.raises(InputValidationError):
            surface.drop_component("carousel")

    def test_drag_to(self):
        surface = make_surface("<html><body><p>a</p><p>b</p></body></html>")
        first, second = surface.query("p")
        event = surface.drag_to(first, second)
        assert [p.text for p in surface.query("p")] == ["b", "a"]
        assert event.target_id == second.get(ID_ATTR)

    def test_reload_replaces_document(self):
        surface = make_surface(self.HTML)
        surface.load(EditableDocument(html="<html><body><p>new</p></body></html>"))
        assert surface.query("img") == []
        assert surface.doctype is None
