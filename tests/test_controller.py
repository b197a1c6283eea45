"""
Tests for the selection controller.
"""

import logging

import pytest

from clonup_editor.dom import EditableDocument, RenderingSurface, get_style
from clonup_editor.dom.instrumentation import SELECTED_ATTR
from clonup_editor.editor import (
    AttributeCommand,
    CommandKind,
    SelectionController,
    validate_url,
)
from clonup_editor.events import EventChannel, EventType
from clonup_editor.exceptions import InputValidationError

PAGE = """<!DOCTYPE html>
<html><head><title>Shop</title></head>
<body>
<div class="wrap"><p id="intro" class="lead">Hello <b>world</b></p></div>
<p>before <span>word</span> after</p>
<a href="/old"><img src="/logo.png" alt="Logo"></a>
<img id="hero" src="/hero.png" style="display: block; margin-left: auto; margin-right: auto">
<button style="color: red; font-size: 14px">Buy</button>
<section style="float: right">Side</section>
</body></html>"""


@pytest.fixture
def surface():
    surface = RenderingSurface()
    surface.load(EditableDocument(html=PAGE))
    return surface


@pytest.fixture
def controller(surface):
    return SelectionController(surface)


def select(controller, selector):
    element = controller.surface.query(selector)[0]
    element_id = controller.surface.addressing.ensure_id(element)
    assert controller.select(element.tag, element_id)
    return element


class TestSelection:
    """Tests for selecting and hydrating elements."""

    def test_select_hydrates_fields(self, controller):
        select(controller, "p#intro")
        fields = controller.fields
        assert controller.state.selected_tag == "p"
        assert controller.state.selector == "p#intro.lead"
        assert fields.text == "Hello world"
        assert fields.id == "intro"
        assert fields.class_name == "lead"
        assert fields.typography

    def test_select_reads_inline_style(self, controller):
        select(controller, "button")
        assert controller.fields.color == "red"
        assert controller.fields.font_size == "14px"
        assert controller.fields.bg_color == ""

    def test_select_inside_anchor_selects_anchor(self, controller):
        select(controller, "a img")
        assert controller.state.selected_tag == "a"
        assert controller.fields.href == "/old"
        assert controller.selected_element.get(SELECTED_ATTR) == "true"

    def test_select_missing_element(self, controller):
        assert controller.select("p", "nope") is False
        assert controller.state.is_empty

    def test_box_alignment_is_read_back(self, controller):
        select(controller, "img#hero")
        assert controller.fields.text_align == "center"
        assert controller.fields.src == "/hero.png"

    def test_float_alignment_is_read_back(self, controller):
        select(controller, "section")
        assert controller.fields.text_align == "right"

    def test_non_stylable_element(self, controller):
        select(controller, "title")
        assert controller.fields.stylable is False
        assert controller.set_value(CommandKind.COLOR, "blue") is False
        assert controller.selected_element.get("style") is None

    def test_clear_selection(self, controller):
        element = select(controller, "p#intro")
        controller.clear_selection()
        assert controller.state.is_empty
        assert element.get(SELECTED_ATTR) is None

    def test_breadcrumb(self, controller):
        select(controller, "p#intro b")
        assert controller.breadcrumb() == ["body", "div", "p", "b"]

    def test_breadcrumb_without_selection(self, controller):
        assert controller.breadcrumb() == []


class TestEdits:
    """Tests for applying attribute and style edits."""

    def test_text_replaces_content(self, controller):
        element = select(controller, "p#intro")
        assert controller.set_value(CommandKind.TEXT, "Hi there")
        assert element.text_content() == "Hi there"
        assert len(element) == 0
        assert controller.fields.text == "Hi there"

    def test_text_on_void_element_is_ignored(self, controller):
        select(controller, "img#hero")
        assert controller.set_value(CommandKind.TEXT, "x") is False

    def test_id_edit_and_removal(self, controller):
        element = select(controller, "p#intro")
        controller.set_value(CommandKind.ID, "welcome")
        assert element.get("id") == "welcome"
        assert controller.state.selector == "p#welcome.lead"
        controller.set_value(CommandKind.ID, "  ")
        assert element.get("id") is None

    def test_class_edit_keeps_editor_classes(self, surface, controller):
        event = surface.drop_component("button")
        controller.select("button", event.element_ids[0])
        controller.set_value(CommandKind.CLASS, "primary large")
        element = controller.selected_element
        assert element.get("class") == "primary large __ot-draggable"
        assert controller.fields.class_name == "primary large"

    def test_style_edits(self, controller):
        element = select(controller, "button")
        controller.apply(AttributeCommand(CommandKind.BG_COLOR, "#000"))
        controller.apply(AttributeCommand("radius", "8px"))
        controller.apply(AttributeCommand(CommandKind.COLOR, ""))
        assert get_style(element, "background-color") == "#000"
        assert get_style(element, "border-radius") == "8px"
        assert get_style(element, "color") == ""
        assert get_style(element, "font-size") == "14px"
        assert controller.fields.bg_color == "#000"
        assert controller.fields.radius == "8px"

    def test_every_style_kind_is_applied(self, controller):
        element = select(controller, "button")
        for kind in (
            CommandKind.PADDING,
            CommandKind.MARGIN,
            CommandKind.WIDTH,
            CommandKind.HEIGHT,
            CommandKind.FONT_FAMILY,
            CommandKind.FONT_WEIGHT,
            CommandKind.FONT_STYLE,
        ):
            assert controller.set_value(kind, "inherit")
        assert get_style(element, "font-weight") == "inherit"
        assert get_style(element, "width") == "inherit"

    def test_text_alignment_on_text_element(self, controller):
        element = select(controller, "p#intro")
        controller.set_value(CommandKind.TEXT_ALIGN, "center")
        assert get_style(element, "text-align") == "center"
        assert controller.fields.text_align == "center"

    def test_box_alignment_on_replaced_element(self, controller):
        element = select(controller, "button")
        controller.set_value(CommandKind.TEXT_ALIGN, "right")
        assert get_style(element, "display") == "block"
        assert get_style(element, "margin-left") == "auto"
        assert get_style(element, "margin-right") == "0"

    def test_float_alignment_on_other_element(self, controller):
        element = select(controller, "section")
        controller.set_value(CommandKind.TEXT_ALIGN, "left")
        assert get_style(element, "float") == "left"
        controller.set_value(CommandKind.TEXT_ALIGN, "center")
        assert get_style(element, "float") == ""

    def test_src_and_alt(self, controller):
        element = select(controller, "img#hero")
        controller.set_value(CommandKind.SRC, "https://cdn.example/new.jpg")
        controller.set_value(CommandKind.ALT, "Hero")
        assert element.get("src") == "https://cdn.example/new.jpg"
        assert element.get("alt") == "Hero"
        assert controller.fields.src == "https://cdn.example/new.jpg"

    def test_href_only_on_anchor(self, controller):
        select(controller, "button")
        assert controller.set_value(CommandKind.HREF, "https://example.com") is False

    def test_invalid_url_rejected_before_mutation(self, controller):
        element = select(controller, "img#hero")
        with pytest.raises(InputValidationError):
            controller.set_value(CommandKind.SRC, "javascript:alert(1)")
        assert element.get("src") == "/hero.png"

    def test_edit_without_selection(self, controller):
        assert controller.set_value(CommandKind.COLOR, "red") is False

    def test_edit_after_element_removed(self, controller):
        element = select(controller, "button")
        element.getparent().remove(element)
        assert controller.set_value(CommandKind.COLOR, "red") is False


class TestStructure:
    """Tests for linking and removing elements."""

    def test_set_link_wraps_element(self, controller):
        span = select(controller, "span")
        assert controller.set_link("https://example.com/page")

        anchor = span.getparent()
        assert anchor.tag == "a"
        assert anchor.get("href") == "https://example.com/page"
        assert anchor.tail == " after"
        assert span.tail is None
        assert anchor.getparent().text == "before "
        assert controller.state.selected_tag == "a"
        assert controller.fields.href == "https://example.com/page"

    def test_set_link_is_idempotent(self, surface, controller):
        select(controller, "span")
        controller.set_link("https://example.com/one")
        controller.set_link("https://example.com/two")
        anchors = surface.query("p a")
        assert len(anchors) == 1
        assert anchors[0].get("href") == "https://example.com/two"

    def test_set_link_on_existing_anchor(self, surface, controller):
        select(controller, "a img")
        controller.set_link("mailto:hello@example.com")
        assert len(surface.query("a")) == 1
        assert surface.query("a")[0].get("href") == "mailto:hello@example.com"

    def test_set_link_refuses_element_containing_link(self):
        surface = RenderingSurface()
        surface.load(
            EditableDocument(html='<html><body><div id="card"><a href="/inner">Inner</a> text</div></body></html>')
        )
        controller = SelectionController(surface)
        card = select(controller, "div#card")

        assert controller.set_link("https://example.com/") is False
        assert card.getparent().tag == "body"
        assert [a.get("href") for a in surface.query("a")] == ["/inner"]
        assert controller.state.selected_tag == "div"

    def test_set_link_invalid(self, controller):
        select(controller, "span")
        with pytest.raises(InputValidationError):
            controller.set_link("not a url")

    def test_remove_selected(self, surface, controller):
        select(controller, "section")
        assert controller.remove_selected()
        assert surface.query("section") == []
        assert controller.state.is_empty

    def test_remove_dropped_component_takes_handle(self, surface, controller):
        event = surface.drop_component("text")
        controller.select("p", event.element_ids[0])
        controller.remove_selected()
        assert surface.query(".__ot-drag-handle") == []

    def test_remove_refuses_body(self, surface, controller, caplog):
        body_id = surface.addressing.ensure_id(surface.body)
        assert controller.select("body", body_id)
        with caplog.at_level(logging.WARNING):
            assert controller.remove_selected() is False
        assert surface.body is not None
        assert "Refusing to remove <body>" in caplog.text


class TestChannelSelection:
    """Tests for selection driven by surface messages."""

    @pytest.mark.asyncio
    async def test_click_selects_through_channel(self):
        channel = EventChannel()
        surface = RenderingSurface(channel=channel)
        surface.load(EditableDocument(html=PAGE))
        controller = SelectionController(surface, emitter=channel.emitter)
        changes = []
        channel.emitter.on(EventType.SELECTION_CHANGED, lambda e: changes.append(e.element_id))

        button = surface.query("button")[0]
        surface.click(button)
        surface.click(surface.query("p#intro")[0])
        await channel.drain()

        assert controller.state.selected_tag == "p"
        assert len(changes) == 2
        assert changes[-1] == controller.state.selected_id

    @pytest.mark.asyncio
    async def test_message_for_missing_element(self):
        channel = EventChannel()
        surface = RenderingSurface(channel=channel)
        surface.load(EditableDocument(html=PAGE))
        controller = SelectionController(surface, emitter=channel.emitter)

        surface.click(surface.query("button")[0])
        surface.load(EditableDocument(html="<html><body><p>new</p></body></html>"))
        await channel.drain()
        assert controller.state.is_empty


class TestValidateUrl:
    """Tests for URL validation."""

    @pytest.mark.parametrize(
        "url",
        ["https://example.com", "//cdn.example/x.js", "/about", "page.html", "#top", "tel:+351123"],
    )
    def test_accepts(self, url):
        assert validate_url(f"  {url} ") == url

    @pytest.mark.parametrize(
        "url",
        ["", "   ", "javascript:alert(1)", "https://", "mailto:", "a b", "ftp://x.com"],
    )
    def test_rejects(self, url):
        with pytest.raises(InputValidationError):
            validate_url(url)

    def test_data_urls_only_when_allowed(self):
        with pytest.raises(InputValidationError):
            validate_url("data:image/png;base64,AA")
        assert validate_url("data:image/png;base64,AA", "src", allow_data=True)
