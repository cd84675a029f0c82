# tests/test_markup.py
from pybars import strlist

from promptkit.core.templating.markup import Element, emitting, is_markup_tuple, to_output


class TestElement:

    def test_nested_tuple_renders_inner_element(self):
        element = Element.from_tuple(("p", {"class": "intro", "text": ("img", {"src": "a.png", "alt": ""})}))
        assert element.render() == '<p class="intro"><img src="a.png" /></p>'

    def test_text_content_and_attributes_are_escaped(self):
        element = Element("a", {"href": '/q?a=1&b="2"'}, content="a < b")
        assert element.render() == '<a href="/q?a=1&amp;b=&#34;2&#34;">a &lt; b</a>'

    def test_tuple_attribute_values_are_rendered(self):
        out = to_output(["a", {"title": ["b", {"text": "x"}], "text": "y"}])
        assert str(out) == '<a title="&lt;b&gt;x&lt;/b&gt;">y</a>'

    def test_element_attribute_values_are_rendered(self):
        element = Element("span", {"data-icon": Element("i", {"class": "star"})}, content="ok")
        assert element.render() == '<span data-icon="&lt;i class=&#34;star&#34; /&gt;">ok</span>'

    def test_falsy_attributes_are_skipped(self):
        element = Element("input", {"type": "checkbox", "checked": False, "name": None})
        assert element.render() == '<input type="checkbox" />'

    def test_attribute_order_is_kept(self):
        element = Element("a", {"target": "_blank", "href": "/x"}, content="x")
        assert str(element) == '<a target="_blank" href="/x">x</a>'


class TestToOutput:

    def test_strings_are_marked_safe(self):
        out = to_output("<b>bold</b>")
        assert isinstance(out, strlist)
        assert str(out) == "<b>bold</b>"

    def test_tuples_render_as_markup(self):
        assert is_markup_tuple(["em", {"text": "hi"}])
        assert str(to_output(["em", {"text": "hi"}])) == "<em>hi</em>"

    def test_other_values_pass_through(self):
        assert to_output(3) == 3
        assert to_output(None) is None

    def test_emitting_wraps_helper_results(self):
        helper = emitting(lambda this: Element("br"))
        assert str(helper(None)) == "<br />"
