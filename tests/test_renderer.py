# tests/test_renderer.py
"""End-to-end tests for TemplateRenderer: lookup, helpers, escaping and extraction."""

import pytest

from promptkit import Element, HelperDescriptor, TemplateRenderer
from promptkit.exceptions import (
    CompilationError,
    ConfigError,
    EvaluationError,
    HelperInvocationError,
)


class TestTemplateLookup:

    def test_named_template_from_directory(self, renderer):
        assert renderer.render("basic").body == "Hello Ada!"

    def test_explicit_extension(self, renderer):
        assert renderer.render("basic.md").body == "Hello Ada!"

    def test_txt_fallback(self, renderer):
        assert renderer.render("notes").body == "plain text Ada"

    def test_unknown_name_is_literal_source(self, renderer):
        assert renderer.render("missing").body == "missing"

    def test_inline_source(self, renderer):
        assert renderer.render("Hi {{name}}, again").body == "Hi Ada, again"

    def test_body_alias(self, renderer):
        assert renderer.render(body="From body: {{name}}").body == "From body: Ada"

    def test_template_wins_over_body(self, renderer):
        assert renderer.render("basic", body="ignored").body == "Hello Ada!"

    def test_empty_render(self):
        result = TemplateRenderer().render()
        assert result.body == ""
        assert result.meta == {}
        assert len(result.sections) == 1 and result.sections[0].title is None


class TestOptions:

    def test_call_params_merge_over_defaults(self):
        renderer = TemplateRenderer(params={"greeting": "Hey", "name": "Ada"})
        result = renderer.render("{{greeting}} {{name}} {{extra}}", params={"name": "Grace", "extra": "!"})
        assert result.body == "Hey Grace !"
        assert renderer.render("{{greeting}} {{name}}").body == "Hey Ada"

    def test_unknown_override_is_rejected(self, renderer):
        with pytest.raises(ConfigError):
            renderer.render("basic", colour="red")

    def test_attribute_lookup_on_params(self):
        class User:
            def __init__(self, first, last):
                self.first = first
                self.last = last

            @property
            def full_name(self):
                return f"{self.first} {self.last}"

        result = TemplateRenderer().render("{{user.full_name}}", params={"user": User("Ada", "Lovelace")})
        assert result.body == "Ada Lovelace"


class TestEscaping:

    def test_markup_is_escaped_and_quotes_restored(self):
        result = TemplateRenderer().render("{{text}}", params={"text": '<b>"hi" it\'s</b>'})
        assert result.body == "&lt;b&gt;\"hi\" it's&lt;/b&gt;"

    def test_unescape_can_be_disabled(self):
        result = TemplateRenderer(unescape=False).render("{{text}}", params={"text": '"hi"'})
        assert result.body == "&quot;hi&quot;"

    def test_triple_stash_is_raw(self):
        result = TemplateRenderer().render("{{{url}}}", params={"url": "https://x.org/?a=1&b=<2>"})
        assert result.body == "https://x.org/?a=1&b=<2>"


class TestBuiltinHelpers:

    def test_number_counts_from_one_inside_each(self):
        result = TemplateRenderer().render(
            "{{#each items}}{{number}}. {{this}} {{/each}}", params={"items": ["red", "green"]}
        )
        assert result.body == "1. red 2. green"

    def test_number_outside_loop_is_empty(self):
        assert TemplateRenderer().render("[{{number}}]").body == "[]"

    def test_link(self):
        result = TemplateRenderer().render('{{link "https://example.com/a" "Docs"}}')
        assert result.body == "[Docs](https://example.com/a)"

    def test_button_uses_base_url_and_tokens(self):
        renderer = TemplateRenderer(base_url="https://example.com/")
        result = renderer.render('{{button "/users/:id" "Profile" id=42}}')
        assert result.body == '<a href="https://example.com/users/42" class="button" target="_blank">Profile</a>'

    def test_list(self):
        result = TemplateRenderer().render("{{list items}}", params={"items": ["one", "two"]})
        assert result.body == "- one\n- two"

    def test_date_helpers_use_configured_zone(self, renderer):
        template = "{{date when}} | {{timeZone when}} | {{dateTimeShort when}} | {{timeShort when}}"
        result = renderer.render(template, params={"when": "2025-01-01T12:00:00Z"})
        assert result.body == "2025-01-01 | 7:00am EST | 1/1/2025, 7:00am | 7am"

    def test_date_time_zone_in_daylight_saving(self, renderer):
        result = renderer.render("{{dateTimeZone when}}", params={"when": "2025-03-15T18:00:00Z"})
        assert result.body == "March 15, 2025 at 2:00pm EDT"

    def test_meridiem_and_zone_style_by_hash(self, renderer):
        result = renderer.render(
            '{{time when meridiem="caps"}} / {{timeZone when style="long"}}',
            params={"when": "2025-01-01T12:00:00Z"},
        )
        assert result.body == "7:00AM / 7:00am Eastern Standard Time"

    def test_date_without_value_uses_clock(self, renderer):
        assert renderer.render("{{dateLong}}").body == "July 1, 2025"

    def test_relative_time(self, renderer):
        assert renderer.render("{{relTime when}}", params={"when": "2025-01-01T12:00:00Z"}).body == "6 months ago"

    def test_relative_time_cutoff(self, renderer):
        result = renderer.render('{{relTime when min="2025-02-01"}}', params={"when": "2025-01-01T12:00:00Z"})
        assert result.body == "January 1, 2025"

    def test_timezone_override_per_call(self, renderer):
        result = renderer.render("{{timeZone when}}", params={"when": "2025-01-01T12:00:00Z"}, timezone="UTC")
        assert result.body == "12:00pm UTC"


class TestCustomHelpers:

    def test_hash_wins_over_positional(self):
        def pair(first, second):
            return f"{first}-{second}"
        result = TemplateRenderer(helpers={"pair": pair}).render("{{pair 1 first=9}}")
        assert result.body == "9-1"

    def test_defaults_fill_missing_arguments(self):
        def greet(name, greeting="Hello"):
            return f"{greeting}, {name}"
        renderer = TemplateRenderer(helpers={"greet": greet})
        assert renderer.render('{{greet "Ann"}}').body == "Hello, Ann"
        assert renderer.render('{{greet "Ann" greeting="Hi"}}').body == "Hi, Ann"

    def test_descriptor_names_bind_hash_arguments(self):
        shout = HelperDescriptor(params=["text"], handler=lambda value: value.upper())
        result = TemplateRenderer(helpers={"shout": shout}).render('{{shout text="quiet"}}')
        assert result.body == "QUIET"

    def test_mapping_registration_per_call(self):
        helper = {"params": ["who"], "handler": lambda who: f"hi {who}"}
        result = TemplateRenderer().render('{{hi who="you"}}', helpers={"hi": helper})
        assert result.body == "hi you"

    def test_string_results_are_not_escaped(self):
        result = TemplateRenderer(helpers={"bold": lambda text: f"<b>{text}</b>"}).render('{{bold "x"}}')
        assert result.body == "<b>x</b>"

    def test_element_and_tuple_results_render_as_markup(self):
        helpers = {
            "logo": lambda: Element("img", {"src": "/logo.png", "alt": "Logo"}),
            "note": lambda text: ("p", {"class": "note", "text": text}),
        }
        result = TemplateRenderer(helpers=helpers).render('{{logo}} {{note "a < b"}}')
        assert result.body == '<img src="/logo.png" alt="Logo" /> <p class="note">a &lt; b</p>'

    def test_attribute_quotes_survive_unescape(self):
        link = lambda: Element("a", {"href": '/q?x="1"'}, content="go")
        result = TemplateRenderer(helpers={"query_link": link}).render("{{query_link}}")
        assert result.body == '<a href="/q?x=&#34;1&#34;">go</a>'

    def test_tuple_attribute_through_render(self):
        tip = lambda: ["abbr", {"title": ["b", {"text": "bold"}], "text": "tip"}]
        result = TemplateRenderer(helpers={"tip": tip}).render("{{tip}}")
        assert result.body == '<abbr title="&lt;b&gt;bold&lt;/b&gt;">tip</abbr>'

    def test_helper_without_signature_gets_raw_positionals(self):
        class Joiner:
            __signature__ = "unavailable"

            def __call__(self, *args):
                return "|".join(map(str, args))
        result = TemplateRenderer(helpers={"joined": Joiner()}).render('{{joined "a" "b" 3}}')
        assert result.body == "a|b|3"

    def test_options_context_reaches_helper(self):
        def where(options=None):
            return f"{options.options.base_url} #{options.data['index']}"
        renderer = TemplateRenderer(base_url="https://example.com", helpers={"where": where})
        result = renderer.render("{{#each items}}{{where}};{{/each}}", params={"items": ["a", "b"]})
        assert result.body == "https://example.com #0;https://example.com #1;"

    def test_builtin_can_be_replaced(self):
        result = TemplateRenderer(helpers={"list": lambda items: ", ".join(items)}).render(
            "{{list items}}", params={"items": ["a", "b"]}
        )
        assert result.body == "a, b"


class TestExtractionThroughRender:

    def test_front_matter_is_rendered_then_parsed(self, renderer):
        result = renderer.render("meta")
        assert result.meta == {"subject": "Welcome, Ada", "priority": 2}
        assert result.body == "Thanks for joining, Ada."

    def test_sections(self, renderer):
        result = renderer.render("sections", params={"name": "Grace"})
        assert [s.title for s in result.sections] == ["SYSTEM", "USER"]
        assert result.section("SYSTEM").content == "You are a helpful assistant."
        assert result.section("USER").content == "My name is Grace."


class TestErrors:

    def test_helper_failure(self):
        def boom():
            raise RuntimeError("nope")
        with pytest.raises(HelperInvocationError) as exc_info:
            TemplateRenderer(helpers={"boom": boom}).render("{{boom}}")
        assert exc_info.value.helper_name == "boom"
        assert isinstance(exc_info.value.original, RuntimeError)
        assert exc_info.value.stage == "evaluation"

    def test_bad_date_value_is_a_helper_failure(self, renderer):
        with pytest.raises(HelperInvocationError):
            renderer.render("{{date when}}", params={"when": "not a date"})

    @pytest.mark.parametrize("source", ["{{#each items}}never closed", "{{#if ok}}", "{{foo", "a {{name}"])
    def test_compilation_failure(self, source):
        with pytest.raises(CompilationError):
            TemplateRenderer().render(source)

    def test_helper_errors_are_evaluation_errors(self):
        def boom():
            raise ValueError("bad")
        with pytest.raises(EvaluationError):
            TemplateRenderer(helpers={"boom": boom}).render("{{boom}}")
