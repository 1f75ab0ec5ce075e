import dataclasses
import io
from unittest import mock

from django.core.exceptions import ImproperlyConfigured
from django.template import Context
from django.template import engines
from django.template import Template
from django.test import override_settings
from django.test import SimpleTestCase
from django.utils.safestring import mark_safe
from jinja2 import Environment
from jinja2 import StrictUndefined
from jinja2 import UndefinedError
from markupsafe import Markup

from .filters import FILTER_NAMES
from .filters import MarkdownFilter
from .filters import MarkdownMvcAdapter
from .pipeline import MarkdownFilterOptions
from .pipeline import MarkdownPipeline
from .pipeline import MarkdownPipelineBuilder
from .registration import add_markdown_filters
from .registration import create_core
from .renderer import create_renderer
from .renderer import MarkdownRenderer
from .renderer import PythonMarkdownRenderer
from .values import html_content_converter
from .values import HtmlContentValue
from .values import register_html_content_converter
from .values import register_value_converter
from .values import to_template_value


def plain_pipeline(builder):
    return builder


def plain_options():
    return MarkdownFilterOptions(configure_pipeline=plain_pipeline)


class MarkdownPipelineBuilderTests(SimpleTestCase):
    def test_use_returns_builder_for_chaining(self):
        builder = MarkdownPipelineBuilder()

        self.assertIs(builder.use("tables"), builder)
        self.assertIs(builder.use_footnotes().use_abbreviations(), builder)

    def test_use_does_not_duplicate_extensions(self):
        builder = MarkdownPipelineBuilder().use_tables().use_tables()

        self.assertEqual(builder.extensions, ["tables"])

    def test_use_replaces_extension_config(self):
        builder = MarkdownPipelineBuilder()
        builder.use("toc", permalink=True)
        builder.use("toc", permalink=False, baselevel=2)

        self.assertEqual(builder.extensions, ["toc"])
        self.assertEqual(
            builder.extension_configs["toc"], {"permalink": False, "baselevel": 2}
        )

    def test_advanced_extensions_enable_extended_syntax(self):
        pipeline = MarkdownPipelineBuilder().use_advanced_extensions().build()

        for extension in (
            "tables",
            "pymdownx.tasklist",
            "pymdownx.tilde",
            "toc",
            "footnotes",
            "def_list",
            "abbr",
        ):
            self.assertIn(extension, pipeline.extensions)

    def test_built_pipeline_is_frozen(self):
        builder = MarkdownPipelineBuilder().use("toc", permalink=True)
        pipeline = builder.build()

        builder.use_tables()
        builder.extension_configs["toc"]["permalink"] = False

        self.assertEqual(pipeline.extensions, ("toc",))
        self.assertEqual(pipeline.extension_configs["toc"], {"permalink": True})
        with self.assertRaises(dataclasses.FrozenInstanceError):
            pipeline.extensions = ()


class MarkdownFilterOptionsTests(SimpleTestCase):
    def test_default_uses_advanced_extensions(self):
        pipeline = MarkdownFilterOptions().build_pipeline()

        self.assertEqual(
            pipeline.extensions,
            MarkdownPipelineBuilder().use_advanced_extensions().build().extensions,
        )

    def test_identity_configuration_has_no_extensions(self):
        pipeline = plain_options().build_pipeline()

        self.assertEqual(pipeline.extensions, ())

    def test_missing_configuration_fails_at_use(self):
        options = MarkdownFilterOptions(configure_pipeline=None)

        with self.assertRaises(ImproperlyConfigured):
            options.build_pipeline()

    def test_configuration_can_be_replaced_after_construction(self):
        options = MarkdownFilterOptions()
        options.configure_pipeline = lambda b: b.use_tables()

        self.assertEqual(options.build_pipeline().extensions, ("tables",))

    def test_from_settings_without_setting_uses_defaults(self):
        options = MarkdownFilterOptions.from_settings()

        self.assertIn("pymdownx.tilde", options.build_pipeline().extensions)

    @override_settings(
        MARKDOWN_FILTERS={"CONFIGURE_PIPELINE": "mdfilters.tests.plain_pipeline"}
    )
    def test_from_settings_imports_dotted_path(self):
        options = MarkdownFilterOptions.from_settings()

        self.assertIs(options.configure_pipeline, plain_pipeline)

    @override_settings(MARKDOWN_FILTERS={"CONFIGURE_PIPELINE": plain_pipeline})
    def test_from_settings_accepts_callable(self):
        options = MarkdownFilterOptions.from_settings()

        self.assertIs(options.configure_pipeline, plain_pipeline)

    @override_settings(MARKDOWN_FILTERS={"CONFIGURE_PIPELINE": "mdfilters.nope.missing"})
    def test_from_settings_rejects_unimportable_path(self):
        with self.assertRaises(ImproperlyConfigured):
            MarkdownFilterOptions.from_settings()

    @override_settings(MARKDOWN_FILTERS={"CONFIGURE_PIPELINE": None})
    def test_from_settings_keeps_explicit_none(self):
        options = MarkdownFilterOptions.from_settings()

        with self.assertRaises(ImproperlyConfigured):
            options.build_pipeline()


class PythonMarkdownRendererTests(SimpleTestCase):
    def setUp(self):
        self.renderer = create_renderer()

    def test_none_and_empty_render_as_empty(self):
        self.assertEqual(self.renderer.to_html(None), "")
        self.assertEqual(self.renderer.to_html(""), "")

    def test_renders_bold(self):
        self.assertIn("<strong>bold</strong>", self.renderer.to_html("**bold**"))

    def test_rendering_is_deterministic(self):
        text = "# Title\n\nSome *text* with a footnote[^1].\n\n[^1]: The note."

        self.assertEqual(self.renderer.to_html(text), self.renderer.to_html(text))

    def test_default_pipeline_renders_strikethrough(self):
        self.assertIn("<del>x</del>", self.renderer.to_html("~~x~~"))

    def test_plain_pipeline_leaves_strikethrough_alone(self):
        renderer = create_renderer(plain_options())

        self.assertNotIn("<del>", renderer.to_html("~~x~~"))

    def test_default_pipeline_renders_tables(self):
        html = self.renderer.to_html("| A | B |\n|---|---|\n| 1 | 2 |")

        self.assertIn("<table>", html)

    def test_default_pipeline_renders_task_lists(self):
        html = self.renderer.to_html("- [x] Checked")

        self.assertIn("<input", html)
        self.assertIn('type="checkbox"', html)

    def test_emphasis_extras_render_mark(self):
        options = MarkdownFilterOptions(configure_pipeline=lambda b: b.use_emphasis_extras())
        renderer = create_renderer(options)

        self.assertIn("<mark>marked text</mark>", renderer.to_html("==marked text=="))

    def test_renderer_uses_given_pipeline(self):
        renderer = PythonMarkdownRenderer(MarkdownPipeline(extensions=("tables",)))

        self.assertIn("<em>x</em>", renderer.to_html("*x*"))
        self.assertIsInstance(renderer, MarkdownRenderer)


class HtmlContentValueTests(SimpleTestCase):
    def test_is_truthy_even_when_empty(self):
        self.assertTrue(HtmlContentValue(Markup("")).to_boolean())
        self.assertTrue(HtmlContentValue(Markup("")))
        self.assertTrue(HtmlContentValue(None))

    def test_is_never_numeric(self):
        value = HtmlContentValue(Markup("42"))

        self.assertEqual(value.to_number(), 0)
        self.assertEqual(int(value), 0)

    def test_text_is_not_escaped_again(self):
        value = HtmlContentValue(Markup("<p>&lt;x&gt;</p>"))

        self.assertEqual(value.to_text(), "<p>&lt;x&gt;</p>")
        self.assertEqual(str(value), "<p>&lt;x&gt;</p>")
        self.assertEqual(value.__html__(), "<p>&lt;x&gt;</p>")

    def test_none_becomes_empty_markup(self):
        value = HtmlContentValue(None)

        self.assertEqual(value.to_text(), "")
        self.assertIsInstance(value.to_raw(), Markup)

    def test_raw_value_is_the_wrapped_fragment(self):
        fragment = mark_safe("<b>x</b>")

        self.assertIs(HtmlContentValue(fragment).to_raw(), fragment)

    def test_is_not_enumerable(self):
        value = HtmlContentValue(Markup("<ul><li>a</li></ul>"))

        self.assertEqual(list(value.enumerate()), [])
        self.assertEqual(list(value), [])

    def test_length_is_text_length(self):
        value = HtmlContentValue(Markup("<p>x</p>"))

        self.assertEqual(len(value), 8)

    def test_length_filter_in_template(self):
        env = add_markdown_filters(Environment())

        output = env.from_string("{{ ('x' | markdown) | length }}").render()

        self.assertEqual(output, "8")

    def test_equality_compares_text(self):
        first = HtmlContentValue(Markup("<b>x</b>"))
        second = HtmlContentValue(mark_safe("<b>x</b>"))

        self.assertIsNot(first, second)
        self.assertTrue(first.equals(second))
        self.assertEqual(first, second)
        self.assertEqual(hash(first), hash(second))

    def test_equality_is_case_sensitive(self):
        self.assertFalse(
            HtmlContentValue(Markup("<b>X</b>")).equals(HtmlContentValue(Markup("<b>x</b>")))
        )

    def test_equality_with_plain_values(self):
        value = HtmlContentValue(Markup("<b>x</b>"))

        self.assertTrue(value.equals(value))
        self.assertTrue(value.equals("<b>x</b>"))
        self.assertFalse(value.equals(None))

    def test_write_to_uses_default_encoder(self):
        buffer = io.StringIO()

        HtmlContentValue(Markup("<i>a &amp; b</i>")).write_to(buffer)

        self.assertEqual(buffer.getvalue(), "<i>a &amp; b</i>")

    def test_write_to_uses_given_encoder(self):
        fragment = Markup("<i>x</i>")
        encoder = mock.Mock(return_value=Markup("<i>encoded</i>"))
        buffer = io.StringIO()

        HtmlContentValue(fragment).write_to(buffer, encoder, "fr_FR")

        encoder.assert_called_once_with(fragment)
        self.assertEqual(buffer.getvalue(), "<i>encoded</i>")


class ValueConverterTests(SimpleTestCase):
    def test_converter_boxes_html_content(self):
        fragment = Markup("<b>x</b>")

        value = html_content_converter(fragment)

        self.assertIsInstance(value, HtmlContentValue)
        self.assertIs(value.to_raw(), fragment)

    def test_converter_declines_other_values(self):
        self.assertIsNone(html_content_converter("<b>x</b>"))
        self.assertIsNone(html_content_converter(None))
        self.assertIsNone(html_content_converter(HtmlContentValue(Markup("x"))))

    def test_unregistered_environment_passes_values_through(self):
        fragment = Markup("<b>x</b>")

        self.assertIs(to_template_value(fragment, Environment()), fragment)

    def test_registered_environment_boxes_html_content(self):
        env = Environment()
        register_html_content_converter(env)
        fragment = Markup("<b>x</b>")

        value = to_template_value(fragment, env)

        self.assertIsInstance(value, HtmlContentValue)
        self.assertIs(value.to_raw(), fragment)
        self.assertEqual(to_template_value("plain", env), "plain")

    def test_boxed_values_are_not_boxed_twice(self):
        env = Environment()
        register_html_content_converter(env)
        value = HtmlContentValue(Markup("x"))

        self.assertIs(to_template_value(value, env), value)

    def test_converters_run_in_registration_order(self):
        env = Environment()
        declined = mock.Mock(return_value=None)
        first = mock.Mock(return_value=HtmlContentValue(Markup("first")))
        second = mock.Mock(return_value=HtmlContentValue(Markup("second")))
        for converter in (declined, first, second):
            register_value_converter(env, converter)

        value = to_template_value(object(), env)

        self.assertEqual(value.to_text(), "first")
        declined.assert_called_once()
        second.assert_not_called()

    def test_repeated_registration_appends(self):
        env = Environment()
        register_html_content_converter(env)
        register_html_content_converter(env)

        self.assertEqual(len(env.value_converters), 2)
        self.assertEqual(
            env.from_string("{{ value }}").render(value=Markup("<b>x</b>")), "<b>x</b>"
        )

    def test_existing_finalize_still_runs(self):
        env = Environment(finalize=lambda value: "" if value is None else value)
        register_html_content_converter(env)

        self.assertEqual(env.from_string("[{{ value }}]").render(value=None), "[]")


class MarkdownFilterTests(SimpleTestCase):
    def test_none_input_is_rendered_as_empty_text(self):
        renderer = mock.Mock(spec=MarkdownRenderer)
        renderer.to_html.return_value = ""

        MarkdownFilter(renderer).invoke(None, None)

        renderer.to_html.assert_called_once_with("")

    def test_arguments_are_ignored(self):
        renderer = mock.Mock(spec=MarkdownRenderer)
        renderer.to_html.return_value = "<p>x</p>"

        result = MarkdownFilter(renderer).invoke(None, "x", 1, "two", three=3)

        self.assertEqual(result, "<p>x</p>")
        renderer.to_html.assert_called_once_with("x")

    def test_register_binds_both_names(self):
        env = Environment()
        markdown_filter = MarkdownFilter(create_renderer())

        markdown_filter.register(env)

        for name in FILTER_NAMES:
            self.assertEqual(env.filters[name], markdown_filter.invoke)

    def test_register_again_overwrites(self):
        env = Environment()
        first = MarkdownFilter(create_renderer())
        second = MarkdownFilter(create_renderer(plain_options()))

        first.register(env)
        second.register(env)

        self.assertEqual(env.filters["markdown"], second.invoke)
        self.assertEqual(env.filters["markdownify"], second.invoke)

    def test_output_is_escaped_by_autoescaping_environment(self):
        env = Environment(autoescape=True)
        MarkdownFilter(create_renderer()).register(env)

        output = env.from_string("{{ '**b**' | markdown }}").render()

        self.assertIn("&lt;strong&gt;b&lt;/strong&gt;", output)

    def test_undefined_input_renders_empty(self):
        _filter, env = create_core()

        self.assertEqual(env.from_string("{{ missing | markdown }}").render(), "")

    def test_strict_undefined_input_raises(self):
        env = add_markdown_filters(Environment(undefined=StrictUndefined))

        with self.assertRaises(UndefinedError):
            env.from_string("{{ missing | markdown }}").render()

    def test_non_string_input_is_stringified(self):
        _filter, env = create_core()
        template = env.from_string("{{ n | markdown }}")

        self.assertEqual(template.render(n=5), "<p>5</p>")
        self.assertEqual(template.render(n=0), "<p>0</p>")


class MarkdownMvcAdapterTests(SimpleTestCase):
    def test_returns_boxed_html_content(self):
        env = Environment()
        register_html_content_converter(env)
        adapter = MarkdownMvcAdapter(MarkdownFilter(create_renderer()))

        value = adapter.invoke(mock.Mock(environment=env), "**x**")

        self.assertIsInstance(value, HtmlContentValue)
        self.assertIsInstance(value.to_raw(), Markup)
        self.assertIn("<strong>x</strong>", value.to_text())

    def test_returns_markup_without_converter(self):
        adapter = MarkdownMvcAdapter(MarkdownFilter(create_renderer()))

        value = adapter.invoke(mock.Mock(environment=Environment()), "**x**")

        self.assertIsInstance(value, Markup)

    def test_delegates_to_core_filter(self):
        core = mock.Mock(spec=MarkdownFilter)
        core.invoke.return_value = "<p>core</p>"
        context = mock.Mock(environment=Environment())

        value = MarkdownMvcAdapter(core).invoke(context, "text", "arg")

        core.invoke.assert_called_once_with(context, "text", "arg")
        self.assertEqual(str(value), "<p>core</p>")

    def test_register_binds_both_names(self):
        env = Environment()
        adapter = MarkdownMvcAdapter(MarkdownFilter(create_renderer()))

        adapter.register(env)

        for name in FILTER_NAMES:
            self.assertEqual(env.filters[name], adapter.invoke)


class CreateCoreTests(SimpleTestCase):
    def test_renders_heading(self):
        _filter, env = create_core()

        output = env.from_string("{{ '# Hi' | markdown }}").render()

        self.assertIn("<h1", output)
        self.assertIn("Hi", output)

    def test_empty_input_renders_nothing(self):
        _filter, env = create_core()

        self.assertEqual(env.from_string("{{ '' | markdown }}").render(), "")

    def test_markdownify_alias(self):
        _filter, env = create_core()

        output = env.from_string("{{ '*italic*' | markdownify }}").render()

        self.assertIn("<em>italic</em>", output)

    def test_returns_plain_strings(self):
        markdown_filter, env = create_core()

        self.assertEqual(env.filters["markdown"], markdown_filter.invoke)
        self.assertIsInstance(markdown_filter.invoke(None, "**x**"), str)

    def test_custom_options(self):
        _filter, env = create_core(plain_options())

        output = env.from_string("{{ '~~s~~' | markdown }}").render()

        self.assertNotIn("<del>", output)

    def test_calls_are_independent(self):
        first_filter, first_env = create_core()
        second_filter, second_env = create_core()

        self.assertIsNot(first_filter, second_filter)
        self.assertIsNot(first_env, second_env)
        first_env.filters["markdown"] = lambda value: "replaced"

        self.assertEqual(second_env.filters["markdown"], second_filter.invoke)
        self.assertIn(
            "<strong>x</strong>",
            second_env.from_string("{{ '**x**' | markdown }}").render(),
        )


class AddMarkdownFiltersTests(SimpleTestCase):
    def setUp(self):
        self.env = Environment(autoescape=True)

    def test_returns_same_environment(self):
        self.assertIs(add_markdown_filters(self.env), self.env)

    def test_registers_filters_and_converter(self):
        add_markdown_filters(self.env)

        for name in FILTER_NAMES:
            self.assertIn(name, self.env.filters)
        self.assertIn(html_content_converter, self.env.value_converters)

    def test_renders_unescaped_html(self):
        add_markdown_filters(self.env)

        output = self.env.from_string("{{ '**bold**' | markdown }}").render()

        self.assertIn("<strong>bold</strong>", output)
        self.assertNotIn("&lt;", output)

    def test_renders_several_blocks(self):
        add_markdown_filters(self.env)

        output = self.env.from_string(
            "{{ title | markdown }}{{ content | markdownify }}"
        ).render(title="# Title", content="**Bold content**")

        self.assertIn("<h1", output)
        self.assertIn("<strong>Bold content</strong>", output)

    def test_renders_links_and_code(self):
        add_markdown_filters(self.env)
        template = self.env.from_string("{{ content | markdown }}")

        link = template.render(content="[Link](https://example.com)")
        code = template.render(content="`inline code`")

        self.assertIn('href="https://example.com"', link)
        self.assertIn("<code>inline code</code>", code)

    def test_empty_and_none_render_nothing(self):
        add_markdown_filters(self.env)

        self.assertEqual(self.env.from_string("{{ '' | markdown }}").render(), "")
        self.assertEqual(
            self.env.from_string("{{ content | markdown }}").render(content=None), ""
        )

    def test_html_content_is_not_double_escaped(self):
        add_markdown_filters(self.env)

        output = self.env.from_string("{{ value }}").render(value=Markup("<p>&lt;x&gt;</p>"))

        self.assertEqual(output, "<p>&lt;x&gt;</p>")

    def test_django_safe_strings_are_not_double_escaped(self):
        add_markdown_filters(self.env)

        output = self.env.from_string("{{ value }}").render(
            value=mark_safe("<strong>pre-encoded</strong>")
        )

        self.assertEqual(output, "<strong>pre-encoded</strong>")

    def test_plain_strings_are_still_escaped(self):
        add_markdown_filters(self.env)

        output = self.env.from_string("{{ value }}").render(value="<b>")

        self.assertEqual(output, "&lt;b&gt;")

    def test_html_content_is_truthy_and_not_iterable(self):
        add_markdown_filters(self.env)
        template = self.env.from_string(
            "{% set value = '' | markdown %}"
            "{% if value %}yes{% endif %}{% for item in value %}[{{ item }}]{% endfor %}"
        )

        self.assertEqual(template.render(), "yes")

    def test_custom_pipeline(self):
        add_markdown_filters(self.env, lambda o: setattr(o, "configure_pipeline", plain_pipeline))

        output = self.env.from_string("{{ '~~s~~' | markdown }}").render()

        self.assertNotIn("<del>", output)

    def test_emphasis_extras_pipeline(self):
        def configure(options):
            options.configure_pipeline = lambda b: b.use_emphasis_extras()

        add_markdown_filters(self.env, configure)

        output = self.env.from_string("{{ '==marked text==' | markdown }}").render()

        self.assertIn("<mark>marked text</mark>", output)

    def test_missing_pipeline_fails_on_setup(self):
        with self.assertRaises(ImproperlyConfigured):
            add_markdown_filters(
                self.env, lambda o: setattr(o, "configure_pipeline", None)
            )

    def test_can_be_called_repeatedly(self):
        result = add_markdown_filters(add_markdown_filters(self.env))

        self.assertIs(result, self.env)
        self.assertIn(
            "<strong>x</strong>",
            self.env.from_string("{{ '**x**' | markdown }}").render(),
        )


class DjangoTemplateIntegrationTests(SimpleTestCase):
    def test_jinja2_backend_renders_markdown_as_html(self):
        template = engines["jinja2"].from_string("{{ body | markdown }}")

        output = template.render({"body": "**bold**"})

        self.assertIn("<strong>bold</strong>", output)

    def test_jinja2_backend_keeps_safe_strings(self):
        template = engines["jinja2"].from_string("{{ body }}")

        output = template.render({"body": mark_safe("<p>&lt;x&gt;</p>")})

        self.assertEqual(output, "<p>&lt;x&gt;</p>")

    def test_template_library_renders_markdown(self):
        template = Template(
            "{% load markdown_filters %}{{ body|markdown }}|{{ body|markdownify }}"
        )

        output = template.render(Context({"body": "**bold**"}))

        self.assertEqual(output.count("<strong>bold</strong>"), 2)

    def test_template_library_renders_none_as_empty(self):
        template = Template("{% load markdown_filters %}{{ body|markdown }}")

        self.assertEqual(template.render(Context({"body": None})), "")

    def test_template_library_stringifies_non_string_values(self):
        template = Template("{% load markdown_filters %}{{ n|markdown }}")

        self.assertEqual(template.render(Context({"n": 5})), "<p>5</p>")
        self.assertEqual(template.render(Context({"n": 0})), "<p>0</p>")

    @override_settings(MARKDOWN_FILTERS={"CONFIGURE_PIPELINE": plain_pipeline})
    def test_template_library_reads_pipeline_from_settings(self):
        template = Template("{% load markdown_filters %}{{ body|markdown }}")

        self.assertNotIn("<del>", template.render(Context({"body": "~~s~~"})))
