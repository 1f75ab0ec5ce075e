from django import template
from django.utils.safestring import mark_safe
from django.utils.safestring import SafeString

from ..pipeline import MarkdownFilterOptions
from ..renderer import create_renderer

register = template.Library()


@register.filter(name="markdownify")
@register.filter(name="markdown")
def render_markdown(value: object) -> SafeString:
    """
    Renders markdown text to HTML with the pipeline from the MARKDOWN_FILTERS
    setting. Returns safe HTML that can be displayed in templates.
    """
    renderer = create_renderer(MarkdownFilterOptions.from_settings())
    return mark_safe(renderer.to_html("" if value is None else str(value)))
