import logging
from typing import Any

from jinja2 import Environment
from jinja2 import pass_context
from jinja2.runtime import Context
from markupsafe import Markup

from .renderer import MarkdownRenderer
from .values import to_template_value

logger = logging.getLogger(__name__)

# "markdownify" is the name Jekyll templates use for the same filter.
FILTER_NAMES = ("markdown", "markdownify")


def _register(environment: Environment, func: Any) -> None:
    for name in FILTER_NAMES:
        environment.filters[name] = func
    logger.debug("Registered %r as filters %s", func, ", ".join(FILTER_NAMES))


class MarkdownFilter:
    """
    Template filter that renders its input from Markdown to HTML.

    The result is a plain string, so an autoescaping environment will escape
    it like any other text. Use :class:`MarkdownMvcAdapter` where the HTML
    should reach the page as markup.
    """

    def __init__(self, renderer: MarkdownRenderer) -> None:
        self.renderer = renderer

    @pass_context
    def invoke(self, context: Context, value: Any, *args: Any, **kwargs: Any) -> str:
        # Undefined stringifies per the environment's policy; StrictUndefined raises.
        text = "" if value is None else str(value)
        return self.renderer.to_html(text)

    def register(self, environment: Environment) -> None:
        _register(environment, self.invoke)


class MarkdownMvcAdapter:
    """
    Wraps :class:`MarkdownFilter` so its output is marked as already-encoded
    HTML, which keeps an autoescaping view layer from encoding it twice.
    """

    def __init__(self, core: MarkdownFilter) -> None:
        self.core = core

    @pass_context
    def invoke(self, context: Context, value: Any, *args: Any, **kwargs: Any) -> Any:
        html = self.core.invoke(context, value, *args, **kwargs)
        return to_template_value(Markup(html), context.environment)

    def register(self, environment: Environment) -> None:
        _register(environment, self.invoke)
