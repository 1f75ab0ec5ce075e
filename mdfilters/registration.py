"""
One-call setup of the markdown filters on a Jinja2 environment.
"""

import logging
from typing import Callable
from typing import Optional
from typing import Tuple

from jinja2 import Environment

from .filters import MarkdownFilter
from .filters import MarkdownMvcAdapter
from .pipeline import MarkdownFilterOptions
from .renderer import create_renderer
from .values import register_html_content_converter

logger = logging.getLogger(__name__)


def create_core(
    options: Optional[MarkdownFilterOptions] = None,
) -> Tuple[MarkdownFilter, Environment]:
    """
    Create a markdown filter and a new environment with it registered.

    The filter returns plain strings; this is the setup for rendering outside
    an HTML view layer.
    """
    markdown_filter = MarkdownFilter(create_renderer(options))
    environment = Environment()
    markdown_filter.register(environment)
    return markdown_filter, environment


def add_markdown_filters(
    environment: Environment,
    configure: Optional[Callable[[MarkdownFilterOptions], None]] = None,
) -> Environment:
    """
    Add the markdown filters to an environment used by an HTML view layer.

    Objects with an ``__html__`` method, including the filters' own output,
    are written to the page without being escaped again. ``configure`` gets
    a fresh :class:`MarkdownFilterOptions` to adjust before the pipeline is
    built. Returns ``environment`` so calls can be chained.
    """
    options = MarkdownFilterOptions()
    if configure is not None:
        configure(options)

    register_html_content_converter(environment)

    adapter = MarkdownMvcAdapter(MarkdownFilter(create_renderer(options)))
    adapter.register(environment)
    logger.debug("Added markdown filters to %r", environment)
    return environment
