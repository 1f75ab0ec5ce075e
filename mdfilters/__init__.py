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
from .values import HtmlContentValue
from .values import register_html_content_converter
from .values import TemplateValue
from .values import to_template_value

__all__ = [
    "FILTER_NAMES",
    "HtmlContentValue",
    "MarkdownFilter",
    "MarkdownFilterOptions",
    "MarkdownMvcAdapter",
    "MarkdownPipeline",
    "MarkdownPipelineBuilder",
    "MarkdownRenderer",
    "PythonMarkdownRenderer",
    "TemplateValue",
    "add_markdown_filters",
    "create_core",
    "create_renderer",
    "register_html_content_converter",
    "to_template_value",
]
