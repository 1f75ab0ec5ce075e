from abc import ABC
from abc import abstractmethod
from typing import Optional

import markdown as markdown_module

from .pipeline import MarkdownFilterOptions
from .pipeline import MarkdownPipeline


class MarkdownRenderer(ABC):
    @abstractmethod
    def to_html(self, markdown: Optional[str]) -> str:
        """
        Convert Markdown text to HTML. ``None`` is rendered as empty text.
        """


class PythonMarkdownRenderer(MarkdownRenderer):
    """
    Renders Markdown with python-markdown using a fixed pipeline.

    python-markdown converters keep per-document state, so a new one is made
    for each call and the renderer itself can be shared between threads.
    """

    def __init__(self, pipeline: MarkdownPipeline) -> None:
        self.pipeline = pipeline

    def to_html(self, markdown: Optional[str]) -> str:
        return markdown_module.markdown(
            "" if markdown is None else markdown,
            extensions=list(self.pipeline.extensions),
            extension_configs={
                name: dict(config)
                for name, config in self.pipeline.extension_configs.items()
            },
            output_format=self.pipeline.output_format,
        )


def create_renderer(options: Optional[MarkdownFilterOptions] = None) -> PythonMarkdownRenderer:
    options = options or MarkdownFilterOptions()
    return PythonMarkdownRenderer(options.build_pipeline())
