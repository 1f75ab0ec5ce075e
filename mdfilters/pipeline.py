"""
Configuration of the python-markdown extension pipeline used by the filters.
"""

import logging
from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string
from markdown.extensions import Extension

logger = logging.getLogger(__name__)

ExtensionRef = Union[str, Extension]


@dataclass(frozen=True)
class MarkdownPipeline:
    """An immutable set of extensions handed to python-markdown on every render."""

    extensions: Tuple[ExtensionRef, ...] = ()
    extension_configs: Mapping[str, Mapping[str, Any]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    output_format: str = "html"


class MarkdownPipelineBuilder:
    """
    Collects python-markdown extensions before freezing them into a pipeline.

    Every ``use_*`` method returns the builder so calls can be chained.
    """

    def __init__(self) -> None:
        self.extensions: List[ExtensionRef] = []
        self.extension_configs: Dict[str, Dict[str, Any]] = {}
        self.output_format = "html"

    def use(self, extension: ExtensionRef, **config: Any) -> "MarkdownPipelineBuilder":
        if extension not in self.extensions:
            self.extensions.append(extension)
        if config:
            if not isinstance(extension, str):
                raise TypeError(
                    "Configure extension instances through their constructor."
                )
            self.extension_configs[extension] = dict(config)
        return self

    def use_tables(self) -> "MarkdownPipelineBuilder":
        return self.use("tables")

    def use_task_lists(self) -> "MarkdownPipelineBuilder":
        return self.use("pymdownx.tasklist")

    def use_strikethrough(self) -> "MarkdownPipelineBuilder":
        # ~~text~~ becomes <del>, ~text~ becomes <sub>.
        return self.use("pymdownx.tilde")

    def use_emphasis_extras(self) -> "MarkdownPipelineBuilder":
        return self.use_strikethrough().use("pymdownx.caret").use("pymdownx.mark")

    def use_auto_identifiers(self) -> "MarkdownPipelineBuilder":
        return self.use("toc")

    def use_footnotes(self) -> "MarkdownPipelineBuilder":
        return self.use("footnotes")

    def use_definition_lists(self) -> "MarkdownPipelineBuilder":
        return self.use("def_list")

    def use_abbreviations(self) -> "MarkdownPipelineBuilder":
        return self.use("abbr")

    def use_fenced_code(self) -> "MarkdownPipelineBuilder":
        return self.use("fenced_code")

    def use_generic_attributes(self) -> "MarkdownPipelineBuilder":
        return self.use("attr_list")

    def use_auto_links(self) -> "MarkdownPipelineBuilder":
        return self.use("pymdownx.magiclink")

    def use_advanced_extensions(self) -> "MarkdownPipelineBuilder":
        return (
            self.use_abbreviations()
            .use_auto_identifiers()
            .use_definition_lists()
            .use_emphasis_extras()
            .use_footnotes()
            .use_tables()
            .use_task_lists()
            .use_fenced_code()
            .use_generic_attributes()
            .use_auto_links()
        )

    def build(self) -> MarkdownPipeline:
        return MarkdownPipeline(
            extensions=tuple(self.extensions),
            extension_configs=MappingProxyType(
                {name: dict(config) for name, config in self.extension_configs.items()}
            ),
            output_format=self.output_format,
        )


PipelineConfigurator = Callable[[MarkdownPipelineBuilder], MarkdownPipelineBuilder]


def _use_advanced_extensions(builder: MarkdownPipelineBuilder) -> MarkdownPipelineBuilder:
    return builder.use_advanced_extensions()


class MarkdownFilterOptions:
    """
    Options for the markdown filters.

    ``configure_pipeline`` receives a fresh builder and returns the builder to
    build. It replaces the default wholesale, so ``lambda b: b`` gives plain
    Markdown with no extensions at all.
    """

    def __init__(
        self, configure_pipeline: Optional[PipelineConfigurator] = _use_advanced_extensions
    ) -> None:
        self.configure_pipeline = configure_pipeline

    @classmethod
    def from_settings(cls) -> "MarkdownFilterOptions":
        """
        Build options from the ``MARKDOWN_FILTERS`` Django setting.

        ``CONFIGURE_PIPELINE`` may be a callable or a dotted path to one.
        """
        config = getattr(settings, "MARKDOWN_FILTERS", None) or {}
        if "CONFIGURE_PIPELINE" not in config:
            return cls()

        configure = config["CONFIGURE_PIPELINE"]
        if isinstance(configure, str):
            try:
                configure = import_string(configure)
            except ImportError as exc:
                raise ImproperlyConfigured(
                    f"MARKDOWN_FILTERS['CONFIGURE_PIPELINE'] could not be imported: {exc}"
                ) from exc
        return cls(configure_pipeline=configure)

    def build_pipeline(self) -> MarkdownPipeline:
        if not callable(self.configure_pipeline):
            raise ImproperlyConfigured(
                "MarkdownFilterOptions.configure_pipeline must be a callable "
                "taking and returning a MarkdownPipelineBuilder."
            )
        pipeline = self.configure_pipeline(MarkdownPipelineBuilder()).build()
        logger.debug("Built markdown pipeline with extensions %s", pipeline.extensions)
        return pipeline
