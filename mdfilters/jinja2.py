"""
Environment factory for Django's Jinja2 template backend.

    TEMPLATES = [
        {
            "BACKEND": "django.template.backends.jinja2.Jinja2",
            "DIRS": [...],
            "OPTIONS": {"environment": "mdfilters.jinja2.environment"},
        },
    ]
"""

from jinja2 import Environment

from .pipeline import MarkdownFilterOptions
from .registration import add_markdown_filters


def _configure_from_settings(options: MarkdownFilterOptions) -> None:
    options.configure_pipeline = MarkdownFilterOptions.from_settings().configure_pipeline


def environment(**options) -> Environment:
    env = Environment(**options)
    return add_markdown_filters(env, _configure_from_settings)
