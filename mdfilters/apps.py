from django.apps import AppConfig


class MdFiltersConfig(AppConfig):
    name = "mdfilters"
    verbose_name = "Markdown filters"
