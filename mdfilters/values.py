"""
Template values for HTML that has already been encoded.

Any object with an ``__html__`` method (``markupsafe.Markup``, Django's
``SafeString``, ...) is treated as HTML content. Once boxed in
:class:`HtmlContentValue` it keeps that status through the template engine:
it is written as-is and never escaped a second time.
"""

import io
import logging
from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Callable
from typing import Iterator
from typing import Optional
from typing import Sequence
from typing import TextIO

from jinja2 import Environment
from jinja2 import pass_environment
from jinja2 import Undefined
from markupsafe import escape
from markupsafe import Markup

logger = logging.getLogger(__name__)

HtmlEncoder = Callable[[Any], Markup]
ValueConverter = Callable[[Any], Optional["TemplateValue"]]


class TemplateValue(ABC):
    """
    A value with its own conversion rules inside a template.

    The ``to_*`` methods define the semantics; the dunder methods expose them
    to Jinja2, which works on plain Python objects.
    """

    @abstractmethod
    def to_boolean(self) -> bool: ...

    @abstractmethod
    def to_number(self) -> int: ...

    @abstractmethod
    def to_text(self) -> str: ...

    @abstractmethod
    def to_raw(self) -> Any: ...

    @abstractmethod
    def enumerate(self) -> Sequence[Any]: ...

    @abstractmethod
    def write_to(
        self, writer: TextIO, encoder: Optional[HtmlEncoder] = None, locale: Any = None
    ) -> None: ...

    def equals(self, other: Any) -> bool:
        if self is other:
            return True
        if other is None:
            return False
        if isinstance(other, TemplateValue):
            return self.to_text() == other.to_text()
        return self.to_text() == str(other)

    def __bool__(self) -> bool:
        return self.to_boolean()

    def __str__(self) -> str:
        return self.to_text()

    def __html__(self) -> str:
        return self.to_text()

    def __int__(self) -> int:
        return int(self.to_number())

    def __float__(self) -> float:
        return float(self.to_number())

    def __iter__(self) -> Iterator[Any]:
        return iter(self.enumerate())

    def __len__(self) -> int:
        return len(self.to_text())

    def __eq__(self, other: object) -> bool:
        return self.equals(other)

    def __hash__(self) -> int:
        return hash(self.to_text())


class HtmlContentValue(TemplateValue):
    """
    Wraps a piece of HTML content that must not be escaped again.

    It is always truthy, even when the markup is empty: the value says that
    markup is present, not that there is text in it.
    """

    def __init__(self, value: Any = None) -> None:
        self._value = value if value is not None else Markup("")

    def to_boolean(self) -> bool:
        return True

    def to_number(self) -> int:
        return 0

    def to_text(self) -> str:
        buffer = io.StringIO()
        self.write_to(buffer)
        return buffer.getvalue()

    def to_raw(self) -> Any:
        return self._value

    def enumerate(self) -> Sequence[Any]:
        return ()

    def write_to(
        self, writer: TextIO, encoder: Optional[HtmlEncoder] = None, locale: Any = None
    ) -> None:
        encode = encoder or escape
        writer.write(str(encode(self._value)))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._value!r})"


def is_html_content(obj: Any) -> bool:
    return callable(getattr(obj, "__html__", None))


def html_content_converter(obj: Any) -> Optional[HtmlContentValue]:
    if isinstance(obj, TemplateValue) or not is_html_content(obj):
        return None
    return HtmlContentValue(obj)


def to_template_value(obj: Any, environment: Environment) -> Any:
    """
    Box ``obj`` with the first value converter registered on ``environment``.

    Objects no converter claims are returned unchanged.
    """
    if isinstance(obj, (TemplateValue, Undefined)):
        return obj
    for converter in getattr(environment, "value_converters", ()):
        value = converter(obj)
        if value is not None:
            return value
    return obj


@pass_environment
def _finalize(environment: Environment, value: Any) -> Any:
    value = to_template_value(value, environment)
    if environment.chained_finalize is not None:
        value = environment.chained_finalize(value)
    return value


def register_value_converter(environment: Environment, converter: ValueConverter) -> None:
    """
    Append ``converter`` to the environment's converter chain.

    The first registration also routes ``{{ }}`` output through the chain by
    taking over ``environment.finalize``. A finalize that was already set is
    still called, with the boxed value as its only argument.
    Jinja2 reads ``finalize`` when it compiles a template, so register
    converters before any templates are loaded.
    """
    environment.extend(value_converters=[], chained_finalize=None)
    if environment.finalize is not _finalize:
        environment.chained_finalize = environment.finalize
        environment.finalize = _finalize
    environment.value_converters.append(converter)
    logger.debug(
        "Registered value converter %r (%d total)",
        converter,
        len(environment.value_converters),
    )


def register_html_content_converter(environment: Environment) -> None:
    register_value_converter(environment, html_content_converter)
