# promptkit/core/templating/markup.py
"""
Turns helper return values into template output.

Helpers may return an Element (or the `[tag, {attrs..., "text": content}]`
pair shape) to request inline markup. Strings returned by helpers are emitted
verbatim; both cases are handed to pybars as `strlist` so they are not
escaped a second time.
"""
import html
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Dict, Mapping, Union

from pybars import strlist

TEXT_KEY = "text"
# numeric entity for `"`: the post-render unescape pass only reverts the named
# and hex forms, so attribute quoting survives it.
ATTRIBUTE_QUOTE_ENTITY = "&#34;"

Content = Union[str, "Element", None]


@dataclass
class Element:
    tag: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    content: Content = None

    @classmethod
    def from_tuple(cls, value: Any) -> "Element":
        # `text` is lifted out of the attributes and becomes the content.
        tag, props = value
        attributes = {
            k: cls.from_tuple(v) if is_markup_tuple(v) else v
            for k, v in props.items() if k != TEXT_KEY
        }
        content = props.get(TEXT_KEY)
        if is_markup_tuple(content):
            content = cls.from_tuple(content)
        return cls(tag=tag, attributes=attributes, content=content)

    def render(self) -> str:
        parts = [self.tag]
        for key, value in self.attributes.items():
            if not value:
                continue
            if is_markup_tuple(value):
                value = Element.from_tuple(value)
            if isinstance(value, Element):
                value = value.render()
            parts.append(f'{key}="{escape_attribute(value)}"')
        opening = " ".join(parts)

        content = self.content
        if is_markup_tuple(content):
            content = Element.from_tuple(content)
        if isinstance(content, Element):
            inner = content.render()
        elif content:
            inner = html.escape(str(content), quote=False)
        else:
            return f"<{opening} />"
        return f"<{opening}>{inner}</{self.tag}>"

    def __str__(self) -> str:
        return self.render()


def escape_attribute(value: Any) -> str:
    return html.escape(str(value), quote=False).replace('"', ATTRIBUTE_QUOTE_ENTITY)


def is_markup_tuple(value: Any) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) == 2
        and isinstance(value[0], str)
        and isinstance(value[1], Mapping)
    )


def safe(text: str) -> strlist:
    """Marks text as already escaped for pybars."""
    return strlist([text])


def to_output(value: Any) -> Any:
    if isinstance(value, strlist):
        return value
    if isinstance(value, Element):
        return safe(value.render())
    if is_markup_tuple(value):
        return safe(Element.from_tuple(value).render())
    if isinstance(value, str):
        return safe(value)
    return value


def emitting(helper: Callable[..., Any]) -> Callable[..., Any]:
    """Wraps an adapted helper so its return value goes through to_output."""
    @wraps(helper)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return to_output(helper(*args, **kwargs))
    return wrapper
