"""promptkit: render Handlebars prompt templates into a body, front matter metadata and named sections."""

__version__ = "0.1.0"

from promptkit.core.templating import (
    Element,
    HelperDescriptor,
    RenderResult,
    Section,
    TemplateRenderer,
)

__all__ = [
    "__version__",
    "Element",
    "HelperDescriptor",
    "RenderResult",
    "Section",
    "TemplateRenderer",
]
