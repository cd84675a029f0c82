# promptkit/core/templating/__init__.py
"""
Templating module for promptkit.

Provides the TemplateRenderer facade plus the types helpers and callers work
with: HelperDescriptor for explicit helper registration, Element for markup
results and RenderResult/Section for extracted output.
"""
from .arguments import HelperDescriptor
from .extraction import FrontMatter, RenderResult, Section
from .markup import Element
from .renderer import TemplateRenderer

__all__ = [
    "Element",
    "FrontMatter",
    "HelperDescriptor",
    "RenderResult",
    "Section",
    "TemplateRenderer",
]
