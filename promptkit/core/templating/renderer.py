# promptkit/core/templating/renderer.py
"""
Contains the TemplateRenderer class: merges render options, loads and
compiles templates through its cache, evaluates them with the adapted
helpers and extracts front matter and sections from the output.
"""
from dataclasses import replace
from typing import Any, Callable, Mapping, Optional
import pybars  # type: ignore
import structlog

from promptkit.config.settings import RenderOptions
from promptkit.exceptions import EvaluationError, HelperInvocationError, TemplateError
from promptkit.util import unescape_html

from .arguments import describe_helper
from .cache import TemplateCache, describe_identifier
from .datetime_format import DateTimeFormatter
from .extraction import FrontMatter, RenderResult, extract, split_front_matter
from .helpers import BUILTIN_HELPERS, adapt_helpers
from .markup import emitting
from .source import resolve_template_source

log = structlog.get_logger(__name__)


class TemplateRenderer:
    """
    Renders Handlebars templates into a RenderResult.

    Instance options are the defaults for every call; `render` accepts the
    same option names as keyword overrides. Built-in helpers are always
    available and can be replaced by name.
    """
    def __init__(
        self,
        options: Optional[RenderOptions] = None,
        *,
        source_resolver: Callable[..., str] = resolve_template_source,
        compiler_factory: Callable[[], Any] = pybars.Compiler,
        header_parser: Callable[[str], FrontMatter] = split_front_matter,
        **defaults: Any,
    ):
        options = (options or RenderOptions()).merged(defaults)
        helpers = {**BUILTIN_HELPERS, **options.helpers}
        # configured helpers are described once for the life of the renderer.
        self.options = replace(options, helpers={name: describe_helper(h) for name, h in helpers.items()})
        self.header_parser = header_parser
        self.cache = TemplateCache(source_resolver=source_resolver, compiler_factory=compiler_factory)

    def resolve_options(self, **overrides: Any) -> RenderOptions:
        options = self.options.merged(overrides)
        if options.formatter is None:
            options = replace(options, formatter=DateTimeFormatter(options.timezone))
        return options

    def render(
        self,
        template: Optional[str] = None,
        *,
        body: Optional[str] = None,
        params: Optional[Mapping[str, Any]] = None,
        helpers: Optional[Mapping[str, Any]] = None,
        **overrides: Any,
    ) -> RenderResult:
        """
        Renders `template` (a template name under the configured directory, or
        inline source). `body` is accepted as an alias; with neither, the
        template is empty.
        """
        options = self.resolve_options(params=params, helpers=helpers, **overrides)
        identifier = template if template is not None else (body or "")
        label = describe_identifier(identifier)

        try:
            compiled = self.cache.get(identifier, options.directory)
        except TemplateError as e:
            log.error("template_load_failed", template=label, stage=e.stage, error=str(e))
            raise

        helper_functions = {
            name: emitting(helper) for name, helper in adapt_helpers(options.helpers, options).items()
        }
        log.debug("rendering_template", template=label, param_keys=list(options.params))
        try:
            raw_output = compiled(options.params, helper_functions)
        except HelperInvocationError as e:
            log.error("template_helper_failed", template=label, helper=e.helper_name, error=str(e.original))
            raise
        except Exception as e:
            log.error("template_rendering_error", template=label, error=str(e), exc_info=True)
            raise EvaluationError(f"Render failed for '{label}': {e}", template=identifier) from e

        if options.unescape:
            raw_output = unescape_html(raw_output)

        try:
            result = extract(raw_output, self.header_parser)
        except TemplateError as e:
            log.error("template_output_extraction_failed", template=label, error=str(e))
            raise
        log.info("template_rendered", template=label, meta_keys=list(result.meta), sections=len(result.sections))
        return result
