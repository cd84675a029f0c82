# promptkit/exceptions.py
from typing import Optional


class PromptKitError(Exception):
    # base exception for all application-specific errors.
    pass

class ConfigError(PromptKitError):
    # errors related to configuration.
    pass

class OutputError(PromptKitError):
    # errors during output operations.
    pass

class TemplateError(PromptKitError):
    # errors raised while rendering a template; `stage` names the failing step.
    stage = "render"

    def __init__(self, message: str, template: Optional[str] = None):
        super().__init__(message)
        self.template = template

class SourceResolutionError(TemplateError):
    # a template file exists but could not be read.
    stage = "resolution"

class CompilationError(TemplateError):
    # malformed template syntax.
    stage = "compilation"

class EvaluationError(TemplateError):
    # errors while executing a compiled template.
    stage = "evaluation"

class HelperInvocationError(EvaluationError):
    # a helper raised while the template was being evaluated.
    def __init__(self, helper_name: str, original: BaseException):
        super().__init__(f"helper '{helper_name}' failed: {original}")
        self.helper_name = helper_name
        self.original = original

class ExtractionError(TemplateError):
    # the rendered output carried a header block that could not be parsed.
    stage = "extraction"
