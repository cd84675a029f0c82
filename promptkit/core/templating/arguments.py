# promptkit/core/templating/arguments.py
"""
Argument resolution for template helpers.

A helper is either a plain function, whose parameter names are read from its
signature, or an explicit HelperDescriptor listing the names in order. pybars
calls helpers as `helper(this, *positional, **hash)`; the resolver merges the
positional values and the hash into the ordered argument list the handler was
declared with, normalizes `url`/`href` parameters and places the ambient
HelperContext in the handler's `options` parameter when it has one.
"""
import inspect
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
import structlog

from promptkit.exceptions import ConfigError

log = structlog.get_logger(__name__)

CONTEXT_PARAM_NAME = "options"
URL_PARAM_NAMES = ("url", "href")
URL_TOKEN_REG = re.compile(r":([A-Za-z_]\w*)")

_POSITIONAL_KINDS = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
_NO_DEFAULT = inspect.Parameter.empty


def _signature(handler: Callable[..., Any]) -> Optional[inspect.Signature]:
    try:
        return inspect.signature(handler)
    except (TypeError, ValueError):
        # some builtins and C callables expose no signature.
        return None


@dataclass
class HelperDescriptor:
    """
    A helper handler plus the ordered names its positional arguments bind to.

    The handler's own signature is still inspected for the pieces the names
    can't describe: positional defaults, `*args`, `**kwargs` and where the
    `options` context parameter sits.
    """
    params: Sequence[str]
    handler: Callable[..., Any]
    defaults: Tuple[Any, ...] = field(init=False, default=())
    options_index: Optional[int] = field(init=False, default=None)
    accepts_options: bool = field(init=False, default=False)
    accepts_varargs: bool = field(init=False, default=False)
    accepts_kwargs: bool = field(init=False, default=False)

    def __post_init__(self):
        self.params = tuple(self.params)
        if len(set(self.params)) != len(self.params):
            raise ConfigError(f"duplicate parameter names in helper descriptor: {self.params}")
        if not callable(self.handler):
            raise ConfigError(f"helper handler is not callable: {self.handler!r}")

        signature = _signature(self.handler)
        if signature is None:
            # nothing to bind by name; positional values are passed through as-is.
            self.accepts_varargs = True
            return
        defaults: List[Any] = []
        position = 0
        for param in signature.parameters.values():
            if param.kind is inspect.Parameter.VAR_POSITIONAL:
                self.accepts_varargs = True
            elif param.kind is inspect.Parameter.VAR_KEYWORD:
                self.accepts_kwargs = True
            elif param.name == CONTEXT_PARAM_NAME:
                self.accepts_options = True
                if param.kind in _POSITIONAL_KINDS:
                    self.options_index = position
            elif param.kind in _POSITIONAL_KINDS:
                defaults.append(param.default)
                position += 1
        self.defaults = tuple(defaults)

    @classmethod
    def from_callable(cls, handler: Callable[..., Any]) -> "HelperDescriptor":
        # parameter names in declaration order, minus `options`, *args and **kwargs.
        signature = _signature(handler)
        names: List[str] = []
        if signature is not None:
            names = [
                p.name for p in signature.parameters.values()
                if p.kind in _POSITIONAL_KINDS and p.name != CONTEXT_PARAM_NAME
            ]
        else:
            log.debug("helper_signature_unavailable", handler=repr(handler))
        return cls(params=names, handler=handler)

    def default_for(self, position: int) -> Any:
        if position < len(self.defaults) and self.defaults[position] is not _NO_DEFAULT:
            return self.defaults[position]
        return None


def describe_helper(helper: Any) -> HelperDescriptor:
    """Accepts a descriptor, a `{"params": [...], "handler": fn}` mapping or a plain callable."""
    if isinstance(helper, HelperDescriptor):
        return helper
    if isinstance(helper, Mapping):
        try:
            return HelperDescriptor(params=helper["params"], handler=helper["handler"])
        except KeyError as e:
            raise ConfigError(f"helper mapping is missing {e}; expected 'params' and 'handler'") from e
    if callable(helper):
        return HelperDescriptor.from_callable(helper)
    raise ConfigError(f"cannot use {type(helper).__name__} as a template helper")


@dataclass
class InvocationArguments:
    # the raw call-site data of one helper invocation.
    positional: Tuple[Any, ...] = ()
    named: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class HelperContext:
    # passed to helpers that declare an `options` parameter.
    options: Any
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ResolvedCall:
    args: List[Any]
    kwargs: Dict[str, Any]
    bindings: Dict[str, Any]

    def invoke(self, handler: Callable[..., Any]) -> Any:
        return handler(*self.args, **self.kwargs)


def normalize_url(url: str, working: Dict[str, Any], base_url: Optional[str] = None) -> str:
    """
    Prefixes root-relative urls with `base_url` and fills `:name` tokens from
    `working`. Substituted names are removed from `working` so they are not
    passed on as extra attributes; unknown names are left as literal text.
    """
    if base_url and url.startswith("/"):
        url = base_url + url

    def substitute(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in working:
            return match.group(0)
        return str(working.pop(key))

    return URL_TOKEN_REG.sub(substitute, url)


def normalize_param(name: str, value: Any, working: Dict[str, Any], options: Any) -> Any:
    if name in URL_PARAM_NAMES and isinstance(value, str):
        value = normalize_url(value, working, getattr(options, "base_url", None))
    return value


def resolve_arguments(
    descriptor: HelperDescriptor,
    invocation: InvocationArguments,
    options: Any = None,
) -> ResolvedCall:
    """
    Builds the handler call for one invocation.

    Hash entries are authoritative: positional values fill, in order, only the
    declared names the hash did not already provide. So for names `(a, b)`,
    `helper 1 a=9` binds a=9, b=1.
    """
    working: Dict[str, Any] = dict(invocation.named)
    unfilled = [name for name in descriptor.params if name not in working]
    for name, value in zip(unfilled, invocation.positional):
        working[name] = value
    extra_positional = list(invocation.positional[len(unfilled):])

    args: List[Any] = []
    bindings: Dict[str, Any] = {}
    for position, name in enumerate(descriptor.params):
        if name in working:
            value = normalize_param(name, working[name], working, options)
        else:
            value = descriptor.default_for(position)
        bindings[name] = value
        args.append(value)

    if extra_positional:
        if descriptor.accepts_varargs:
            args.extend(extra_positional)
        else:
            log.debug("unbound_positional_arguments_dropped", count=len(extra_positional))

    kwargs: Dict[str, Any] = {}
    if descriptor.accepts_kwargs:
        kwargs = {k: v for k, v in working.items() if k not in bindings}

    if descriptor.accepts_options:
        context = HelperContext(options=options, data=dict(invocation.data))
        if descriptor.options_index is not None and descriptor.options_index < len(args):
            args.insert(descriptor.options_index, context)
        else:
            kwargs[CONTEXT_PARAM_NAME] = context

    return ResolvedCall(args=args, kwargs=kwargs, bindings=bindings)
