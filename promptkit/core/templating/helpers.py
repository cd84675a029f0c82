# promptkit/core/templating/helpers.py
"""
Built-in Handlebars helpers for promptkit templates, and the adapter that
exposes helpers to pybars.

Helpers are written as ordinary functions: positional and hash arguments are
bound to their parameters by name (see arguments.py), so a helper never sees
the pybars `this` scope. Helpers that need ambient data (loop index, render
options, the clock) declare an `options` parameter.
"""
from typing import Any, Callable, Dict, Mapping, Optional
import structlog
from pybars import Scope

from promptkit.config.settings import utc_now
from promptkit.exceptions import HelperInvocationError
from .arguments import (
    HelperContext,
    HelperDescriptor,
    InvocationArguments,
    describe_helper,
    resolve_arguments,
)
from .datetime_format import DateTimeFormatter, Style
from .markup import Element, safe

log = structlog.get_logger(__name__)


def _formatter(options: Optional[HelperContext]) -> DateTimeFormatter:
    render_options = options.options if options else None
    formatter = getattr(render_options, "formatter", None)
    if formatter is None:
        formatter = DateTimeFormatter(getattr(render_options, "timezone", None))
    return formatter


def _clock(options: Optional[HelperContext]) -> Callable[[], Any]:
    render_options = options.options if options else None
    return getattr(render_options, "clock", None) or utc_now


def _date_helper(style: Style) -> Callable[..., str]:
    def date_helper(value=None, options=None):
        return _formatter(options).format(value, style, clock=_clock(options))
    return date_helper


def _time_helper(style: Style) -> Callable[..., str]:
    def time_helper(value=None, meridiem=None, options=None):
        return _formatter(options).format(value, style, meridiem=meridiem, clock=_clock(options))
    return time_helper


def _zone_helper(format_style: Style) -> Callable[..., str]:
    # the helper's `style` is the zone name style: short, long, shortGeneric, longGeneric.
    def zone_helper(value=None, meridiem=None, style="short", options=None):
        return _formatter(options).format(
            value, format_style, meridiem=meridiem, time_zone_name=style, clock=_clock(options)
        )
    return zone_helper


def relative_time_helper(value=None, min=None, max=None, options=None) -> str:
    """Relative description of `value` ("6 months ago"), or a long date outside min/max."""
    return _formatter(options).relative(value, _clock(options), earliest=min, latest=max)


def number_helper(options=None):
    """1-based index of the current {{#each}} iteration, or '' outside a loop."""
    index = options.data.get("index") if options else None
    if index is None:
        return ""
    return index + 1


def link_helper(url, text):
    return safe(f"[{text}]({url})")


def button_helper(url, text):
    return Element("a", {"href": url, "class": "button", "target": "_blank"}, content=text)


def list_helper(items):
    return "\n".join(f"- {item}" for item in items or [])


BUILTIN_HELPERS: Dict[str, Callable[..., Any]] = {
    # date
    "date": _date_helper(Style.DATE),
    "dateLong": _date_helper(Style.DATE_LONG),
    "dateMedium": _date_helper(Style.DATE_MEDIUM),
    "dateShort": _date_helper(Style.DATE_SHORT),
    # time
    "time": _time_helper(Style.TIME_MEDIUM),
    "timeZone": _zone_helper(Style.TIME_ZONE),
    "timeLong": _time_helper(Style.TIME_LONG),
    "timeMedium": _time_helper(Style.TIME_MEDIUM),
    "timeShort": _time_helper(Style.TIME_SHORT),
    # datetime
    "dateTime": _time_helper(Style.DATETIME_LONG),
    "dateTimeZone": _zone_helper(Style.DATETIME_ZONE),
    "dateTimeLong": _time_helper(Style.DATETIME_LONG),
    "dateTimeMedium": _time_helper(Style.DATETIME_MEDIUM),
    "dateTimeShort": _time_helper(Style.DATETIME_SHORT),
    # relative time
    "relTime": relative_time_helper,
    "number": number_helper,
    "link": link_helper,
    "button": button_helper,
    "list": list_helper,
}


def scope_data(this: Any) -> Dict[str, Any]:
    # ambient per-call data pybars keeps on the scope a helper is invoked in.
    if not isinstance(this, Scope):
        return {"context": this}
    return {
        "index": this.index,
        "key": this.key,
        "first": this.first,
        "last": this.last,
        "root": this.root,
        "context": this.context,
    }


def adapt_helper(name: str, helper: Any, options: Any) -> Callable[..., Any]:
    """Wraps one helper in pybars' calling convention: (this, *positional, **hash)."""
    descriptor: HelperDescriptor = describe_helper(helper)

    def adapted(this, *args, **kwargs):
        invocation = InvocationArguments(positional=args, named=kwargs, data=scope_data(this))
        call = resolve_arguments(descriptor, invocation, options)
        try:
            return call.invoke(descriptor.handler)
        except HelperInvocationError:
            raise
        except Exception as e:
            log.warning("helper_invocation_failed", helper=name, error=str(e))
            raise HelperInvocationError(name, e) from e

    adapted.__name__ = f"{name}_adapted"
    return adapted


def adapt_helpers(helpers: Mapping[str, Any], options: Any) -> Dict[str, Callable[..., Any]]:
    return {name: adapt_helper(name, helper, options) for name, helper in helpers.items()}
