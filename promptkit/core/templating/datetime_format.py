# promptkit/core/templating/datetime_format.py
"""
Date and time formatting for the built-in date helpers.

Output is English only. Values may be datetimes, dates, ISO 8601 strings or
epoch seconds; naive datetimes are taken as UTC. Everything is shown in the
formatter's zone (the system's local zone when none is configured).
"""
from datetime import date, datetime, timezone as dt_timezone
from enum import Enum
from typing import Any, Callable, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import structlog

from promptkit.exceptions import ConfigError

log = structlog.get_logger(__name__)


class Style(Enum):
    DATE = "date"
    DATE_LONG = "date_long"
    DATE_MEDIUM = "date_medium"
    DATE_SHORT = "date_short"
    TIME_LONG = "time_long"
    TIME_MEDIUM = "time_medium"
    TIME_SHORT = "time_short"
    TIME_ZONE = "time_zone"
    DATETIME_LONG = "datetime_long"
    DATETIME_MEDIUM = "datetime_medium"
    DATETIME_SHORT = "datetime_short"
    DATETIME_ZONE = "datetime_zone"


MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

MERIDIEM_STYLES = {
    None: ("am", "pm"),
    "caps": ("AM", "PM"),
    "space": (" am", " pm"),
    "period": (" a.m.", " p.m."),
    "short": ("a", "p"),
}

ZONE_NAME_STYLES = ("short", "long", "shortGeneric", "longGeneric")

# abbreviation -> (long, short generic, long generic)
ZONE_NAMES = {
    "EST": ("Eastern Standard Time", "ET", "Eastern Time"),
    "EDT": ("Eastern Daylight Time", "ET", "Eastern Time"),
    "CST": ("Central Standard Time", "CT", "Central Time"),
    "CDT": ("Central Daylight Time", "CT", "Central Time"),
    "MST": ("Mountain Standard Time", "MT", "Mountain Time"),
    "MDT": ("Mountain Daylight Time", "MT", "Mountain Time"),
    "PST": ("Pacific Standard Time", "PT", "Pacific Time"),
    "PDT": ("Pacific Daylight Time", "PT", "Pacific Time"),
    "AKST": ("Alaska Standard Time", "AKT", "Alaska Time"),
    "AKDT": ("Alaska Daylight Time", "AKT", "Alaska Time"),
    "HST": ("Hawaii-Aleutian Standard Time", "HST", "Hawaii-Aleutian Time"),
    "UTC": ("Coordinated Universal Time", "UTC", "Coordinated Universal Time"),
    "GMT": ("Greenwich Mean Time", "GMT", "Greenwich Mean Time"),
}

RELATIVE_UNITS = (
    ("year", 365 * 86400),
    ("month", 30 * 86400),
    ("week", 7 * 86400),
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


class DateTimeFormatter:
    """Formats instants in one time zone with the styles the helpers expose."""

    def __init__(self, timezone: Optional[str] = None):
        self.timezone_name = timezone
        self.zone: Optional[ZoneInfo] = None
        if timezone:
            try:
                self.zone = ZoneInfo(timezone)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ConfigError(f"unknown time zone '{timezone}'") from e

    def coerce(self, value: Any, clock: Optional[Callable[[], datetime]] = None) -> datetime:
        if value is None:
            if clock is None:
                raise ValueError("no value given and no clock to read the current time from")
            value = clock()
        if isinstance(value, str):
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            value = datetime.fromtimestamp(value, dt_timezone.utc)
        elif isinstance(value, date) and not isinstance(value, datetime):
            # calendar dates carry no instant; keep the day as given.
            midnight = datetime(value.year, value.month, value.day)
            return midnight.replace(tzinfo=self.zone) if self.zone else midnight.astimezone()
        if not isinstance(value, datetime):
            raise TypeError(f"cannot format {type(value).__name__} as a date")
        if value.tzinfo is None:
            value = value.replace(tzinfo=dt_timezone.utc)
        return value.astimezone(self.zone)

    def format(
        self,
        value: Any,
        style: Style = Style.DATE,
        meridiem: Optional[str] = None,
        time_zone_name: Optional[str] = "short",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> str:
        dt = self.coerce(value, clock)
        if style is Style.DATE:
            return dt.strftime("%Y-%m-%d")
        if style is Style.DATE_LONG:
            return _date_long(dt)
        if style is Style.DATE_MEDIUM:
            return f"{MONTHS[dt.month - 1][:3]} {dt.day}, {dt.year}"
        if style is Style.DATE_SHORT:
            return f"{dt.month}/{dt.day}/{dt.year}"
        if style is Style.TIME_LONG:
            return _time(dt, meridiem, seconds=True)
        if style is Style.TIME_MEDIUM:
            return _time(dt, meridiem)
        if style is Style.TIME_SHORT:
            return _time(dt, meridiem, compact=True)
        if style is Style.TIME_ZONE:
            return f"{_time(dt, meridiem)} {_zone_name(dt, time_zone_name)}"
        if style is Style.DATETIME_LONG:
            return f"{_date_long(dt)} at {_time(dt, meridiem)}"
        if style is Style.DATETIME_ZONE:
            return f"{_date_long(dt)} at {_time(dt, meridiem)} {_zone_name(dt, time_zone_name)}"
        if style is Style.DATETIME_MEDIUM:
            return f"{self.format(dt, Style.DATE_MEDIUM)}, {_time(dt, meridiem)}"
        if style is Style.DATETIME_SHORT:
            return f"{self.format(dt, Style.DATE_SHORT)}, {_time(dt, meridiem)}"
        raise ValueError(f"unsupported date style {style!r}")

    def relative(
        self,
        value: Any,
        clock: Callable[[], datetime],
        earliest: Any = None,
        latest: Any = None,
    ) -> str:
        """
        Describes `value` relative to now ("3 days ago", "in 2 hours"). Values
        before `earliest` or after `latest` are shown as a long date instead.
        """
        target = self.coerce(value, clock)
        if earliest is not None and target < self.coerce(earliest):
            return _date_long(target)
        if latest is not None and target > self.coerce(latest):
            return _date_long(target)

        delta = (self.coerce(None, clock) - target).total_seconds()
        distance = abs(delta)
        if distance < 1:
            return "just now"
        unit, count = _largest_unit(distance)
        label = unit if count == 1 else f"{unit}s"
        return f"{count} {label} ago" if delta > 0 else f"in {count} {label}"


def _largest_unit(seconds: float) -> Tuple[str, int]:
    for unit, size in RELATIVE_UNITS:
        if seconds >= size:
            return unit, int(seconds // size)
    return "second", int(seconds)


def _date_long(dt: datetime) -> str:
    return f"{MONTHS[dt.month - 1]} {dt.day}, {dt.year}"


def _time(dt: datetime, meridiem: Optional[str], seconds: bool = False, compact: bool = False) -> str:
    if meridiem not in MERIDIEM_STYLES:
        raise ValueError(f"unknown meridiem style '{meridiem}'")
    am, pm = MERIDIEM_STYLES[meridiem]
    suffix = am if dt.hour < 12 else pm
    hour = dt.hour % 12 or 12
    if compact and dt.minute == 0:
        return f"{hour}{suffix}"
    text = f"{hour}:{dt.minute:02d}"
    if seconds:
        text += f":{dt.second:02d}"
    return text + suffix


def _zone_name(dt: datetime, style: Optional[str]) -> str:
    abbreviation = dt.tzname() or "UTC"
    style = style or "short"
    if style not in ZONE_NAME_STYLES:
        raise ValueError(f"unknown time zone name style '{style}'")
    if style == "short":
        return abbreviation
    names = ZONE_NAMES.get(abbreviation)
    if names is None:
        log.debug("no_long_name_for_time_zone", abbreviation=abbreviation, style=style)
        return abbreviation
    return names[ZONE_NAME_STYLES.index(style) - 1]
