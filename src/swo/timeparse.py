# Time expression parsing for --min-time / --max-time

import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Callable, List, Optional, Tuple

from dateutil import tz as dateutil_tz
from dateutil.relativedelta import relativedelta

UTC_SUFFIX = " UTC"

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class TimeRange:
	"""Search window; both bounds are canonical RFC 3339 strings or None."""
	start: Optional[str] = None
	end: Optional[str] = None


class TimeParseError(ValueError):
	"""Raised when a time expression matches no layout and no phrase."""
	pass


class MinTimeParseError(TimeParseError):
	"""Raised when the --min-time value cannot be parsed."""
	pass


class MaxTimeParseError(TimeParseError):
	"""Raised when the --max-time value cannot be parsed."""
	pass


def system_clock() -> datetime:
	return datetime.now(timezone.utc)


# Zone abbreviations accepted where a layout carries a named zone
_ZONE_OFFSETS = {
	"UTC": "+0000",
	"GMT": "+0000",
	"EST": "-0500",
	"EDT": "-0400",
	"CST": "-0600",
	"CDT": "-0500",
	"MST": "-0700",
	"MDT": "-0600",
	"PST": "-0800",
	"PDT": "-0700",
	"CET": "+0100",
	"CEST": "+0200",
}
_ZONE_NAME_RE = re.compile(r"\b(" + "|".join(_ZONE_OFFSETS) + r")\b")
_FRACTION_RE = re.compile(r"(\.\d{1,6})\d*")


def _trim_fraction(text: str) -> str:
	# strptime's %f stops at microseconds
	return _FRACTION_RE.sub(lambda m: m.group(1), text)


def _strptime(fmt: str):
	def parse(text: str, anchor: datetime) -> datetime:
		return datetime.strptime(_trim_fraction(text), fmt)
	return parse


def _with_zone_name(fmt: str):
	"""Parse a layout whose zone is an abbreviation; `fmt` holds %z in its place."""
	def parse(text: str, anchor: datetime) -> datetime:
		match = _ZONE_NAME_RE.search(text)
		if match is None:
			raise ValueError(f"no known zone abbreviation in {text!r}")
		text = text[:match.start()] + _ZONE_OFFSETS[match.group(1)] + text[match.end():]
		return datetime.strptime(_trim_fraction(text), fmt)
	return parse


def _yearless(fmt: str):
	"""Stamp layouts carry no year; take it from the anchor."""
	def parse(text: str, anchor: datetime) -> datetime:
		return datetime.strptime(f"{anchor.year} {_trim_fraction(text)}", "%Y " + fmt)
	return parse


def _time_of_day(fmt: str):
	"""Time-only layouts resolve to that time on the anchor's date."""
	def parse(text: str, anchor: datetime) -> datetime:
		clock = datetime.strptime(_trim_fraction(text), fmt).time()
		return datetime.combine(anchor.date(), clock)
	return parse


# Tried in order, first match wins.
TIME_LAYOUTS: List[Tuple[str, Callable[[str, datetime], datetime]]] = [
	("layout", _strptime("%m/%d %I:%M:%S%p '%y %z")),
	("ansic", _strptime("%a %b %d %H:%M:%S %Y")),
	("unix-date", _with_zone_name("%a %b %d %H:%M:%S %z %Y")),
	("ruby-date", _strptime("%a %b %d %H:%M:%S %z %Y")),
	("rfc822", _with_zone_name("%d %b %y %H:%M %z")),
	("rfc822z", _strptime("%d %b %y %H:%M %z")),
	("rfc850", _with_zone_name("%A, %d-%b-%y %H:%M:%S %z")),
	("rfc1123", _with_zone_name("%a, %d %b %Y %H:%M:%S %z")),
	("rfc1123z", _strptime("%a, %d %b %Y %H:%M:%S %z")),
	("rfc3339", _strptime("%Y-%m-%dT%H:%M:%S%z")),
	("rfc3339-fraction", _strptime("%Y-%m-%dT%H:%M:%S.%f%z")),
	("iso8601", _strptime("%Y-%m-%dT%H:%M:%S")),
	("iso8601-fraction", _strptime("%Y-%m-%dT%H:%M:%S.%f")),
	("kitchen", _time_of_day("%I:%M%p")),
	("stamp", _yearless("%b %d %H:%M:%S")),
	("stamp-fraction", _yearless("%b %d %H:%M:%S.%f")),
	("date-time", _strptime("%Y-%m-%d %H:%M:%S")),
	("date-time-fraction", _strptime("%Y-%m-%d %H:%M:%S.%f")),
	("date-only", _strptime("%Y-%m-%d")),
	("time-only", _time_of_day("%H:%M:%S")),
	("rfc822-no-zone", _strptime("%d %b %y %H:%M")),
	("rfc1123-no-zone", _strptime("%a, %d %b %Y %H:%M:%S")),
]


def parse_layout(text: str, anchor: datetime) -> Optional[datetime]:
	"""Return the first layout match for `text`, or None.

	The result is naive when the layout carries no zone; the caller decides
	which zone it belongs to.
	"""
	for _name, parser in TIME_LAYOUTS:
		try:
			return parser(text, anchor)
		except ValueError:
			continue
	return None


# Natural-language phrases

_UNITS = {
	"second": "seconds",
	"sec": "seconds",
	"minute": "minutes",
	"min": "minutes",
	"hour": "hours",
	"hr": "hours",
	"day": "days",
	"week": "weeks",
	"month": "months",
	"year": "years",
}
_UNIT = r"(?P<unit>seconds?|secs?|minutes?|mins?|hours?|hrs?|days?|weeks?|months?|years?)"
_AMOUNT = r"(?P<amount>\d+|an?)"
_DAY = r"(?P<day>today|yesterday|tomorrow)"
_CLOCK = r"(?P<clock>noon|midnight|\d{1,2}(?::\d{2}){0,2}\s*(?:am|pm)?)"
_CLOCK_RE = re.compile(r"(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?(?::(?P<second>\d{2}))?\s*(?P<meridiem>am|pm)?")
_DAY_OFFSETS = {"today": 0, "yesterday": -1, "tomorrow": 1}


def _amount(match: re.Match) -> int:
	value = match.group("amount")
	if value in ("a", "an"):
		return 1
	return int(value)


def _shift(anchor: datetime, unit: str, amount: int) -> datetime:
	name = _UNITS.get(unit) or _UNITS[unit.rstrip("s")]
	if name in ("seconds", "minutes", "hours"):
		# exact elapsed time, independent of DST changes in the anchor zone
		moved = anchor.astimezone(timezone.utc) + timedelta(**{name: amount})
		return moved.astimezone(anchor.tzinfo)
	return anchor + relativedelta(**{name: amount})


def _parse_clock(text: str) -> Optional[time]:
	if text == "noon":
		return time(12, 0)
	if text == "midnight":
		return time(0, 0)
	match = _CLOCK_RE.fullmatch(text)
	if match is None:
		return None
	hour = int(match.group("hour"))
	minute = int(match.group("minute") or 0)
	second = int(match.group("second") or 0)
	meridiem = match.group("meridiem")
	if meridiem:
		if not 1 <= hour <= 12:
			return None
		hour = hour % 12 + (12 if meridiem == "pm" else 0)
	if hour > 23 or minute > 59 or second > 59:
		return None
	return time(hour, minute, second)


def _on_day(anchor: datetime, day: Optional[str], clock: Optional[str]) -> Optional[datetime]:
	moment = time(0, 0)
	if clock:
		moment = _parse_clock(clock)
		if moment is None:
			return None
	date = anchor.date() + timedelta(days=_DAY_OFFSETS[day or "today"])
	return datetime.combine(date, moment, tzinfo=anchor.tzinfo)


def _clock_first(match: re.Match, anchor: datetime) -> Optional[datetime]:
	clock = match.group("clock")
	# a bare number is too ambiguous to read as a time of day
	if clock.isdigit() and not match.group("at"):
		return None
	return _on_day(anchor, match.group("day"), clock)


PHRASES: List[Tuple[re.Pattern, Callable[[re.Match, datetime], Optional[datetime]]]] = [
	(re.compile(r"now"), lambda m, anchor: anchor),
	(re.compile(_AMOUNT + r"\s*" + _UNIT + r"\s+ago"), lambda m, anchor: _shift(anchor, m.group("unit"), -_amount(m))),
	(re.compile(r"in\s+" + _AMOUNT + r"\s*" + _UNIT), lambda m, anchor: _shift(anchor, m.group("unit"), _amount(m))),
	(re.compile(_AMOUNT + r"\s*" + _UNIT + r"\s+from\s+now"), lambda m, anchor: _shift(anchor, m.group("unit"), _amount(m))),
	(
		re.compile(r"(?P<direction>last|past|next)\s+" + _UNIT),
		lambda m, anchor: _shift(anchor, m.group("unit"), 1 if m.group("direction") == "next" else -1),
	),
	(re.compile(_DAY + r"(?:\s+(?:at\s+)?" + _CLOCK + r")?"), lambda m, anchor: _on_day(anchor, m.group("day"), m.group("clock"))),
	(re.compile(r"(?P<at>at\s+)?" + _CLOCK + r"(?:\s+" + _DAY + r")?"), _clock_first),
]


def parse_phrase(text: str, anchor: datetime) -> Optional[datetime]:
	"""Resolve a relative or natural-language phrase against `anchor`."""
	normalized = " ".join(text.lower().split())
	for pattern, handler in PHRASES:
		match = pattern.fullmatch(normalized)
		if match:
			result = handler(match, anchor)
			if result is not None:
				return result
	return None


def format_rfc3339(value: datetime) -> str:
	"""Format an aware datetime as canonical RFC 3339 in UTC."""
	utc = value.astimezone(timezone.utc)
	if utc.microsecond:
		return utc.strftime("%Y-%m-%dT%H:%M:%S.%f").rstrip("0") + "Z"
	return utc.strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_rfc3339(value: str) -> datetime:
	"""Parse an RFC 3339 timestamp as sent by the API (fractions up to nanoseconds)."""
	text = _trim_fraction(value.strip())
	fmt = "%Y-%m-%dT%H:%M:%S.%f%z" if "." in text else "%Y-%m-%dT%H:%M:%S%z"
	return datetime.strptime(text, fmt)


def parse_time(text: str, reference: datetime, local_zone: Optional[tzinfo] = None) -> str:
	"""Convert a user time expression to a canonical RFC 3339 UTC string.

	A trailing " UTC" selects the UTC zone; otherwise `local_zone` (the
	process-local zone when None) is used for layouts without an offset and
	for phrases such as "yesterday at noon". `reference` anchors relative
	phrases and is never re-read during the parse.
	"""
	zone = local_zone or dateutil_tz.tzlocal()
	if text.endswith(UTC_SUFFIX):
		text = text[:-len(UTC_SUFFIX)]
		zone = timezone.utc
	text = text.strip()

	if reference.tzinfo is None:
		reference = reference.replace(tzinfo=timezone.utc)
	anchor = reference.astimezone(zone)

	result = parse_layout(text, anchor)
	try:
		if result is None:
			result = parse_phrase(text, anchor)
		if result is None:
			raise TimeParseError(f"could not parse time expression {text!r}")
		if result.tzinfo is None:
			result = result.replace(tzinfo=zone)
		return format_rfc3339(result)
	except (ValueError, OverflowError) as e:
		if isinstance(e, TimeParseError):
			raise
		raise TimeParseError(f"time expression {text!r} is out of range: {e}") from e


def resolve_time_range(
	min_time: Optional[str],
	max_time: Optional[str],
	reference: datetime,
	local_zone: Optional[tzinfo] = None,
) -> TimeRange:
	"""Resolve both flag values once, against one shared reference instant."""
	start = end = None
	if min_time:
		try:
			start = parse_time(min_time, reference, local_zone)
		except TimeParseError as e:
			raise MinTimeParseError(f"failed to parse --min-time flag: {e}") from e
	if max_time:
		try:
			end = parse_time(max_time, reference, local_zone)
		except TimeParseError as e:
			raise MaxTimeParseError(f"failed to parse --max-time flag: {e}") from e
	return TimeRange(start=start, end=end)
