# Search query assembly and cursor paging for the logs API

import logging
import urllib.parse
from dataclasses import dataclass, field
from typing import Iterator, List, Mapping, Optional, Sequence, Tuple

from .client import LogsClient, MalformedResponseError
from .models import Direction, Page, QueryFilter, TimeRange

logger = logging.getLogger(__name__)

LOGS_PATH = "v1/logs"
DEFAULT_PAGE_SIZE = 1000

Params = List[Tuple[str, str]]


def build_free_text(system: Optional[str] = None, args: Optional[Sequence[str]] = None) -> Optional[str]:
	"""Join the host clause and the positional search words with single spaces."""
	parts = []
	if system:
		parts.append(f'host:"{system}"')
	if args:
		parts.append(" ".join(args))
	return " ".join(parts) or None


def build_query_filter(
	group: Optional[str] = None,
	system: Optional[str] = None,
	args: Optional[Sequence[str]] = None,
	time_range: Optional[TimeRange] = None,
	follow: bool = False,
	page_size: int = DEFAULT_PAGE_SIZE,
) -> QueryFilter:
	return QueryFilter(
		group=group or None,
		free_text=build_free_text(system, args),
		direction=Direction.TAIL if follow else Direction.FORWARD,
		page_size=page_size,
		time_range=time_range or TimeRange(),
	)


@dataclass(frozen=True)
class ParamOverrides:
	"""Locally owned parameters layered over cursor-provided ones.

	`drop` keys are removed; `replace` keys are set to the given value,
	replacing any values the cursor carried.
	"""
	drop: Tuple[str, ...] = ()
	replace: Mapping[str, str] = field(default_factory=dict)

	def apply(self, params: Sequence[Tuple[str, str]]) -> Params:
		owned = set(self.drop) | set(self.replace)
		merged = [(key, value) for key, value in params if key not in owned]
		merged.extend(self.replace.items())
		return merged


NO_OVERRIDES = ParamOverrides()
# the tail window stays open-ended
FOLLOW_OVERRIDES = ParamOverrides(drop=("endTime",))


def cursor_request(cursor: str, overrides: ParamOverrides = NO_OVERRIDES) -> Tuple[str, Params]:
	"""Split a `nextPage` reference into its path and merged query parameters."""
	try:
		parts = urllib.parse.urlsplit(cursor)
		params = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
	except ValueError as e:
		raise MalformedResponseError(f"failed to parse nextPage field: {e}") from e
	return parts.path or LOGS_PATH, overrides.apply(params)


def iter_pages(
	client: LogsClient,
	params: Sequence[Tuple[str, str]],
	overrides: ParamOverrides = NO_OVERRIDES,
	cancel=None,
) -> Iterator[Page]:
	"""Walk the cursor chain starting from a first-page request.

	`params` go out unchanged on the first request; every later request is
	rebuilt from the server's cursor with `overrides` applied. The walk ends
	after the first page whose cursor is empty. `cancel`, when given, is
	checked before each request.
	"""
	url = client.endpoint_url(LOGS_PATH, list(params))
	while True:
		if cancel is not None:
			cancel.check()
		page = client.get_page(url)
		logger.debug("Received %d records, next cursor=%s", len(page.entries), page.next_cursor)
		yield page
		if not page.next_cursor:
			return
		path, cursor_params = cursor_request(page.next_cursor, overrides)
		url = client.endpoint_url(path, cursor_params)
