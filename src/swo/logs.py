# Log query runner: paging, follow polling and rendering

import logging
from datetime import tzinfo
from typing import Iterator, Optional, TextIO

from .api.client import LogsClient
from .api.models import Page, QueryFilter
from .api.queries import FOLLOW_OVERRIDES, iter_pages
from .cancel import CancelToken
from .formatting import render_entries

logger = logging.getLogger(__name__)

POLL_INTERVAL = 2.0


def follow_pages(
	client: LogsClient,
	query_filter: QueryFilter,
	cancel: CancelToken,
	poll_interval: float = POLL_INTERVAL,
) -> Iterator[Page]:
	"""Yield pages forever, polling for new records once the backlog is read.

	The time bounds in `query_filter` were resolved once by the caller; later
	polls only drop `endTime` so the window keeps up with the present. After
	any page without records the poller waits `poll_interval` seconds before
	the next request. Stops only when `cancel` fires or a request fails.
	"""
	params = query_filter.to_params()
	while True:
		last_had_records = False
		for page in iter_pages(client, params, overrides=FOLLOW_OVERRIDES, cancel=cancel):
			yield page
			last_had_records = bool(page.entries)
			if not last_had_records:
				logger.debug("No new records, waiting %.1fs", poll_interval)
				cancel.wait(poll_interval)
		if last_had_records:
			# the restart re-reads the window from the original startTime
			logger.debug("Cursor ended after a page with records, restarting without delay from startTime")
		else:
			logger.debug("Cursor exhausted, restarting from the first page")
		params = FOLLOW_OVERRIDES.apply(query_filter.to_params())


def run_query(
	client: LogsClient,
	query_filter: QueryFilter,
	follow: bool = False,
	json_output: bool = False,
	cancel: Optional[CancelToken] = None,
	out: Optional[TextIO] = None,
	zone: Optional[tzinfo] = None,
	poll_interval: float = POLL_INTERVAL,
) -> int:
	"""Fetch and render pages strictly in cursor order; returns records rendered."""
	if cancel is None:
		cancel = CancelToken()
	if follow:
		pages = follow_pages(client, query_filter, cancel, poll_interval=poll_interval)
	else:
		pages = iter_pages(client, query_filter.to_params(), cancel=cancel)

	total = 0
	for page in pages:
		total += render_entries(page.entries, json_output=json_output, out=out, zone=zone)
	return total
