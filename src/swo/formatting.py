# Output formatting for log records

import json
from datetime import datetime, tzinfo
from typing import Iterable, Optional, TextIO

import typer

from .api.models import LogEntry

TEXT_TIME_FORMAT = "%b %d %H:%M:%S"


def format_timestamp(value: datetime, zone: Optional[tzinfo] = None) -> str:
	"""Render an instant as `Jan 02 15:04:05` in `zone` (process-local when None)."""
	return value.astimezone(zone).strftime(TEXT_TIME_FORMAT)


def format_entry_text(entry: LogEntry, zone: Optional[tzinfo] = None) -> str:
	return f"{format_timestamp(entry.time, zone)} {entry.hostname} {entry.program} {entry.message}"


def format_entry_json(entry: LogEntry, zone: Optional[tzinfo] = None) -> str:
	return json.dumps(entry.to_wire(zone), separators=(",", ":"), ensure_ascii=False)


def render_entries(
	entries: Iterable[LogEntry],
	json_output: bool = False,
	out: Optional[TextIO] = None,
	zone: Optional[tzinfo] = None,
) -> int:
	"""Write one line per entry in the order given; returns the number written."""
	formatter = format_entry_json if json_output else format_entry_text
	count = 0
	for entry in entries:
		typer.echo(formatter(entry, zone), file=out)
		count += 1
	return count
