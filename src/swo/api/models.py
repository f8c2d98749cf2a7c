# Wire models for the logs API

from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..timeparse import TimeRange, parse_rfc3339

__all__ = ["Direction", "LogEntry", "Page", "QueryFilter", "TimeRange"]


class Direction(str, Enum):
    FORWARD = "forward"
    TAIL = "tail"


@dataclass(frozen=True)
class QueryFilter:
    """Everything needed to build the first request of a search.

    `free_text` already holds the optional `host:"<system>"` clause followed
    by the positional search words.
    """

    group: Optional[str] = None
    free_text: Optional[str] = None
    direction: Direction = Direction.FORWARD
    page_size: int = 1000
    time_range: TimeRange = field(default_factory=TimeRange)

    def to_params(self) -> List[Tuple[str, str]]:
        """Query parameters for the first page, in wire order."""
        params = [
            ("direction", self.direction.value),
            ("pageSize", str(self.page_size)),
        ]
        if self.group:
            params.append(("group", self.group))
        if self.time_range.start:
            params.append(("startTime", self.time_range.start))
        if self.time_range.end:
            params.append(("endTime", self.time_range.end))
        if self.free_text:
            params.append(("filter", self.free_text))
        return params


@dataclass(frozen=True)
class LogEntry:
    """A single log record as returned by the API."""

    time: datetime
    message: str = ""
    hostname: str = ""
    severity: str = ""
    program: str = ""

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "LogEntry":
        """Build an entry from a `logs[]` element.

        Raises:
            ValueError: if `data` is not an object or `time` is missing/invalid
        """
        if not isinstance(data, dict):
            raise ValueError(f"log entry is {type(data).__name__}, expected object")
        raw_time = data.get("time")
        if not isinstance(raw_time, str):
            raise ValueError("log entry has no time")
        return cls(
            time=parse_rfc3339(raw_time),
            message=data.get("message") or "",
            hostname=data.get("hostname") or "",
            severity=data.get("severity") or "",
            program=data.get("program") or "",
        )

    def to_wire(self, zone: Optional[tzinfo] = None) -> Dict[str, str]:
        """Wire-named fields with `time` shown in `zone` (process-local when None)."""
        local = self.time.astimezone(zone)
        stamp = local.isoformat()
        if local.utcoffset() == timedelta(0):
            stamp = stamp.replace("+00:00", "Z")
        return {
            "time": stamp,
            "message": self.message,
            "hostname": self.hostname,
            "severity": self.severity,
            "program": self.program,
        }


@dataclass(frozen=True)
class Page:
    """One response of the logs endpoint."""

    entries: List[LogEntry] = field(default_factory=list)
    next_cursor: Optional[str] = None
    prev_cursor: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "Page":
        """Build a page from the decoded JSON body.

        Raises:
            ValueError: if the body does not have the expected shape
        """
        if not isinstance(payload, dict):
            raise ValueError(f"response is {type(payload).__name__}, expected object")
        logs = payload.get("logs")
        if logs is None:
            logs = []
        if not isinstance(logs, list):
            raise ValueError("'logs' is not a list")
        page_info = payload.get("pageInfo")
        if page_info is None:
            page_info = {}
        if not isinstance(page_info, dict):
            raise ValueError("'pageInfo' is not an object")
        return cls(
            entries=[LogEntry.from_wire(item) for item in logs],
            next_cursor=_cursor(page_info, "nextPage"),
            prev_cursor=_cursor(page_info, "prevPage"),
        )


def _cursor(page_info: Dict[str, Any], key: str) -> Optional[str]:
    value = page_info.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'pageInfo.{key}' is not a string")
    return value or None
