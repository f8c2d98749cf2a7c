from .client import (
    ApiError,
    ConnectionFailedError,
    InvalidResponseError,
    LogsClient,
    MalformedResponseError,
    NoContentError,
)
from .models import Direction, LogEntry, Page, QueryFilter, TimeRange
