# Logs API client - stdlib urllib keeps startup fast
#
# One GET per page; errors are raised to the caller, never retried here.

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .models import Page

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base exception for logs API failures."""
    pass


class ConnectionFailedError(ApiError):
    """Raised when the API cannot be reached."""
    pass


class InvalidResponseError(ApiError):
    """Raised for any status outside 2xx; keeps the status code and raw body."""

    def __init__(self, status: int, body: str):
        super().__init__(f"received non-2xx status code: {status}, response body: {body}")
        self.status = status
        self.body = body


class NoContentError(ApiError):
    """Raised when a response has an empty body."""
    pass


class MalformedResponseError(ApiError):
    """Raised when a body is present but is not the expected JSON shape."""
    pass


def join_url(base: str, path: str, params: List[Tuple[str, str]]) -> str:
    """Join `path` onto `base` (keeping any base path) and append `params`."""
    url = f"{base.rstrip('/')}/{path.lstrip('/')}"
    if params:
        url += "?" + urllib.parse.urlencode(params)
    return url


@dataclass
class LogsClient:
    """Client for the `/v1/logs` search endpoint.

    Usage:
        client = LogsClient(api_url="https://api.na-01.cloud.solarwinds.com", token="...")
        page = client.get_page(client.endpoint_url("v1/logs", [("direction", "forward")]))
    """

    api_url: str
    token: str
    timeout: int = 30

    def endpoint_url(self, path: str, params: List[Tuple[str, str]]) -> str:
        return join_url(self.api_url, path, params)

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }

    def _request(self, url: str) -> bytes:
        """GET `url` and return the raw body of a 2xx response."""
        logger.debug("API request: GET %s", url)
        req = urllib.request.Request(url, headers=self._get_headers(), method="GET")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                status = resp.status
                content = resp.read()
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace") if e.fp is not None else ""
            logger.debug("Response status: %s", e.code)
            raise InvalidResponseError(e.code, body) from e
        except urllib.error.URLError as e:
            raise ConnectionFailedError(f"error while sending http request: {e.reason}") from e
        except OSError as e:
            raise ConnectionFailedError(f"error while reading http response body: {e}") from e

        logger.debug("Response status: %s", status)
        logger.debug("Response body: %d bytes", len(content))
        if status < 200 or status > 299:
            raise InvalidResponseError(status, content.decode("utf-8", errors="replace"))
        return content

    def get_page(self, url: str) -> Page:
        """Fetch and decode one page of log records."""
        content = self._request(url)
        if not content:
            raise NoContentError("no content")
        try:
            payload = json.loads(content)
        except ValueError as e:
            raise MalformedResponseError(f"error while decoding response body: {e}") from e
        try:
            return Page.from_payload(payload)
        except ValueError as e:
            raise MalformedResponseError(f"unexpected response body: {e}") from e
