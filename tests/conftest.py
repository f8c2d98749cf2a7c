import os
import sys
from datetime import datetime, timezone

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
	sys.path.insert(0, SRC_DIR)

from swo import config
from swo.api.client import LogsClient
from swo.api.models import LogEntry, Page

REFERENCE = datetime(2000, 1, 1, 10, 0, 30, tzinfo=timezone.utc)


class ScriptedClient(LogsClient):
	"""LogsClient that serves pre-built pages and records requested URLs."""

	def __init__(self, pages, repeat_last=False):
		super().__init__(api_url="https://api.example.com", token="123456")
		self.pages = list(pages)
		self.repeat_last = repeat_last
		self.requested = []

	def get_page(self, url):
		self.requested.append(url)
		if len(self.pages) == 1 and self.repeat_last:
			return self.pages[0]
		if not self.pages:
			raise AssertionError(f"unexpected request: {url}")
		return self.pages.pop(0)


def make_entry(message, hostname="hostnameOne", program="programOne", severity="INFO", when=REFERENCE):
	return LogEntry(time=when, message=message, hostname=hostname, severity=severity, program=program)


@pytest.fixture
def reference():
	return REFERENCE


@pytest.fixture
def scripted_client():
	return ScriptedClient


@pytest.fixture
def entry():
	return make_entry


@pytest.fixture
def page():
	def _page(*messages, next_cursor=None):
		return Page(entries=[make_entry(m) for m in messages], next_cursor=next_cursor)
	return _page


@pytest.fixture
def isolated_config(monkeypatch, tmp_path):
	"""Run in an empty directory with no SWO_* variables and no .env lookup."""
	monkeypatch.chdir(tmp_path)
	monkeypatch.setenv("HOME", str(tmp_path))
	monkeypatch.setattr(config, "_dotenv_loaded", True)
	monkeypatch.setattr(config, "_custom_dotenv_path", None)
	for key in ("SWO_API_URL", "SWO_API_TOKEN", "SWO_API_TIMEOUT", "DOTENV_PATH"):
		monkeypatch.delenv(key, raising=False)
	return tmp_path
