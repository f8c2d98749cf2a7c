# Cancellation for long-running log queries

import signal
import threading
from contextlib import contextmanager


class Cancelled(Exception):
	"""Raised when a run is interrupted from outside."""
	pass


class CancelToken:
	"""Cancellation flag with a wait that returns as soon as it is set."""

	def __init__(self):
		self._event = threading.Event()

	def cancel(self):
		self._event.set()

	@property
	def cancelled(self) -> bool:
		return self._event.is_set()

	def check(self):
		if self._event.is_set():
			raise Cancelled("interrupted")

	def wait(self, seconds: float):
		"""Sleep up to `seconds`; raise Cancelled if cancelled before or during the wait."""
		if self._event.wait(seconds):
			raise Cancelled("interrupted while waiting")


@contextmanager
def cancel_on_interrupt(token: CancelToken):
	"""Route SIGINT to `token` for the duration of the block.

	The handler also raises Cancelled so a blocking socket read in the main
	thread is abandoned instead of running to its timeout.
	"""
	def _handle(signum, frame):
		token.cancel()
		raise Cancelled("interrupted")

	previous = signal.signal(signal.SIGINT, _handle)
	try:
		yield token
	finally:
		signal.signal(signal.SIGINT, previous)
