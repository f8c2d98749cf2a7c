# Logging setup for the swo CLI

import logging

import typer

LOGGER_NAME = "swo"


class EchoHandler(logging.Handler):
	"""Logging handler that writes styled records to stderr via typer."""
	_COLORS = {
		logging.DEBUG: typer.colors.BLUE,
		logging.INFO: None,
		logging.WARNING: typer.colors.YELLOW,
		logging.ERROR: typer.colors.RED,
		logging.CRITICAL: typer.colors.RED,
	}

	def emit(self, record):
		try:
			message = self.format(record)
		except Exception:
			self.handleError(record)
			return
		color = self._COLORS.get(record.levelno)
		typer.echo(typer.style(message, fg=color), err=True)


def setup_logging(verbose: bool = False) -> logging.Logger:
	"""Install a single EchoHandler on the package logger.

	Debug output (request URLs, response sizes, poll waits) is only shown
	with --verbose.
	"""
	logger = logging.getLogger(LOGGER_NAME)
	for existing in list(logger.handlers):
		if isinstance(existing, EchoHandler):
			logger.removeHandler(existing)
	handler = EchoHandler()
	handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
	logger.addHandler(handler)
	logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
	logger.propagate = False
	return logger
