import signal
import sys
from typing import List, Optional

import click
import typer

from . import __version__
from .api.client import ApiError, LogsClient
from .api.queries import build_query_filter
from .cancel import Cancelled, CancelToken, cancel_on_interrupt
from .config import DEFAULT_CONFIG_FILE, ConfigError, load_config, set_dotenv_path
from .handler import setup_logging
from .logs import run_query
from .timeparse import TimeParseError, resolve_time_range, system_clock

app = typer.Typer(help="SolarWinds Observability command-line interface.")
logs_app = typer.Typer(help="Search and tail logs.")
app.add_typer(logs_app, name="logs")

LOGS_GET_EPILOG = """
Examples:

  swo logs get something

  swo logs get 1.2.3 Failure

  swo logs get -s ns1 "connection refused"

  swo logs get -f "(www OR db) (nginx OR pgsql) -accepted"

  swo logs get -f -g <SWO_GROUP_NAME> "(nginx OR pgsql) -accepted"

  swo logs get --min-time 'yesterday at noon' --max-time 'today at 4am' -g <SWO_GROUP_NAME>

  swo logs get -- -redis
"""

EXIT_INTERRUPTED = 130


def _fail(message):
	typer.echo(typer.style(f"Error: {message}", fg=typer.colors.RED), err=True)
	raise typer.Exit(1)


def _version_callback(value: bool):
	if value:
		typer.echo(f"swo {__version__}")
		raise typer.Exit()


@app.callback()
def main_options(
	ctx: typer.Context,
	api_url: str = typer.Option(None, "--api-url", help="URL of the SWO API"),
	api_token: str = typer.Option(None, "--api-token", help="API token"),
	config_file: str = typer.Option(DEFAULT_CONFIG_FILE, "--config", "-c", help="Path to config"),
	env: str = typer.Option(None, "--env", help="Path to a .env file to load"),
	verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output (shows API URLs and debug info)"),
	version: bool = typer.Option(
		False, "--version", "-V", callback=_version_callback, is_eager=True, help="Display the version and exit"
	),
):
	"""SolarWinds Observability command-line interface."""
	if env:
		set_dotenv_path(env)
	setup_logging(verbose)
	ctx.obj = {"api_url": api_url, "api_token": api_token, "config_file": config_file}


def require_client(ctx: typer.Context) -> LogsClient:
	"""Resolve credentials and build the API client, exiting on config errors."""
	opts = ctx.obj or {}
	try:
		cfg = load_config(opts.get("config_file"), api_url=opts.get("api_url"), api_token=opts.get("api_token"))
	except ConfigError as e:
		_fail(e)
	return LogsClient(api_url=cfg.api_url, token=cfg.token, timeout=cfg.timeout)


@logs_app.command("get", epilog=LOGS_GET_EPILOG)
def get(
	ctx: typer.Context,
	query: Optional[List[str]] = typer.Argument(None, help="Search words (use -- before a leading -term)"),
	group: str = typer.Option(None, "--group", "-g", help="Group name to search"),
	min_time: str = typer.Option("1 hour ago", "--min-time", help="Earliest time to search from"),
	max_time: str = typer.Option(None, "--max-time", help="Latest time to search from"),
	system: str = typer.Option(None, "--system", "-s", help="System to search"),
	json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
	follow: bool = typer.Option(False, "--follow", "-f", help="Enable live tailing"),
):
	"""Command-line search for SolarWinds Observability log management service."""
	client = require_client(ctx)
	try:
		time_range = resolve_time_range(min_time, max_time, system_clock())
	except TimeParseError as e:
		_fail(e)

	query_filter = build_query_filter(
		group=group,
		system=system,
		args=query,
		time_range=time_range,
		follow=follow,
	)
	token = CancelToken()
	try:
		with cancel_on_interrupt(token):
			total = run_query(client, query_filter, follow=follow, json_output=json_output, cancel=token)
	except Cancelled:
		raise typer.Exit(EXIT_INTERRUPTED)
	except ApiError as e:
		_fail(e)

	if total == 0:
		typer.echo(typer.style("No logs found.", dim=True), err=True)


def main():
	# Ctrl+C outside a running query
	signal.signal(signal.SIGINT, lambda *_: sys.exit(EXIT_INTERRUPTED))
	if len(sys.argv) == 1:
		# No arguments: show help
		command = typer.main.get_command(app)
		ctx = click.Context(command)
		typer.echo(command.get_help(ctx), err=True)
		return 0
	try:
		app()
	except typer.Exit:
		raise
	except Exception as e:
		typer.echo(typer.style(
			f"Fatal error: {type(e).__name__}: {e}",
			fg=typer.colors.RED
		), err=True)
		sys.exit(1)


if __name__ == "__main__":
	main()
