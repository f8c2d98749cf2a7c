# Configuration loading for swo
#
# Precedence for the API URL and token: CLI flag, environment, config file, default.

import os
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

DEFAULT_API_URL = "https://api.na-01.cloud.solarwinds.com"
DEFAULT_CONFIG_FILE = "~/.swo-cli.yml"
LOCAL_CONFIG_FILE = ".swo-cli.yaml"

# Lazy load dotenv - only when config is first accessed
_dotenv_loaded = False
_custom_dotenv_path = None


class ConfigError(Exception):
	"""Raised when configuration cannot be resolved."""
	pass


class MissingTokenError(ConfigError):
	"""Raised when no API token is found in any source."""
	pass


def _getenv(name, default=None):
	value = os.getenv(name)
	return value.strip() if value and value.strip() else default


class SwoConfig:
	"""Resolved API endpoint and credentials."""
	def __init__(self, api_url, token, timeout=30):
		self.api_url = api_url
		self.token = token
		self.timeout = timeout


def set_dotenv_path(path: str):
	"""Set a custom .env file path to load. Must be called before load_config()."""
	global _custom_dotenv_path, _dotenv_loaded
	_custom_dotenv_path = path
	_dotenv_loaded = False  # Reset to force reload with new path


def _load_dotenv():
	global _dotenv_loaded
	if _dotenv_loaded:
		return
	# DOTENV_PATH wins over --env
	dotenv_path = os.getenv("DOTENV_PATH") or _custom_dotenv_path
	if dotenv_path:
		# explicit file overrides values already in the environment
		load_dotenv(dotenv_path, override=True)
	else:
		dotenv_path = find_dotenv(usecwd=True)
		if dotenv_path:
			load_dotenv(dotenv_path)
	_dotenv_loaded = True


def resolve_config_path(config_path: Optional[str] = None) -> str:
	"""A .swo-cli.yaml in the working directory takes priority over `config_path`."""
	local_config = os.path.join(os.getcwd(), LOCAL_CONFIG_FILE)
	if os.path.isfile(local_config):
		return local_config
	return os.path.normpath(os.path.expanduser(config_path or DEFAULT_CONFIG_FILE))


def read_config_file(path: str) -> Dict[str, Any]:
	"""Return the YAML mapping at `path`; a missing file reads as empty."""
	try:
		with open(path, encoding="utf-8") as f:
			content = yaml.safe_load(f)
	except FileNotFoundError:
		return {}
	except (OSError, yaml.YAMLError) as e:
		raise ConfigError(f"error while reading {path} config file: {e}") from e
	if content is None:
		return {}
	if not isinstance(content, dict):
		raise ConfigError(f"error while reading {path} config file: expected a mapping")
	return content


def _file_value(values: Dict[str, Any], key: str) -> Optional[str]:
	value = values.get(key)
	if value is None:
		return None
	text = str(value).strip()
	return text or None


def load_config(
	config_path: Optional[str] = None,
	api_url: Optional[str] = None,
	api_token: Optional[str] = None,
) -> SwoConfig:
	"""Resolve the API URL and token from flags, environment and config file."""
	_load_dotenv()
	url = (api_url or "").strip() or _getenv("SWO_API_URL")
	token = (api_token or "").strip() or _getenv("SWO_API_TOKEN")

	if not url or not token:
		values = read_config_file(resolve_config_path(config_path))
		url = url or _file_value(values, "api-url")
		token = token or _file_value(values, "token")

	if not token:
		raise MissingTokenError("failed to find token")

	try:
		timeout = int(_getenv("SWO_API_TIMEOUT", "30"))
	except ValueError as e:
		raise ConfigError(f"SWO_API_TIMEOUT must be an integer: {e}") from e

	return SwoConfig(api_url=url or DEFAULT_API_URL, token=token, timeout=timeout)
