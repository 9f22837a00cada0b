"""
Configuration - Connection settings read once at startup.

Settings come from an optional YAML file overlaid by environment
variables:

    JOBSWEEP_CONFIG          path to a YAML file with the fields below
    JOBSWEEP_API_KEY         credential (JOBSWEEP_TOKEN accepted as fallback)
    JOBSWEEP_BASE_URL        API base endpoint
    JOBSWEEP_TIMEOUT_MS      per-request timeout in milliseconds
    JOBSWEEP_AUTH_HEADER     auth header name
    JOBSWEEP_AUTH_SCHEME     prefix placed before the key
    JOBSWEEP_EXTRA_HEADERS   JSON object of static headers
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..client import ApiClient, UsageError

DEFAULT_BASE_URL = "https://trocco.io/api/"
DEFAULT_TIMEOUT_MS = 45000
ENV_PREFIX = "JOBSWEEP_"

logger = structlog.get_logger(__name__)


class Settings(BaseModel):
    """Connection settings for the job definition API"""

    api_key: str = Field(min_length=1)
    base_url: str = DEFAULT_BASE_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT_MS / 1000, gt=0)
    auth_header: str = "Authorization"
    auth_scheme: str = "Token"
    extra_headers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("api_key", "auth_header", "auth_scheme", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if value and not value.endswith("/"):
                value = f"{value}/"
        return value

    @classmethod
    def load(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """
        Load settings from YAML (if any) overlaid with the environment.

        Args:
            config_path: YAML file; defaults to $JOBSWEEP_CONFIG
            environ: Environment mapping (defaults to os.environ)

        Raises:
            UsageError: If the resulting settings are invalid (e.g. no API key)
        """
        environ = os.environ if environ is None else environ
        config_path = config_path or environ.get(f"{ENV_PREFIX}CONFIG")

        values: Dict[str, Any] = {}
        if config_path:
            values.update(read_yaml_config(config_path))
        values.update(read_env_config(environ))

        try:
            return cls(**values)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise UsageError(
                f"Invalid configuration ({fields}). Set {ENV_PREFIX}API_KEY in your environment."
            ) from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Load settings from the environment only"""
        environ = os.environ if environ is None else environ
        try:
            return cls(**read_env_config(environ))
        except ValidationError as e:
            raise UsageError(
                f"Missing or invalid settings. Set {ENV_PREFIX}API_KEY in your environment."
            ) from e

    def create_client(self, **overrides: Any) -> ApiClient:
        """Build an ApiClient from these settings"""
        options: Dict[str, Any] = {
            "base_url": self.base_url,
            "api_key": self.api_key,
            "timeout": self.timeout,
            "auth_header": self.auth_header,
            "auth_scheme": self.auth_scheme,
            "extra_headers": self.extra_headers,
        }
        options.update(overrides)
        return ApiClient(**options)


def read_yaml_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read settings fields from a YAML file.

    Raises:
        UsageError: If the file is missing or not a mapping
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise UsageError(f"Config file not found: {path}") from None
    except yaml.YAMLError as e:
        raise UsageError(f"Config file is not valid YAML: {path}") from e

    if not isinstance(data, Mapping):
        raise UsageError(f"Config file must contain a mapping: {path}")

    logger.debug("config_file_loaded", path=str(path), keys=sorted(data))
    return {key: value for key, value in data.items() if key in Settings.model_fields}


def parse_extra_headers(raw: Optional[str]) -> Dict[str, str]:
    """Parse a JSON object of headers; anything else is ignored with a warning"""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError as e:
        logger.warning("extra_headers_invalid_json", error=str(e))
        return {}
    if not isinstance(parsed, dict):
        logger.warning("extra_headers_not_object", value_type=type(parsed).__name__)
        return {}
    return {str(key): str(value) for key, value in parsed.items()}


def read_env_config(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Collect settings fields that are present in the environment"""
    values: Dict[str, Any] = {}

    api_key = environ.get(f"{ENV_PREFIX}API_KEY") or environ.get(f"{ENV_PREFIX}TOKEN")
    if api_key is not None:
        values["api_key"] = api_key

    if environ.get(f"{ENV_PREFIX}BASE_URL"):
        values["base_url"] = environ[f"{ENV_PREFIX}BASE_URL"]

    raw_timeout = environ.get(f"{ENV_PREFIX}TIMEOUT_MS")
    if raw_timeout:
        try:
            values["timeout"] = int(raw_timeout) / 1000
        except ValueError:
            logger.warning("timeout_invalid", value=raw_timeout, default_ms=DEFAULT_TIMEOUT_MS)

    if environ.get(f"{ENV_PREFIX}AUTH_HEADER") is not None:
        values["auth_header"] = environ[f"{ENV_PREFIX}AUTH_HEADER"] or "Authorization"
    if environ.get(f"{ENV_PREFIX}AUTH_SCHEME") is not None:
        values["auth_scheme"] = environ[f"{ENV_PREFIX}AUTH_SCHEME"]

    if f"{ENV_PREFIX}EXTRA_HEADERS" in environ:
        values["extra_headers"] = parse_extra_headers(environ[f"{ENV_PREFIX}EXTRA_HEADERS"])

    return values
