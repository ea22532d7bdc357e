# clicksign_python/config.py
import logging
import os
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SDK_VERSION = "0.1.0"


class Environment(IntEnum):
    """Clicksign environments a client can talk to."""
    PRODUCTION = 1
    SANDBOX = 2


API_URLS: Mapping[Environment, str] = MappingProxyType({
    Environment.PRODUCTION: "https://app.clicksign.com/api/v1",
    Environment.SANDBOX: "https://sandbox.clicksign.com/api/v1",
})

DEFAULT_ENVIRONMENT = Environment.PRODUCTION
DEFAULT_BASE_URL = API_URLS[DEFAULT_ENVIRONMENT]
DEFAULT_TIMEOUT = 10.0

EnvironmentLike = Union[Environment, int, str]


def resolve_environment(value: EnvironmentLike) -> Optional[Environment]:
    """Returns the matching Environment, or None when the value names none."""
    if isinstance(value, Environment):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            return Environment(value)
        except ValueError:
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return resolve_environment(int(text))
        return Environment.__members__.get(text.upper())
    return None


def resolve_base_url(environment: EnvironmentLike) -> str:
    """Returns the API root for an environment."""
    resolved = resolve_environment(environment)
    if resolved is None:
        raise ConfigurationError(f"Unknown environment: {environment!r}")
    return API_URLS[resolved]


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class ClientConfig:
    """
    Settings owned by a single client instance.

    Mutated only through the setters. An environment outside
    PRODUCTION/SANDBOX is ignored and the previous value is kept.
    """
    def __init__(
        self,
        token: str = "",
        environment: EnvironmentLike = DEFAULT_ENVIRONMENT,
        debug: bool = False,
        upload: bool = False,
        decode: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Any = None,
    ):
        self._token = token
        self._environment = DEFAULT_ENVIRONMENT
        self._debug = debug
        self._upload = upload
        self._decode = decode
        self.timeout = timeout
        self.transport = transport
        self.set_environment(environment)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "ClientConfig":
        """
        Builds a config from CLICKSIGN_* environment variables.

        Keyword overrides win over the environment.
        """
        environ = os.environ if environ is None else environ

        raw_timeout = environ.get("CLICKSIGN_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError as e:
            raise ConfigurationError(f"Invalid CLICKSIGN_TIMEOUT: {raw_timeout!r}") from e

        settings: Dict[str, Any] = {
            "token": environ.get("CLICKSIGN_ACCESS_TOKEN", ""),
            "environment": environ.get("CLICKSIGN_ENVIRONMENT", "production"),
            "debug": _env_flag(environ.get("CLICKSIGN_DEBUG")),
            "timeout": timeout,
        }
        settings.update(overrides)
        return cls(**settings)

    # Setters

    def set_token(self, token: str) -> None:
        self._token = token

    def set_environment(self, environment: EnvironmentLike) -> None:
        resolved = resolve_environment(environment)
        if resolved is None:
            logger.warning("Ignoring unknown Clicksign environment %r; keeping %s",
                           environment, self._environment.name)
            return
        self._environment = resolved

    def set_debug(self, debug: bool) -> None:
        self._debug = debug

    def set_upload(self, upload: bool) -> None:
        self._upload = upload

    def set_decode(self, decode: bool) -> None:
        self._decode = decode

    # Getters

    def get_token(self) -> str:
        return self._token

    def get_environment(self) -> Environment:
        return self._environment

    def get_debug(self) -> bool:
        return self._debug

    def get_upload(self) -> bool:
        return self._upload

    def get_decode(self) -> bool:
        return self._decode

    @property
    def base_url(self) -> str:
        return API_URLS[self._environment]

    @property
    def common_headers(self) -> Dict[str, str]:
        """Headers shared by every request of the underlying httpx client."""
        return {"User-Agent": f"clicksign-python/{SDK_VERSION}"}

    def default_headers(self) -> List[Tuple[str, str]]:
        """Accept and Content-Type headers for the current transport mode."""
        content_type = "multipart/form-data" if self._upload else "application/json"
        return [("Accept", "application/json"), ("Content-Type", content_type)]

    @property
    def httpx_settings(self) -> Dict[str, Any]:
        settings: Dict[str, Any] = {}
        if self.transport is not None:
            settings["transport"] = self.transport
        return settings

    def __repr__(self) -> str:
        return (f"<ClientConfig environment={self._environment.name} debug={self._debug} "
                f"upload={self._upload} decode={self._decode}>")
