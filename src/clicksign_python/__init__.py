# clicksign_python/__init__.py
"""
Python client for the Clicksign electronic-signature API.
"""
from .config import ClientConfig, Environment, API_URLS, DEFAULT_BASE_URL, SDK_VERSION, resolve_base_url
from .exceptions import ClicksignError, APIError, ConfigurationError

# Client Imports
from .client import SyncClient, AsyncClient

# Model Imports
from .models import (
    ApiResponse,
    DecodedBody,
    RawBody,
    QueryParam,
    JsonPayload,
    RawPayload,
    FormPayload,
)

from .utils import hmac_sha256_hex


__all__ = [
    # Config and Exceptions
    'ClientConfig',
    'Environment',
    'API_URLS',
    'DEFAULT_BASE_URL',
    'SDK_VERSION',
    'resolve_base_url',
    'ClicksignError',
    'APIError',
    'ConfigurationError',

    # Clients
    'SyncClient',
    'AsyncClient',

    # Models
    'ApiResponse',
    'DecodedBody',
    'RawBody',
    'QueryParam',
    'JsonPayload',
    'RawPayload',
    'FormPayload',

    'hmac_sha256_hex',
]

__version__ = SDK_VERSION
