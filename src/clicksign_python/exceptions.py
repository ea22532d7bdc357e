# clicksign_python/exceptions.py
from typing import Any, Optional


class ClicksignError(Exception):
    """Base exception for all clicksign-python errors."""


class ConfigurationError(ClicksignError):
    """Invalid client configuration or a request body the current mode cannot send."""


class APIError(ClicksignError):
    """
    The API answered with a status other than 200 or 201.

    ``message`` comes from the response body when it carries one.
    """
    def __init__(self, status_code: int, message: str, body: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.body = body

    def __repr__(self) -> str:
        return f"APIError(status_code={self.status_code}, message={self.message!r})"
