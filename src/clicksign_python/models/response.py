from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class DecodedBody:
    """A response body parsed as JSON. ``value`` is None when the body was not valid JSON."""
    value: Any

    def get(self, key: str, default: Any = None) -> Any:
        if isinstance(self.value, dict):
            return self.value.get(key, default)
        return default


@dataclass(frozen=True)
class RawBody:
    """A response body returned untouched because decoding was switched off."""
    text: str


ResponseBody = Union[DecodedBody, RawBody]


@dataclass(frozen=True)
class ApiResponse:
    """
    Normalized outcome of one API call.

    ``info`` holds transport metadata and is only filled in debug mode.
    """
    body: ResponseBody
    http_code: int
    info: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @property
    def is_success(self) -> bool:
        return self.http_code in (200, 201)

    @property
    def data(self) -> Any:
        """The decoded value, or the raw text when decoding was off."""
        if isinstance(self.body, DecodedBody):
            return self.body.value
        return self.body.text

    def __repr__(self) -> str:
        return f"<ApiResponse http_code={self.http_code} body={self.body!r}>"
