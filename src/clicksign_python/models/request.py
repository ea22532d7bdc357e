from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union


class QueryParam(NamedTuple):
    name: str
    value: str


@dataclass(frozen=True)
class JsonPayload:
    """A request body to be serialized as JSON."""
    value: Any


@dataclass(frozen=True)
class RawPayload:
    """
    A request body sent as-is, e.g. a multipart body encoded by the caller.

    ``content_type`` replaces the default Content-Type when given, so a
    pre-encoded multipart body can carry its boundary.
    """
    content: Union[bytes, str]
    content_type: Optional[str] = None


@dataclass(frozen=True)
class FormPayload:
    """Multipart form fields and files, encoded by httpx with its own boundary."""
    data: Dict[str, Any] = field(default_factory=dict)
    files: List[Tuple[str, Any]] = field(default_factory=list)


RequestPayload = Union[JsonPayload, RawPayload, FormPayload]
