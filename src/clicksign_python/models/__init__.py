# clicksign_python/models/__init__.py
from .request import FormPayload, JsonPayload, QueryParam, RawPayload, RequestPayload
from .response import ApiResponse, DecodedBody, RawBody, ResponseBody

__all__ = [
    'ApiResponse',
    'DecodedBody',
    'RawBody',
    'ResponseBody',
    'QueryParam',
    'JsonPayload',
    'RawPayload',
    'FormPayload',
    'RequestPayload',
]
