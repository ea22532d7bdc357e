# clicksign_python/utils.py
import hashlib
import hmac
import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote_plus, urlsplit, urlunsplit

import httpx

from .exceptions import APIError, ConfigurationError
from .models import (
    ApiResponse,
    DecodedBody,
    FormPayload,
    JsonPayload,
    QueryParam,
    RawBody,
    RawPayload,
    RequestPayload,
    ResponseBody,
)

ACCESS_TOKEN_PARAM = "access_token"
SUCCESS_STATUS_CODES = (200, 201)
GENERIC_ERROR_MESSAGE = "An internal error occurred"

ParamsLike = Union[Mapping[str, Any], Iterable[Union[QueryParam, Tuple[str, Any], Mapping[str, Any]]]]
HeadersLike = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def normalize_path(path: str) -> str:
    """Prepends a slash to paths that lack one."""
    if not path.startswith("/"):
        return "/" + path
    return path


def coerce_params(params: Optional[ParamsLike]) -> List[QueryParam]:
    """
    Accepts a mapping, (name, value) pairs, or {"name": ..., "value": ...} dicts.
    """
    if not params:
        return []
    if isinstance(params, Mapping):
        return [QueryParam(name, value) for name, value in params.items()]

    coerced = []
    for item in params:
        if isinstance(item, Mapping):
            coerced.append(QueryParam(item.get("name"), item.get("value")))
        else:
            name, value = item
            coerced.append(QueryParam(name, value))
    return coerced


def build_query_params(params: Optional[ParamsLike], token: str) -> List[QueryParam]:
    """Drops any caller-supplied access_token and appends the configured one."""
    query = [p for p in coerce_params(params) if p.name != ACCESS_TOKEN_PARAM]
    query.append(QueryParam(ACCESS_TOKEN_PARAM, token))
    return query


def build_query_string(params: Iterable[QueryParam]) -> str:
    """URL-encodes each pair, skipping those with an empty name or value."""
    return "&".join(
        f"{quote_plus(str(name))}={quote_plus(str(value))}"
        for name, value in params
        if name and value
    )


def build_url(base_url: str, path: str, params: Optional[ParamsLike], token: str) -> str:
    url = base_url + normalize_path(path)
    query = build_query_string(build_query_params(params, token))
    if query:
        url = f"{url}?{query}"
    return url


def mask_token(url: str) -> str:
    """Hides the access_token query value in URLs that end up in logs."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = "&".join(
        f"{ACCESS_TOKEN_PARAM}=***" if pair.split("=", 1)[0] == ACCESS_TOKEN_PARAM else pair
        for pair in parts.query.split("&")
    )
    return urlunsplit(parts._replace(query=query))


def build_headers(default: List[Tuple[str, str]], extra: Optional[HeadersLike]) -> httpx.Headers:
    """Appends the caller's headers after the defaults, keeping duplicates."""
    headers = list(default)
    if extra:
        headers.extend(extra.items() if isinstance(extra, Mapping) else extra)
    return httpx.Headers(headers)


def payload_headers(default: List[Tuple[str, str]], payload: Optional[RequestPayload]) -> List[Tuple[str, str]]:
    """
    Adjusts the default Content-Type for the payload about to be sent.

    Form payloads leave it to httpx, which adds the multipart boundary.
    """
    if isinstance(payload, FormPayload):
        return [(name, value) for name, value in default if name.lower() != "content-type"]
    if isinstance(payload, RawPayload) and payload.content_type:
        return [
            (name, payload.content_type if name.lower() == "content-type" else value)
            for name, value in default
        ]
    return default


def _is_file(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray, tuple)) or hasattr(value, "read")


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_form(body: Mapping[str, Any], prefix: str = "") -> List[Tuple[str, Any]]:
    """
    Flattens nested mappings and lists into form field names.

    ``{"document": {"path": "/a.pdf"}}`` becomes ``[("document[path]", "/a.pdf")]``.
    """
    fields = []
    for key, value in body.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            fields.extend(flatten_form(value, name))
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, Mapping):
                    fields.extend(flatten_form(item, f"{name}[]"))
                else:
                    fields.append((f"{name}[]", item))
        else:
            fields.append((name, value))
    return fields


def build_form_payload(body: Mapping[str, Any]) -> FormPayload:
    data: Dict[str, Any] = {}
    files = []
    for name, value in flatten_form(body):
        if _is_file(value):
            files.append((name, bytes(value) if isinstance(value, bytearray) else value))
        elif name in data:
            previous = data[name]
            data[name] = (previous if isinstance(previous, list) else [previous]) + [_form_value(value)]
        else:
            data[name] = _form_value(value)

    # httpx only switches to multipart when files are present
    if not files:
        for name, value in data.items():
            for item in (value if isinstance(value, list) else [value]):
                files.append((name, (None, item.encode("utf-8"))))
        data = {}
    return FormPayload(data=data, files=files)


def build_payload(body: Any, upload: bool) -> RequestPayload:
    """Wraps a request body according to the transport mode."""
    if isinstance(body, (JsonPayload, RawPayload, FormPayload)):
        if upload and isinstance(body, JsonPayload):
            raise ConfigurationError("Upload mode expects a form or raw body, got a JSON payload")
        return body
    if not upload:
        return JsonPayload({} if body is None else body)
    if not body:
        return RawPayload(b"")
    if isinstance(body, (bytes, str)):
        return RawPayload(body)
    if isinstance(body, Mapping):
        return build_form_payload(body)
    raise ConfigurationError(
        f"Upload mode expects a mapping or an already encoded body, got {type(body).__name__}"
    )


def payload_request_kwargs(payload: RequestPayload) -> Dict[str, Any]:
    """Keyword arguments handing the payload to httpx."""
    if isinstance(payload, FormPayload):
        return {"data": payload.data or None, "files": payload.files}
    if isinstance(payload, RawPayload):
        return {"content": payload.content}
    return {"content": json.dumps(payload.value)}


def decode_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def handle_response_content(response: httpx.Response, decode: bool) -> ResponseBody:
    """
    Decodes the body unless decoding is off and the call returned 200.

    Error responses are always decoded so their message can be extracted.
    """
    if decode or response.status_code != 200:
        return DecodedBody(decode_json(response.text))
    return RawBody(response.text)


def transport_info(response: httpx.Response) -> Dict[str, Any]:
    """Collects transport metadata attached to responses in debug mode."""
    request = response.request
    try:
        elapsed = response.elapsed.total_seconds()
    except RuntimeError:
        elapsed = None
    return {
        "url": mask_token(str(request.url)),
        "method": request.method,
        "http_code": response.status_code,
        "http_version": response.http_version,
        "elapsed": elapsed,
        "content_type": response.headers.get("Content-Type"),
        "size_download": len(response.content),
        "request_headers": dict(request.headers),
        "response_headers": dict(response.headers),
    }


def parse_api_error(response: ApiResponse) -> APIError:
    """
    Translates a non-successful response into an APIError.

    Looks for ``message`` first, then ``errors``, then falls back to a generic message.
    """
    value = response.body.value if isinstance(response.body, DecodedBody) else None

    if isinstance(value, dict):
        if value.get("message") is not None:
            return APIError(response.http_code, str(value["message"]), body=value)

        errors = value.get("errors")
        if errors is not None:
            if isinstance(errors, str):
                message = errors
            else:
                message = "\r\n".join(str(error) for error in errors)
            return APIError(response.http_code, message, body=value)

    return APIError(response.http_code, GENERIC_ERROR_MESSAGE, body=value)


def ensure_success(response: ApiResponse) -> ApiResponse:
    if response.http_code in SUCCESS_STATUS_CODES:
        return response
    raise parse_api_error(response)


def hmac_sha256_hex(message: str = "", key: str = "") -> str:
    """Hex-encoded HMAC-SHA256 of ``message`` keyed by ``key``."""
    return hmac.new(key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()
