# clicksign_python/client.py
import logging
import httpx
from typing import Dict, Any, Optional, Tuple

from .config import ClientConfig, Environment, EnvironmentLike
from .models import ApiResponse
from .utils import (
    HeadersLike,
    ParamsLike,
    build_headers,
    build_payload,
    build_url,
    ensure_success,
    handle_response_content,
    hmac_sha256_hex,
    mask_token,
    payload_headers,
    payload_request_kwargs,
    transport_info,
)

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")


class _BaseClient:
    """
    Request building and response normalization shared by both clients.

    A client owns its configuration; mutating it from several threads or
    tasks at once is up to the caller to synchronize.
    """
    def __init__(self, config: ClientConfig):
        self.config = config

    # Configuration

    def set_token(self, token: str) -> None:
        self.config.set_token(token)

    def set_environment(self, environment: EnvironmentLike) -> None:
        self.config.set_environment(environment)

    def set_debug(self, debug: bool) -> None:
        self.config.set_debug(debug)

    def set_upload(self, upload: bool) -> None:
        self.config.set_upload(upload)

    def set_decode(self, decode: bool) -> None:
        self.config.set_decode(decode)

    def get_token(self) -> str:
        return self.config.get_token()

    def get_environment(self) -> Environment:
        return self.config.get_environment()

    def get_debug(self) -> bool:
        return self.config.get_debug()

    def get_upload(self) -> bool:
        return self.config.get_upload()

    def get_decode(self) -> bool:
        return self.config.get_decode()

    @staticmethod
    def calculate_hmac(message: str = "", secret: str = "") -> str:
        """Signing code for a signature request, keyed by the signer's secret."""
        return hmac_sha256_hex(message, secret)

    # Pipeline

    def _prepare(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[ParamsLike] = None,
        headers: Optional[HeadersLike] = None,
    ) -> Tuple[str, httpx.Headers, Dict[str, Any]]:
        url = build_url(self.config.base_url, path, params, self.config.get_token())

        payload = None
        if method in BODY_METHODS:
            payload = build_payload(body, self.config.get_upload())

        # OPTIONS only carries what the caller asked for
        default_headers = [] if method == "OPTIONS" else payload_headers(self.config.default_headers(), payload)
        request_headers = build_headers(default_headers, headers)

        body_kwargs = payload_request_kwargs(payload) if payload is not None else {}

        logger.debug("Clicksign %s %s", method, mask_token(url))
        return url, request_headers, body_kwargs

    def _normalize(self, response: httpx.Response) -> ApiResponse:
        logger.debug("Clicksign %s %s -> %s", response.request.method,
                     mask_token(str(response.request.url)),
                     response.status_code)
        info = None
        if self.config.get_debug():
            info = transport_info(response)
        return ApiResponse(
            body=handle_response_content(response, self.config.get_decode()),
            http_code=response.status_code,
            info=info,
        )

    def _log_transport_error(self, method: str, url: str, error: httpx.RequestError) -> None:
        logger.error("Clicksign %s %s failed: %s", method,
                     mask_token(url), error)

    @staticmethod
    def _list_payload(document_key: str, signer_key: str, sign_as: str) -> Dict[str, Any]:
        return {
            "list": {
                "document_key": document_key,
                "signer_key": signer_key,
                "sign_as": sign_as,
            }
        }

    def _sign_payload(self, request_sign: str, secret_sign: str) -> Dict[str, Any]:
        return {
            "request_signature_key": request_sign,
            "secret_hmac_sha256": self.calculate_hmac(request_sign, secret_sign),
        }


class SyncClient(_BaseClient):
    """Synchronous client for the Clicksign API."""
    def __init__(
        self,
        token: str = "",
        environment: EnvironmentLike = Environment.PRODUCTION,
        debug: bool = False,
        upload: bool = False,
        decode: bool = True,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
        config: Optional[ClientConfig] = None,
    ):
        super().__init__(config or ClientConfig(
            token=token, environment=environment, debug=debug, upload=upload,
            decode=decode, timeout=timeout, transport=transport,
        ))

        self._http_client = httpx.Client(
            headers=self.config.common_headers,
            timeout=self.config.timeout,
            **self.config.httpx_settings
        )

    def _request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[ParamsLike] = None,
        headers: Optional[HeadersLike] = None,
    ) -> ApiResponse:
        url, request_headers, body_kwargs = self._prepare(method, path, body, params, headers)
        try:
            response = self._http_client.request(method, url, headers=request_headers, **body_kwargs)
        except httpx.RequestError as e:
            self._log_transport_error(method, url, e)
            raise
        return self._normalize(response)

    def get(self, path: str, params: Optional[ParamsLike] = None,
            headers: Optional[HeadersLike] = None) -> ApiResponse:
        return self._request("GET", path, params=params, headers=headers)

    def post(self, path: str, body: Any = None, params: Optional[ParamsLike] = None,
             headers: Optional[HeadersLike] = None) -> ApiResponse:
        return self._request("POST", path, body, params, headers)

    def put(self, path: str, body: Any = None, params: Optional[ParamsLike] = None,
            headers: Optional[HeadersLike] = None) -> ApiResponse:
        return self._request("PUT", path, body, params, headers)

    def patch(self, path: str, body: Any = None, params: Optional[ParamsLike] = None,
              headers: Optional[HeadersLike] = None) -> ApiResponse:
        return self._request("PATCH", path, body, params, headers)

    def delete(self, path: str, params: Optional[ParamsLike] = None,
               headers: Optional[HeadersLike] = None) -> ApiResponse:
        return self._request("DELETE", path, params=params, headers=headers)

    def options(self, path: str, params: Optional[ParamsLike] = None,
                headers: Optional[HeadersLike] = None) -> ApiResponse:
        return self._request("OPTIONS", path, params=params, headers=headers)

    def create_signer(self, signer: Dict[str, Any], params: Optional[ParamsLike] = None) -> ApiResponse:
        """Registers a signer."""
        return ensure_success(self.post("signers", signer, params))

    def create_document(self, document: Dict[str, Any], params: Optional[ParamsLike] = None) -> ApiResponse:
        """Registers a document for signature collection."""
        return ensure_success(self.post("documents", document, params))

    def get_document(self, key: str, params: Optional[ParamsLike] = None) -> ApiResponse:
        return ensure_success(self.get(f"documents/{key}", params))

    def finish_document(self, key: str, params: Optional[ParamsLike] = None) -> ApiResponse:
        return ensure_success(self.patch(f"documents/{key}/finish", {}, params))

    def cancel_document(self, key: str, params: Optional[ParamsLike] = None) -> ApiResponse:
        return ensure_success(self.patch(f"documents/{key}/cancel", {}, params))

    def link_signer_to_document(self, document_key: str, signer_key: str, sign_as: str,
                                params: Optional[ParamsLike] = None) -> ApiResponse:
        """Adds a signer to a document's signature list, signing as ``sign_as``."""
        return ensure_success(self.post("lists", self._list_payload(document_key, signer_key, sign_as), params))

    def sign_document(self, request_sign: str, secret_sign: str,
                      params: Optional[ParamsLike] = None) -> ApiResponse:
        """
        Signs a document on behalf of a signer.

        ``request_sign`` is the signature request key linking signer and document;
        ``secret_sign`` is the signer's secret, used only to compute the HMAC.
        """
        return ensure_success(self.post("sign", self._sign_payload(request_sign, secret_sign), params))

    def close(self) -> None:
        """Closes the underlying httpx client."""
        self._http_client.close()

    def __enter__(self) -> 'SyncClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class AsyncClient(_BaseClient):
    """Asynchronous client for the Clicksign API."""
    def __init__(
        self,
        token: str = "",
        environment: EnvironmentLike = Environment.PRODUCTION,
        debug: bool = False,
        upload: bool = False,
        decode: bool = True,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Optional[ClientConfig] = None,
    ):
        super().__init__(config or ClientConfig(
            token=token, environment=environment, debug=debug, upload=upload,
            decode=decode, timeout=timeout, transport=transport,
        ))

        self._http_client = httpx.AsyncClient(
            headers=self.config.common_headers,
            timeout=self.config.timeout,
            **self.config.httpx_settings
        )

    async def _request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[ParamsLike] = None,
        headers: Optional[HeadersLike] = None,
    ) -> ApiResponse:
        url, request_headers, body_kwargs = self._prepare(method, path, body, params, headers)
        try:
            response = await self._http_client.request(method, url, headers=request_headers, **body_kwargs)
        except httpx.RequestError as e:
            self._log_transport_error(method, url, e)
            raise
        return self._normalize(response)

    async def get(self, path: str, params: Optional[ParamsLike] = None,
                  headers: Optional[HeadersLike] = None) -> ApiResponse:
        return await self._request("GET", path, params=params, headers=headers)

    async def post(self, path: str, body: Any = None, params: Optional[ParamsLike] = None,
                   headers: Optional[HeadersLike] = None) -> ApiResponse:
        return await self._request("POST", path, body, params, headers)

    async def put(self, path: str, body: Any = None, params: Optional[ParamsLike] = None,
                  headers: Optional[HeadersLike] = None) -> ApiResponse:
        return await self._request("PUT", path, body, params, headers)

    async def patch(self, path: str, body: Any = None, params: Optional[ParamsLike] = None,
                    headers: Optional[HeadersLike] = None) -> ApiResponse:
        return await self._request("PATCH", path, body, params, headers)

    async def delete(self, path: str, params: Optional[ParamsLike] = None,
                     headers: Optional[HeadersLike] = None) -> ApiResponse:
        return await self._request("DELETE", path, params=params, headers=headers)

    async def options(self, path: str, params: Optional[ParamsLike] = None,
                      headers: Optional[HeadersLike] = None) -> ApiResponse:
        return await self._request("OPTIONS", path, params=params, headers=headers)

    async def create_signer(self, signer: Dict[str, Any], params: Optional[ParamsLike] = None) -> ApiResponse:
        return ensure_success(await self.post("signers", signer, params))

    async def create_document(self, document: Dict[str, Any], params: Optional[ParamsLike] = None) -> ApiResponse:
        return ensure_success(await self.post("documents", document, params))

    async def get_document(self, key: str, params: Optional[ParamsLike] = None) -> ApiResponse:
        return ensure_success(await self.get(f"documents/{key}", params))

    async def finish_document(self, key: str, params: Optional[ParamsLike] = None) -> ApiResponse:
        return ensure_success(await self.patch(f"documents/{key}/finish", {}, params))

    async def cancel_document(self, key: str, params: Optional[ParamsLike] = None) -> ApiResponse:
        return ensure_success(await self.patch(f"documents/{key}/cancel", {}, params))

    async def link_signer_to_document(self, document_key: str, signer_key: str, sign_as: str,
                                      params: Optional[ParamsLike] = None) -> ApiResponse:
        return ensure_success(await self.post("lists", self._list_payload(document_key, signer_key, sign_as), params))

    async def sign_document(self, request_sign: str, secret_sign: str,
                            params: Optional[ParamsLike] = None) -> ApiResponse:
        return ensure_success(await self.post("sign", self._sign_payload(request_sign, secret_sign), params))

    async def aclose(self) -> None:
        """Closes the underlying httpx client."""
        await self._http_client.aclose()

    async def __aenter__(self) -> 'AsyncClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
