"""
Workers AI REST Client

Sends backend requests over HTTP, either straight to the REST API or
through a named gateway.
"""

import json
import logging
from typing import Any, AsyncIterator, Optional

import httpx

from textgen_adapter.common.errors import UpstreamError
from textgen_adapter.config import Settings, get_settings
from textgen_adapter.providers.base import BackendClient

logger = logging.getLogger(__name__)


def _error_details(status_code: int, payload: Any) -> dict[str, Any]:
    details: dict[str, Any] = {"status_code": status_code}
    if isinstance(payload, dict) and payload.get("errors"):
        details["errors"] = payload["errors"]
    elif payload not in (None, "", b""):
        details["body"] = payload
    return details


def _decode_body(raw: bytes) -> Any:
    text = raw.decode("utf-8", errors="ignore")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def unwrap_result(status_code: int, payload: Any) -> dict[str, Any]:
    """
    Unwrap the {"success", "errors", "result"} envelope.

    Gateway responses and some endpoints return the output without the
    envelope; those are passed through unchanged.

    Raises:
        UpstreamError: Non-2xx status or success=false
    """
    if status_code >= 400:
        raise UpstreamError(
            message=f"Backend request failed with status {status_code}",
            details=_error_details(status_code, payload),
            status_code=502 if status_code >= 500 else status_code,
        )
    if not isinstance(payload, dict):
        raise UpstreamError(
            message="Backend returned a non-JSON response",
            code="invalid_upstream_response",
            details=_error_details(status_code, payload),
        )
    if payload.get("success") is False:
        raise UpstreamError(
            message="Backend reported an error",
            details=_error_details(status_code, payload),
        )
    if "result" in payload and isinstance(payload["result"], dict):
        return payload["result"]
    return payload


class ResponseByteStream:
    """
    Raw body of a streamed backend response.

    Owns the response and its client; both are released when the body is
    exhausted, when reading fails, or on aclose(), including before the
    first read.
    """

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response):
        self._client = client
        self._response = response
        self._chunks = response.aiter_bytes()
        self.closed = False

    def __aiter__(self) -> "ResponseByteStream":
        return self

    async def __anext__(self) -> bytes:
        if self.closed:
            raise StopAsyncIteration
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            await self.aclose()
            raise
        except httpx.RequestError as e:
            await self.aclose()
            raise UpstreamError(message=f"Stream interrupted: {str(e)}") from e

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self._chunks.aclose()
        finally:
            try:
                await self._response.aclose()
            finally:
                await self._client.aclose()


class WorkersAIClient(BackendClient):
    """
    Workers AI REST client

    Endpoints:
    - {BACKEND_BASE_URL}/accounts/{ACCOUNT_ID}/ai/run/{model}
    - {GATEWAY_BASE_URL}/{ACCOUNT_ID}/{GATEWAY_ID}/workers-ai/{model} (when GATEWAY_ID is set)
    - {BACKEND_BASE_URL}/accounts/{ACCOUNT_ID}/autorag/rags/{index}/ai-search
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize client

        Args:
            settings: Configuration, defaults to get_settings()
            transport: Optional httpx transport (used by tests)
        """
        self.settings = settings or get_settings()
        self.timeout = self.settings.HTTP_TIMEOUT
        self._transport = transport

    def model_url(self, model: str) -> str:
        settings = self.settings
        if settings.GATEWAY_ID:
            base = settings.GATEWAY_BASE_URL.rstrip("/")
            return f"{base}/{settings.ACCOUNT_ID}/{settings.GATEWAY_ID}/workers-ai/{model}"
        base = settings.BACKEND_BASE_URL.rstrip("/")
        return f"{base}/accounts/{settings.ACCOUNT_ID}/ai/run/{model}"

    def search_url(self, index: str) -> str:
        base = self.settings.BACKEND_BASE_URL.rstrip("/")
        return f"{base}/accounts/{self.settings.ACCOUNT_ID}/autorag/rags/{index}/ai-search"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.API_TOKEN:
            headers["Authorization"] = f"Bearer {self.settings.API_TOKEN}"
        return headers

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _post(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        logger.debug(
            "Backend request: url=%s body=%s",
            url,
            json.dumps(body, ensure_ascii=False)[:2000],
        )
        try:
            async with self._new_client() as client:
                response = await client.post(url, headers=self._headers(), json=body)
        except httpx.TimeoutException as e:
            raise UpstreamError(
                message=f"Request timeout: {str(e)}",
                code="upstream_timeout",
                status_code=504,
            ) from e
        except httpx.RequestError as e:
            raise UpstreamError(message=f"Request error: {str(e)}") from e

        return unwrap_result(response.status_code, _decode_body(response.content))

    async def _post_stream(self, url: str, body: dict[str, Any]) -> AsyncIterator[bytes]:
        logger.debug(
            "Backend stream request: url=%s body=%s",
            url,
            json.dumps(body, ensure_ascii=False)[:2000],
        )
        client = self._new_client()
        request = client.build_request("POST", url, headers=self._headers(), json=body)
        try:
            response = await client.send(request, stream=True)
        except httpx.TimeoutException as e:
            await client.aclose()
            raise UpstreamError(
                message=f"Request timeout: {str(e)}",
                code="upstream_timeout",
                status_code=504,
            ) from e
        except httpx.RequestError as e:
            await client.aclose()
            raise UpstreamError(message=f"Request error: {str(e)}") from e

        if response.status_code >= 400:
            try:
                raw = await response.aread()
            finally:
                await response.aclose()
                await client.aclose()
            unwrap_result(response.status_code, _decode_body(raw))

        return ResponseByteStream(client, response)

    async def run(self, model: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._post(self.model_url(model), body)

    async def run_stream(self, model: str, body: dict[str, Any]) -> AsyncIterator[bytes]:
        return await self._post_stream(self.model_url(model), body)

    async def search(self, index: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._post(self.search_url(index), body)

    async def search_stream(self, index: str, body: dict[str, Any]) -> AsyncIterator[bytes]:
        return await self._post_stream(self.search_url(index), body)
