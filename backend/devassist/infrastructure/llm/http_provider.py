"""Shared httpx plumbing for HTTP-based chat providers.

Handles client lifecycle, status checking, SSE line parsing and the
translation of transport failures into domain errors. Protocol-specific
request building and response parsing live in the subclasses.
"""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from devassist.application.interfaces.chat_provider import ChatProvider, ProviderRequest
from devassist.domain.exceptions import (
    MalformedProviderResponseError,
    ProviderTransportError,
)

logger = logging.getLogger(__name__)


class HttpChatProvider(ChatProvider):
    """Base adapter — sends ProviderRequests over httpx.

    Uses the injected AsyncClient when given (connection pooling, tests),
    otherwise opens a short-lived client per call.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ):
        self._http_client = http_client
        self._timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def _post_json(self, request: ProviderRequest) -> dict[str, Any]:
        """POST the request and return the decoded JSON body."""
        client = await self._get_client()
        should_close = self._http_client is None

        try:
            try:
                response = await client.post(
                    request.url, headers=request.headers, json=request.payload
                )
            except httpx.HTTPError as exc:
                raise ProviderTransportError(
                    provider=self.provider_name, status_code=0, message=str(exc)
                ) from exc

            if not response.is_success:
                self._raise_provider_error_from_bytes(
                    response.status_code, response.content
                )

            try:
                data = response.json()
            except ValueError as exc:
                raise MalformedProviderResponseError(
                    provider=self.provider_name,
                    status_code=response.status_code,
                    message="Response body is not valid JSON",
                ) from exc

            if not isinstance(data, dict):
                raise MalformedProviderResponseError(
                    provider=self.provider_name,
                    status_code=response.status_code,
                    message="Response body is not a JSON object",
                )
            self._raise_if_error_body(data)
            return data

        finally:
            if should_close:
                await client.aclose()

    @asynccontextmanager
    async def _open_stream(
        self, request: ProviderRequest
    ) -> AsyncIterator[httpx.Response]:
        """Open a streaming POST, raising on transport errors and bad statuses."""
        client = await self._get_client()
        should_close = self._http_client is None

        try:
            async with client.stream(
                "POST", request.stream_url, headers=request.headers, json=request.payload
            ) as response:
                if not response.is_success:
                    body = await response.aread()
                    self._raise_provider_error_from_bytes(response.status_code, body)
                yield response
        except httpx.HTTPError as exc:
            raise ProviderTransportError(
                provider=self.provider_name, status_code=0, message=str(exc)
            ) from exc
        finally:
            if should_close:
                await client.aclose()

    async def _iter_sse_events(
        self, response: httpx.Response
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield decoded JSON events from an SSE body, stopping at ``[DONE]``.

        Skips blank lines, keepalive comments and non-data fields.
        """
        async for line in response.aiter_lines():
            if not line or line.startswith(":") or not line.startswith("data:"):
                continue

            data = line[len("data:"):].strip()
            if data == "[DONE]":
                break

            try:
                event = json.loads(data)
            except json.JSONDecodeError as exc:
                raise MalformedProviderResponseError(
                    provider=self.provider_name,
                    status_code=response.status_code,
                    message=f"Invalid JSON in stream event: {data[:200]}",
                ) from exc

            if not isinstance(event, dict):
                raise MalformedProviderResponseError(
                    provider=self.provider_name,
                    status_code=response.status_code,
                    message="Stream event is not a JSON object",
                )
            self._raise_if_error_body(event)
            yield event

    def _raise_if_error_body(self, data: dict[str, Any]) -> None:
        """Raise when a 2xx body carries an error object instead of a result."""
        if "error" not in data:
            return
        error = data["error"]
        if isinstance(error, dict):
            code = error.get("code", 500)
            message = error.get("message", "Unknown error")
        else:
            code, message = 500, str(error)
        raise MalformedProviderResponseError(
            provider=self.provider_name,
            status_code=code if isinstance(code, int) else 500,
            message=message,
        )

    def _raise_provider_error_from_bytes(
        self, status_code: int, body: bytes
    ) -> None:
        """Raise ProviderTransportError from raw response bytes."""
        try:
            data = json.loads(body)
            error = data.get("error", {})
            message = error.get("message", body.decode())
        except Exception:
            message = body.decode(errors="replace")

        logger.warning(
            "%s returned HTTP %d: %s", self.provider_name, status_code, message[:200]
        )
        raise ProviderTransportError(
            provider=self.provider_name,
            status_code=status_code,
            message=message,
        )
