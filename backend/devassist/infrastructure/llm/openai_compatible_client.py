"""OpenAI-compatible chat completions client — implements the ChatProvider interface.

Works against any backend exposing ``{base_url}/chat/completions``
(OpenAI, OpenRouter, Groq, local gateways...). Supports both standard
JSON responses and SSE streaming with usage on the final chunk.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

from devassist.application.interfaces.chat_provider import ProviderRequest
from devassist.domain.entities import (
    Attachment,
    ChatResult,
    Message,
    MessageRole,
    ModelConfig,
    StreamFragment,
    TokenUsage,
)
from devassist.domain.exceptions import MalformedProviderResponseError
from devassist.infrastructure.llm.http_provider import HttpChatProvider

logger = logging.getLogger(__name__)

# Image formats accepted in image_url content parts
OPENAI_IMAGE_MIME_TYPES = frozenset({"image/png", "image/jpeg", "image/webp"})


class OpenAICompatibleClient(HttpChatProvider):
    """Infrastructure adapter — speaks the chat-completions protocol."""

    @property
    def provider_name(self) -> str:
        return "openai_compatible"

    @property
    def supported_attachment_mimes(self) -> frozenset[str]:
        return OPENAI_IMAGE_MIME_TYPES

    def build_request(
        self,
        system_prompt: str,
        history: Sequence[Message],
        attachments: Sequence[Attachment],
        model_config: ModelConfig,
    ) -> ProviderRequest:
        """Build a chat-completions request with a leading system message."""
        messages: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        messages.extend(
            {"role": MessageRole(m.role).value, "content": m.content} for m in history
        )

        images = [a for a in attachments if a.mime_type in OPENAI_IMAGE_MIME_TYPES]
        if images:
            self._attach_images(messages, images)

        url = f"{model_config.base_url.rstrip('/')}/chat/completions"
        return ProviderRequest(
            model=model_config.model_name,
            url=url,
            stream_url=url,
            payload={"model": model_config.model_name, "messages": messages},
            headers={
                "Authorization": f"Bearer {model_config.api_key}",
                "Content-Type": "application/json",
            },
        )

    @staticmethod
    def _attach_images(
        messages: list[dict[str, Any]], images: Sequence[Attachment]
    ) -> None:
        """Turn the last user message into a text + image_url part list."""
        for message in reversed(messages):
            if message["role"] != "user":
                continue
            parts: list[dict[str, Any]] = [{"type": "text", "text": message["content"]}]
            parts.extend(
                {"type": "image_url", "image_url": {"url": image.data_uri}}
                for image in images
            )
            message["content"] = parts
            return

        logger.info("No user message to attach %d image(s) to; dropping them", len(images))

    async def complete(self, request: ProviderRequest) -> ChatResult:
        """Send a non-streaming chat completion."""
        data = await self._post_json(request)

        choices = data.get("choices")
        if not choices:
            raise MalformedProviderResponseError(
                provider=self.provider_name,
                status_code=500,
                message="No choices in response",
            )

        message = choices[0].get("message") or {}
        return ChatResult(
            text=message.get("content") or "",
            usage=_parse_usage(data.get("usage")) or TokenUsage(),
            model=data.get("model", request.model),
            provider=self.provider_name,
        )

    async def stream(self, request: ProviderRequest) -> AsyncIterator[StreamFragment]:
        """Send a streaming chat completion.

        Requests usage reporting so the terminal chunk carries token counts.
        """
        streaming_request = ProviderRequest(
            model=request.model,
            url=request.url,
            stream_url=request.stream_url,
            payload={
                **request.payload,
                "stream": True,
                "stream_options": {"include_usage": True},
            },
            headers=request.headers,
        )

        usage: TokenUsage | None = None
        async with self._open_stream(streaming_request) as response:
            async for event in self._iter_sse_events(response):
                chunk_usage = _parse_usage(event.get("usage"))
                if chunk_usage is not None:
                    usage = chunk_usage

                choices = event.get("choices") or []
                delta = (choices[0].get("delta") or {}) if choices else {}
                text = delta.get("content") or ""
                if text:
                    yield StreamFragment(text=text, usage=chunk_usage)

        yield StreamFragment(usage=usage or TokenUsage())


def _parse_usage(raw: Any) -> TokenUsage | None:
    if not isinstance(raw, dict):
        return None
    return TokenUsage(
        prompt_tokens=raw.get("prompt_tokens") or 0,
        completion_tokens=raw.get("completion_tokens") or 0,
    )
