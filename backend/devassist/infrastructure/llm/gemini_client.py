"""Gemini API client — implements the ChatProvider interface.

Talks to the native Generative Language REST API
(``models/{model}:generateContent`` and ``:streamGenerateContent?alt=sse``).
Conversation turns use the ``user`` / ``model`` roles and binary documents
travel as ``inlineData`` parts on the last user turn.
"""

import logging
import re
from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx

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
from devassist.domain.entities.model_config import NATIVE_HOST_MARKER
from devassist.domain.exceptions import MalformedProviderResponseError
from devassist.infrastructure.llm.http_provider import HttpChatProvider

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

_API_VERSION_SUFFIX = re.compile(r"/v\d+[a-z0-9]*$", re.IGNORECASE)

_NATIVE_IMAGE_MIME_TYPES = frozenset({
    "image/png", "image/jpeg", "image/webp", "image/heic", "image/heif",
})

# Images plus the audio, video and PDF types Gemini reads inline
GEMINI_INLINE_MIME_TYPES = _NATIVE_IMAGE_MIME_TYPES | frozenset({
    "audio/wav", "audio/mp3", "audio/aiff", "audio/aac", "audio/ogg", "audio/flac",
    "video/mp4", "video/mpeg", "video/mov", "video/avi", "video/x-flv",
    "video/mpg", "video/webm", "video/wmv", "video/3gpp",
    "application/pdf",
})


class GeminiClient(HttpChatProvider):
    """Infrastructure adapter — speaks the native Gemini protocol."""

    def __init__(
        self,
        api_base_url: str = DEFAULT_API_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ):
        super().__init__(http_client=http_client, timeout=timeout)
        self._api_base_url = api_base_url.rstrip("/")

    @property
    def provider_name(self) -> str:
        return "gemini"

    @property
    def supported_attachment_mimes(self) -> frozenset[str]:
        return GEMINI_INLINE_MIME_TYPES

    def build_request(
        self,
        system_prompt: str,
        history: Sequence[Message],
        attachments: Sequence[Attachment],
        model_config: ModelConfig,
    ) -> ProviderRequest:
        """Build a generateContent request; assistant turns map to ``model``."""
        contents: list[dict[str, Any]] = [
            {
                "role": "model" if m.role == MessageRole.ASSISTANT else "user",
                "parts": [{"text": m.content}],
            }
            for m in history
        ]

        inline = [a for a in attachments if a.mime_type in GEMINI_INLINE_MIME_TYPES]
        if inline:
            self._attach_inline_data(contents, inline)

        model_path = self._model_path(model_config)
        return ProviderRequest(
            model=model_config.model_name,
            url=f"{model_path}:generateContent",
            stream_url=f"{model_path}:streamGenerateContent?alt=sse",
            payload={
                "contents": contents,
                "systemInstruction": {"parts": [{"text": system_prompt}]},
            },
            headers={
                "x-goog-api-key": model_config.api_key,
                "Content-Type": "application/json",
            },
        )

    def _model_path(self, model_config: ModelConfig) -> str:
        """Resolve ``{root}/models/{model}`` for a model config.

        A base URL on the native host is used as the API root only when it
        ends in a version segment such as ``/v1beta``; a bare host or the
        OpenAI compatibility endpoint falls back to the configured root.
        """
        base_url = model_config.base_url.rstrip("/")
        if NATIVE_HOST_MARKER in base_url.lower() and _API_VERSION_SUFFIX.search(base_url):
            root = base_url
        else:
            root = self._api_base_url

        model = model_config.model_name
        if not model.startswith("models/"):
            model = f"models/{model}"
        return f"{root}/{model}"

    @staticmethod
    def _attach_inline_data(
        contents: list[dict[str, Any]], attachments: Sequence[Attachment]
    ) -> None:
        """Append inlineData parts to the last user turn."""
        for turn in reversed(contents):
            if turn["role"] != "user":
                continue
            turn["parts"].extend(
                {"inlineData": {"mimeType": a.mime_type, "data": a.data}}
                for a in attachments
            )
            return

        logger.info(
            "No user turn to attach %d document(s) to; dropping them", len(attachments)
        )

    async def complete(self, request: ProviderRequest) -> ChatResult:
        """Send a non-streaming generateContent request."""
        data = await self._post_json(request)

        candidates = data.get("candidates")
        if not candidates:
            feedback = data.get("promptFeedback") or {}
            reason = feedback.get("blockReason")
            raise MalformedProviderResponseError(
                provider=self.provider_name,
                status_code=500,
                message=f"Prompt blocked: {reason}" if reason else "No candidates in response",
            )

        return ChatResult(
            text=_candidate_text(data),
            usage=_parse_usage(data.get("usageMetadata")) or TokenUsage(),
            model=data.get("modelVersion", request.model),
            provider=self.provider_name,
        )

    async def stream(self, request: ProviderRequest) -> AsyncIterator[StreamFragment]:
        """Send a streamGenerateContent request over SSE.

        Gemini reports cumulative usage on chunks; the last report wins.
        """
        usage: TokenUsage | None = None
        async with self._open_stream(request) as response:
            async for event in self._iter_sse_events(response):
                chunk_usage = _parse_usage(event.get("usageMetadata"))
                if chunk_usage is not None:
                    usage = chunk_usage

                text = _candidate_text(event)
                if text:
                    yield StreamFragment(text=text, usage=chunk_usage)

        yield StreamFragment(usage=usage or TokenUsage())


def _candidate_text(data: dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate, skipping thoughts."""
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    content = candidates[0].get("content") or {}
    return "".join(
        part.get("text", "")
        for part in content.get("parts") or []
        if not part.get("thought")
    )


def _parse_usage(raw: Any) -> TokenUsage | None:
    if not isinstance(raw, dict):
        return None
    return TokenUsage(
        prompt_tokens=raw.get("promptTokenCount") or 0,
        completion_tokens=raw.get("candidatesTokenCount") or 0,
    )
