"""Chat orchestration use case — one provider call per invocation.

Assembles the document context, picks the provider for the model config,
and either returns the complete answer or streams text deltas while
tracking usage. Errors from providers propagate unchanged.
"""

import inspect
import logging
import time
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable, Sequence
from contextlib import aclosing

from devassist.application.interfaces.chat_provider import ChatProvider, ProviderRequest
from devassist.application.services.document_context import DocumentContextAssembler
from devassist.application.services.prompts import SYSTEM_INSTRUCTION
from devassist.domain.entities import (
    ChatResult,
    Message,
    ModelConfig,
    ProjectDocument,
    ProviderKind,
    StreamFragment,
    TokenUsage,
    resolve_provider_kind,
)

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ProviderKind], ChatProvider]
ChunkCallback = Callable[[str], Awaitable[None] | None]


class ChatStream:
    """A finite, non-restartable stream of text deltas from one chat call.

    Iterate it with ``async for``; once exhausted, ``result`` holds the
    complete text and the last usage the provider reported. Callers that
    stop early should ``aclose()`` it (or use ``contextlib.aclosing``) so
    the provider connection is released right away.
    """

    def __init__(
        self,
        fragments: AsyncIterator[StreamFragment],
        *,
        model: str = "",
        provider: str = "",
    ):
        self._fragments = fragments
        self._model = model
        self._provider = provider
        self._started = False
        self._iterator: AsyncGenerator[str, None] | None = None
        self._result: ChatResult | None = None

    def __aiter__(self) -> AsyncIterator[str]:
        if self._started:
            raise RuntimeError("ChatStream can only be iterated once")
        self._started = True
        self._iterator = self._iterate()
        return self._iterator

    async def aclose(self) -> None:
        """Stop the stream and close the provider's response."""
        self._started = True
        if self._iterator is not None:
            await self._iterator.aclose()

    async def _iterate(self) -> AsyncGenerator[str, None]:
        parts: list[str] = []
        usage: TokenUsage | None = None

        async with aclosing(self._fragments) as fragments:
            async for fragment in fragments:
                if fragment.usage is not None:
                    usage = fragment.usage
                if fragment.text:
                    parts.append(fragment.text)
                    yield fragment.text

        self._result = ChatResult(
            text="".join(parts),
            usage=usage or TokenUsage(),
            model=self._model,
            provider=self._provider,
        )

    @property
    def result(self) -> ChatResult:
        """The call's outcome; only available after the stream is exhausted."""
        if self._result is None:
            raise RuntimeError("ChatStream has not been fully consumed")
        return self._result


class ChatOrchestrator:
    """Application service — drives a single chat call against a provider.

    Stateless between calls. Callers must not run two calls concurrently
    against the same conversation.
    """

    def __init__(
        self,
        provider_factory: ProviderFactory,
        assembler: DocumentContextAssembler | None = None,
    ):
        self._provider_factory = provider_factory
        self._assembler = assembler or DocumentContextAssembler()

    def _prepare(
        self,
        project_id: str,
        history: Sequence[Message],
        model_config: ModelConfig,
        documents: Sequence[ProjectDocument],
    ) -> tuple[ChatProvider, ProviderRequest]:
        kind = resolve_provider_kind(model_config)
        provider = self._provider_factory(kind)

        context = self._assembler.assemble(documents, provider.supported_attachment_mimes)
        request = provider.build_request(
            SYSTEM_INSTRUCTION + context.prompt_suffix,
            history,
            context.attachments,
            model_config,
        )

        logger.info(
            "Chat call for project %s via %s (model=%s, key=%s, messages=%d, "
            "documents=%d, attachments=%d, skipped_attachments=%d)",
            project_id,
            provider.provider_name,
            model_config.model_name,
            model_config.masked_api_key(),
            len(history),
            len(documents),
            len(context.attachments),
            context.skipped_attachments,
        )
        return provider, request

    async def complete(
        self,
        project_id: str,
        history: Sequence[Message],
        model_config: ModelConfig,
        documents: Sequence[ProjectDocument] = (),
    ) -> ChatResult:
        """Execute a non-streaming chat call."""
        provider, request = self._prepare(project_id, history, model_config, documents)
        start = time.monotonic()

        result = await provider.complete(request)

        logger.info(
            "Chat call for project %s finished in %d ms (prompt=%d, completion=%d)",
            project_id,
            int((time.monotonic() - start) * 1000),
            result.usage.prompt_tokens,
            result.usage.completion_tokens,
        )
        return result

    def stream(
        self,
        project_id: str,
        history: Sequence[Message],
        model_config: ModelConfig,
        documents: Sequence[ProjectDocument] = (),
    ) -> ChatStream:
        """Start a streaming chat call.

        The request is built eagerly; the network call starts when the
        returned stream is first iterated.
        """
        provider, request = self._prepare(project_id, history, model_config, documents)
        return ChatStream(
            provider.stream(request),
            model=request.model,
            provider=provider.provider_name,
        )

    async def chat(
        self,
        project_id: str,
        history: Sequence[Message],
        model_config: ModelConfig,
        documents: Sequence[ProjectDocument] = (),
        *,
        streaming: bool = False,
        on_chunk: ChunkCallback | None = None,
    ) -> ChatResult:
        """Run one chat call and return its result.

        When streaming, ``on_chunk`` (sync or async) receives every non-empty
        delta in arrival order before the next one is read.
        """
        if not streaming:
            return await self.complete(project_id, history, model_config, documents)

        chat_stream = self.stream(project_id, history, model_config, documents)
        async with aclosing(chat_stream):
            async for text in chat_stream:
                if on_chunk is not None:
                    outcome = on_chunk(text)
                    if inspect.isawaitable(outcome):
                        await outcome

        result = chat_stream.result
        logger.info(
            "Streamed chat call for project %s finished (chars=%d, prompt=%d, completion=%d)",
            project_id,
            len(result.text),
            result.usage.prompt_tokens,
            result.usage.completion_tokens,
        )
        return result
