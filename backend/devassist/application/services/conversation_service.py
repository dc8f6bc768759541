"""Conversation use case — persists a chat turn around one orchestrated call."""

import inspect
import logging
from collections.abc import Sequence

from devassist.application.interfaces.message_repository import MessageRepository
from devassist.application.services.chat_orchestrator import ChatOrchestrator, ChunkCallback
from devassist.application.services.stream_accumulator import StreamAccumulator
from devassist.domain.entities import (
    Message,
    MessageRole,
    ModelConfig,
    ProjectDocument,
    TokenUsage,
)

logger = logging.getLogger(__name__)


class ConversationService:
    """Application service — one user turn in, one assistant reply stored.

    The user's message is stored before the provider is called, so it
    survives a failed call. The assistant reply is stored once, after the
    call has finished.
    """

    def __init__(self, repository: MessageRepository, orchestrator: ChatOrchestrator):
        self._repository = repository
        self._orchestrator = orchestrator

    async def send_message(
        self,
        project_id: str,
        content: str,
        model_config: ModelConfig,
        documents: Sequence[ProjectDocument] = (),
        *,
        streaming: bool = False,
        on_chunk: ChunkCallback | None = None,
    ) -> Message:
        """Send a user message and store the assistant's reply.

        Returns:
            The stored assistant message, carrying the call's token usage.
        """
        user_message = Message(project_id=project_id, role=MessageRole.USER, content=content)
        await self._repository.add_message(user_message)

        history = await self._repository.list_messages(project_id)

        if not streaming:
            result = await self._orchestrator.complete(
                project_id, history, model_config, documents
            )
            reply = Message(
                project_id=project_id,
                role=MessageRole.ASSISTANT,
                content=result.text,
            )
            reply.apply_usage(result.usage)
        else:
            transcript = list(history)
            accumulator = StreamAccumulator(project_id, transcript)

            async def _merge(text: str) -> None:
                accumulator.feed(text)
                if on_chunk is not None:
                    outcome = on_chunk(text)
                    if inspect.isawaitable(outcome):
                        await outcome

            result = await self._orchestrator.chat(
                project_id,
                history,
                model_config,
                documents,
                streaming=True,
                on_chunk=_merge,
            )
            reply = accumulator.finish(result.usage)

        await self._repository.add_message(reply)
        return reply

    async def clear_context(self, project_id: str) -> int:
        """Delete the project's whole conversation."""
        deleted = await self._repository.delete_all_messages(project_id)
        logger.info("Cleared %d message(s) for project %s", deleted, project_id)
        return deleted

    async def token_totals(self, project_id: str) -> TokenUsage:
        """Sum the token usage recorded on the project's messages."""
        totals = TokenUsage()
        for message in await self._repository.list_messages(project_id):
            totals.prompt_tokens += message.prompt_tokens or 0
            totals.completion_tokens += message.completion_tokens or 0
        return totals
