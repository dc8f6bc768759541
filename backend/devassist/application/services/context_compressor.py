"""Context compression — replaces a conversation with one AI summary.

The summary is requested first; only once it has arrived is the stored
history swapped for the summary message, in a single repository call.
A failed summarization leaves the conversation untouched.
"""

import logging
from enum import Enum

from devassist.application.interfaces.message_repository import MessageRepository
from devassist.application.services.chat_orchestrator import ChatOrchestrator
from devassist.application.services.prompts import COMPRESSED_MARKER, SUMMARY_PROMPT
from devassist.domain.entities import Message, MessageRole, ModelConfig
from devassist.domain.exceptions import ContextCompressionError

logger = logging.getLogger(__name__)


class CompressionState(str, Enum):
    """Lifecycle states of a compression run."""

    IDLE = "idle"
    SUMMARIZING = "summarizing"
    SWAPPING = "swapping"
    FAILED = "failed"


class ContextCompressor:
    """Application service — summarizes and truncates a project's conversation."""

    def __init__(self, orchestrator: ChatOrchestrator, repository: MessageRepository):
        self._orchestrator = orchestrator
        self._repository = repository
        self._states: dict[str, CompressionState] = {}

    def state(self, project_id: str) -> CompressionState:
        """Current compression state of one project's conversation."""
        return self._states.get(project_id, CompressionState.IDLE)

    def _transition(self, project_id: str, state: CompressionState) -> None:
        logger.info(
            "Compression for project %s: %s -> %s",
            project_id,
            self.state(project_id).value,
            state.value,
        )
        if state is CompressionState.IDLE:
            self._states.pop(project_id, None)
        else:
            self._states[project_id] = state

    async def compress(self, project_id: str, model_config: ModelConfig) -> Message | None:
        """Compress the project's conversation into a single summary message.

        Returns:
            The stored summary message, or None if there was nothing to compress.

        Raises:
            ContextCompressionError: If the summarization call failed. No
                messages are deleted in that case.
        """
        history = await self._repository.list_messages(project_id)
        if not history:
            logger.info("Compression for project %s skipped: no messages", project_id)
            return None

        self._transition(project_id, CompressionState.SUMMARIZING)
        request_history = [
            *history,
            Message(project_id=project_id, role=MessageRole.USER, content=SUMMARY_PROMPT),
        ]

        try:
            result = await self._orchestrator.complete(
                project_id, request_history, model_config, documents=[]
            )
        except Exception as exc:
            self._transition(project_id, CompressionState.FAILED)
            logger.error("Compression for project %s failed: %s", project_id, exc)
            self._transition(project_id, CompressionState.IDLE)
            raise ContextCompressionError(project_id, str(exc)) from exc

        self._transition(project_id, CompressionState.SWAPPING)
        summary = Message(
            project_id=project_id,
            role=MessageRole.ASSISTANT,
            content=f"{COMPRESSED_MARKER}\n\n{result.text}",
        )
        summary.apply_usage(result.usage)

        try:
            await self._repository.replace_all_messages(project_id, summary)
        finally:
            self._transition(project_id, CompressionState.IDLE)

        logger.info(
            "Compressed %d message(s) for project %s into one summary",
            len(history),
            project_id,
        )
        return summary
