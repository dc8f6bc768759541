"""Dependency wiring — connects infrastructure adapters to application services."""

import httpx

from devassist.application.interfaces import ChatProvider, MessageRepository
from devassist.application.services import (
    ChatOrchestrator,
    ContextCompressor,
    ConversationService,
)
from devassist.config import Settings, get_settings
from devassist.domain.entities import ProviderKind
from devassist.infrastructure.llm import GeminiClient, OpenAICompatibleClient


def build_provider(
    kind: ProviderKind,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ChatProvider:
    """Create the adapter for a provider kind."""
    settings = settings or get_settings()
    if kind is ProviderKind.GEMINI:
        return GeminiClient(
            api_base_url=settings.gemini_api_base_url,
            http_client=http_client,
            timeout=settings.http_timeout_seconds,
        )
    return OpenAICompatibleClient(
        http_client=http_client,
        timeout=settings.http_timeout_seconds,
    )


def get_chat_orchestrator(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ChatOrchestrator:
    """Provides a ChatOrchestrator that builds adapters on demand."""
    settings = settings or get_settings()
    return ChatOrchestrator(
        provider_factory=lambda kind: build_provider(kind, settings, http_client)
    )


def get_context_compressor(
    repository: MessageRepository,
    orchestrator: ChatOrchestrator | None = None,
) -> ContextCompressor:
    """Provides a ContextCompressor bound to a message repository."""
    return ContextCompressor(orchestrator or get_chat_orchestrator(), repository)


def get_conversation_service(
    repository: MessageRepository,
    orchestrator: ChatOrchestrator | None = None,
) -> ConversationService:
    """Provides a ConversationService bound to a message repository."""
    return ConversationService(repository, orchestrator or get_chat_orchestrator())
