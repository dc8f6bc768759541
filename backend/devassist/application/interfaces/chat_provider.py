"""Abstract chat provider interface — port for AI provider adapters.

Each wire protocol (native Gemini, OpenAI-compatible chat completions)
implements this interface. Requests are built first and sent second so
the outbound payload can be inspected without touching the network.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from devassist.domain.entities import (
    Attachment,
    ChatResult,
    Message,
    ModelConfig,
    StreamFragment,
)


@dataclass
class ProviderRequest:
    """A fully built provider request, ready to be sent."""

    model: str
    url: str
    stream_url: str
    payload: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict, repr=False)


class ChatProvider(ABC):
    """Port — defines what the application layer needs from any chat provider."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this provider (e.g. 'gemini')."""
        ...

    @property
    @abstractmethod
    def supported_attachment_mimes(self) -> frozenset[str]:
        """MIME types this provider accepts as inline attachments."""
        ...

    @abstractmethod
    def build_request(
        self,
        system_prompt: str,
        history: Sequence[Message],
        attachments: Sequence[Attachment],
        model_config: ModelConfig,
    ) -> ProviderRequest:
        """Translate the conversation into this provider's request shape.

        Attachments are added to the most recent user message only; when
        the history has no user message they are dropped.
        """
        ...

    @abstractmethod
    async def complete(self, request: ProviderRequest) -> ChatResult:
        """Send a non-streaming request.

        Raises:
            ProviderTransportError: On network failure or non-2xx status.
            MalformedProviderResponseError: If the body lacks expected fields.
        """
        ...

    @abstractmethod
    def stream(self, request: ProviderRequest) -> AsyncIterator[StreamFragment]:
        """Send a streaming request.

        Yields text fragments in arrival order, then one terminal fragment
        carrying the last usage the provider reported (zeros if none).
        Fragments already yielded stay with the caller if the stream fails.
        """
        ...
