"""Domain entities for project conversations — framework-independent."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class MessageRole(str, Enum):
    """Roles a persisted conversation message can have."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class TokenUsage:
    """Token usage statistics reported by a provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class Message:
    """A single message in a project conversation.

    Token fields stay ``None`` until the reply they belong to has finished;
    user messages never carry them.
    """

    project_id: str
    role: MessageRole
    content: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def apply_usage(self, usage: TokenUsage) -> None:
        """Record the usage of the call that produced this message."""
        self.prompt_tokens = usage.prompt_tokens
        self.completion_tokens = usage.completion_tokens


@dataclass(frozen=True)
class StreamFragment:
    """One incremental text delta received while streaming.

    ``usage`` is only set on fragments whose provider chunk reported it;
    adapters always finish a stream with a fragment carrying usage.
    """

    text: str = ""
    usage: TokenUsage | None = None


@dataclass
class ChatResult:
    """Outcome of one chat call, streamed or not."""

    text: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    model: str = ""
    provider: str = ""
