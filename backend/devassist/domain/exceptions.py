"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class ChatProviderError(Exception):
    """Raised when a chat provider call fails.

    Provider-agnostic — works for the native Gemini API and any
    OpenAI-compatible backend.
    """

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")


class ProviderTransportError(ChatProviderError):
    """Network failure, timeout or non-2xx status from the provider.

    ``status_code`` is 0 when no response was received at all.
    """


class MalformedProviderResponseError(ChatProviderError):
    """The provider answered, but the body is not what the protocol promises."""


class ContextCompressionError(Exception):
    """Raised when summarizing a conversation fails.

    The conversation is left exactly as it was before the attempt.
    """

    def __init__(self, project_id: str, message: str):
        self.project_id = project_id
        self.message = message
        super().__init__(f"Context compression failed for project '{project_id}': {message}")
