"""Model configuration entity and provider dispatch."""

from dataclasses import dataclass, field
from enum import Enum

NATIVE_HOST_MARKER = "generativelanguage.googleapis.com"
NATIVE_MODEL_MARKER = "gemini"


class ProviderKind(str, Enum):
    """Wire protocols the chat core can speak."""

    GEMINI = "gemini"
    OPENAI_COMPATIBLE = "openai_compatible"


@dataclass(frozen=True)
class ModelConfig:
    """Credentials and endpoint for one model, immutable for the duration of a call."""

    model_name: str
    base_url: str
    api_key: str = field(default="", repr=False)

    def masked_api_key(self) -> str:
        """Render the API key safely for logs (``abcd…wxyz``)."""
        if len(self.api_key) <= 8:
            return "***"
        return f"{self.api_key[:4]}…{self.api_key[-4:]}"


def resolve_provider_kind(config: ModelConfig) -> ProviderKind:
    """Pick the wire protocol for a model config.

    The native protocol is used when either the base URL points at the
    native host or the model name carries the native model family name.
    Everything else is treated as OpenAI-compatible.
    """
    if (
        NATIVE_HOST_MARKER in config.base_url.lower()
        or NATIVE_MODEL_MARKER in config.model_name.lower()
    ):
        return ProviderKind.GEMINI
    return ProviderKind.OPENAI_COMPATIBLE
