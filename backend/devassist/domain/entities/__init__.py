from .chat_message import ChatResult, Message, MessageRole, StreamFragment, TokenUsage
from .document import Attachment, ProjectDocument, parse_data_uri
from .model_config import ModelConfig, ProviderKind, resolve_provider_kind

__all__ = [
    "Attachment",
    "ChatResult",
    "Message",
    "MessageRole",
    "ModelConfig",
    "ProjectDocument",
    "ProviderKind",
    "StreamFragment",
    "TokenUsage",
    "parse_data_uri",
    "resolve_provider_kind",
]
