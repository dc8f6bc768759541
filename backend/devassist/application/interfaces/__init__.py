from .chat_provider import ChatProvider, ProviderRequest
from .message_repository import MessageRepository

__all__ = [
    "ChatProvider",
    "MessageRepository",
    "ProviderRequest",
]
