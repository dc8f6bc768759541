from .in_memory_message_repository import InMemoryMessageRepository

__all__ = [
    "InMemoryMessageRepository",
]
