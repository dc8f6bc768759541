"""Abstract repository interface for project conversation messages."""

from abc import ABC, abstractmethod

from devassist.domain.entities import Message


class MessageRepository(ABC):
    """Port — defines persistence operations for conversation messages."""

    @abstractmethod
    async def list_messages(self, project_id: str) -> list[Message]:
        """Return the project's messages in creation order."""
        ...

    @abstractmethod
    async def add_message(self, message: Message) -> Message:
        """Append a message to its project's conversation."""
        ...

    @abstractmethod
    async def delete_all_messages(self, project_id: str) -> int:
        """Delete every message of a project.

        Returns:
            The number of deleted messages.
        """
        ...

    @abstractmethod
    async def replace_all_messages(self, project_id: str, message: Message) -> None:
        """Atomically replace a project's conversation with a single message.

        Implementations must never leave the project without its old
        messages unless the new message has been stored.
        """
        ...
