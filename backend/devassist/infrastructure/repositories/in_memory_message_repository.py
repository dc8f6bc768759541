"""In-memory message repository — reference implementation of MessageRepository.

Suitable for a single process: all operations are serialized with an
asyncio.Lock, and replacing a conversation swaps in a fully built list.
"""

import asyncio
from collections import defaultdict

from devassist.application.interfaces.message_repository import MessageRepository
from devassist.domain.entities import Message


class InMemoryMessageRepository(MessageRepository):
    """Infrastructure adapter — keeps conversations in process memory."""

    def __init__(self) -> None:
        self._messages: dict[str, list[Message]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def list_messages(self, project_id: str) -> list[Message]:
        async with self._lock:
            return list(self._messages.get(project_id, []))

    async def add_message(self, message: Message) -> Message:
        async with self._lock:
            self._messages[message.project_id].append(message)
            return message

    async def delete_all_messages(self, project_id: str) -> int:
        async with self._lock:
            return len(self._messages.pop(project_id, []))

    async def replace_all_messages(self, project_id: str, message: Message) -> None:
        if message.project_id != project_id:
            raise ValueError(
                f"Message belongs to project '{message.project_id}', not '{project_id}'"
            )
        async with self._lock:
            self._messages[project_id] = [message]
