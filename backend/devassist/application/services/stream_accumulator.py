"""Stream accumulator — merges streamed fragments into a message list."""

from devassist.domain.entities import Message, MessageRole, TokenUsage


class StreamAccumulator:
    """Applies the append-vs-new-message rule for one streamed reply.

    The first fragment of a turn creates an assistant message at the end
    of ``messages``; later fragments are appended to it as long as it is
    still the most recent message. The list is mutated in place.
    """

    def __init__(self, project_id: str, messages: list[Message]):
        self._project_id = project_id
        self._messages = messages
        self._message: Message | None = None

    @property
    def message(self) -> Message | None:
        """The assistant message of the in-flight turn, if any fragment arrived."""
        return self._message

    def feed(self, text: str) -> Message:
        """Merge one fragment and return the message it landed in."""
        last = self._messages[-1] if self._messages else None
        if last is not None and last is self._message:
            last.content += text
            return last

        self._message = Message(
            project_id=self._project_id,
            role=MessageRole.ASSISTANT,
            content=text,
        )
        self._messages.append(self._message)
        return self._message

    def finish(self, usage: TokenUsage) -> Message:
        """Record the final usage on the turn's assistant message.

        A reply that produced no text still gets an (empty) assistant
        message so the usage has somewhere to live.
        """
        message = self._message or self.feed("")
        message.apply_usage(usage)
        return message
