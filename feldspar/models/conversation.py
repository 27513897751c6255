import uuid
from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field

from feldspar.logging_config import get_logger

logger = get_logger(__name__)


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    id: Annotated[str, Field(default_factory=lambda: str(uuid.uuid4()), description="The unique identifier for the message")]
    role: Annotated[Role, Field(description="The role of the message")]
    content: Annotated[str, Field(description="The content of the message")]


class Conversation(BaseModel):
    id: Annotated[str, Field(default_factory=lambda: str(uuid.uuid4()), description="The unique identifier for the conversation")]
    messages: Annotated[list[Message], Field(default_factory=list, description="The messages in the conversation, oldest first")]

    @property
    def messages_dict(self) -> list[dict]:
        return [
            {
                "role": message.role.value,
                "content": message.content,
            }
            for message in self.messages
        ]

    def add_message(self, role: Role, content: str) -> None:
        self.messages.append(Message(role=role, content=content))

    @classmethod
    def from_history(cls, history: Iterable[Sequence[str]]) -> "Conversation":
        """Build a conversation from ``[role, content]`` entries supplied by a script.

        Entries with fewer than two items, or whose role is not one of
        system/user/assistant, are dropped without error. Items past the
        content are ignored.
        """
        conversation = cls()
        for index, entry in enumerate(history):
            if len(entry) < 2:
                logger.debug(f"Skipping history entry {index}: expected [role, content], got {len(entry)} item(s)")
                continue
            try:
                role = Role(entry[0])
            except ValueError:
                logger.debug(f"Skipping history entry {index}: unrecognized role {entry[0]!r}")
                continue
            conversation.add_message(role, str(entry[1]))
        return conversation
