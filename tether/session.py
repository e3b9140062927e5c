"""Conversation session — ordered history owned by the orchestration loop."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from .types import Message


class Session:
    """Append-only message history.

    Only the orchestration loop writes; everyone else reads the tuple returned
    by ``messages``. ``rollback`` exists so a cancelled turn can drop what it
    appended and leave only fully completed turns behind.
    """

    def __init__(self, document_name: str | None = None) -> None:
        self.id = uuid.uuid4().hex
        self.document_name = document_name
        self.created_at = datetime.now(timezone.utc)
        self._messages: list[Message] = []

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def add_message(self, message: Message) -> None:
        self._messages.append(message)

    def mark(self) -> int:
        return len(self._messages)

    def rollback(self, mark: int) -> list[Message]:
        if mark < 0 or mark > len(self._messages):
            raise ValueError(f"Invalid session mark {mark}")
        dropped = self._messages[mark:]
        del self._messages[mark:]
        return dropped

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return f"Session(id={self.id[:8]}, messages={len(self._messages)})"
