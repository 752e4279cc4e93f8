"""Bounded client-side session log.

The server keeps no memory: every analysis exchange is recorded on the client
under a single well-known key and trimmed to the most recent messages.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Callable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ecoshield.core.storage import KeyValueStore


logger = logging.getLogger(__name__)

SESSION_KEY = "ecoshield-session"
MAX_MESSAGES = 10


def now_ms() -> int:
    return int(time.time() * 1000)


class ChatMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: Literal["user", "assistant"]
    content: str
    timestamp: int = Field(default_factory=now_ms)
    image_data: Optional[str] = Field(default=None, alias="imageData")


class SessionData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: List[ChatMessage] = Field(default_factory=list)
    last_active: int = Field(default_factory=now_ms, alias="lastActive")


class SessionLog:
    """Read, append to and clear the persisted session record.

    ``append`` is a read-modify-write against the store with no locking. Two
    writers overlapping on the same store (two processes, or two analyses
    racing) can lose one side's messages: the last ``set`` wins.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = SESSION_KEY,
        limit: int = MAX_MESSAGES,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.store = store
        self.key = key
        self.limit = limit
        self._clock = clock or now_ms

    def session(self) -> SessionData:
        """Return the stored record, or an empty one if absent or unreadable."""
        stored = self.store.get(self.key)
        if not stored:
            return SessionData(last_active=self._clock())
        try:
            return SessionData.model_validate(json.loads(stored))
        except (json.JSONDecodeError, ValidationError, TypeError) as exc:
            logger.debug("Ignoring unreadable session record %r: %s", self.key, exc)
            return SessionData(last_active=self._clock())

    def read(self) -> List[ChatMessage]:
        return self.session().messages

    def _extend(self, *new: ChatMessage) -> None:
        # One read and one set: either every new message lands or none does
        current = self.session()
        messages = [*current.messages, *new]
        if len(messages) > self.limit:
            messages = messages[-self.limit:]
        updated = SessionData(messages=messages, last_active=self._clock())
        self.store.set(self.key, updated.model_dump_json(by_alias=True, exclude_none=True))

    def append(self, message: ChatMessage) -> None:
        self._extend(message)

    def record_exchange(self, user: ChatMessage, assistant: ChatMessage) -> None:
        """Append a user/assistant pair in a single write."""
        self._extend(user, assistant)

    def clear(self) -> None:
        self.store.delete(self.key)
