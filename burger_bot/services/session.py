"""
Conversation Store for Burger Bot
=================================

This module keeps the state of every WhatsApp conversation in memory:
one Conversation record (dialogue state + accumulated order) per
customer address.

Lifecycle:
----------
- Created lazily on the first inbound message from a new address, in the
  START state with an empty order.
- Deleted on the exit command ("sair"/"encerrar") or after the order is
  successfully submitted to the backend.
- Otherwise kept for the life of the process. Nothing is persisted; a
  restart starts every customer from scratch.

Thread Safety:
--------------
FastAPI runs sync endpoints in a thread pool, so two messages can be
handled at the same time. The store holds:

- one lock guarding the map itself (insert/delete/lookup), and
- one lock per conversation id, held by the dialogue controller for the
  whole read-modify-write of that conversation. A key lock is dropped once
  nobody holds or waits on it and the conversation no longer exists, so
  ended conversations and unknown ids leave nothing behind.

Different customers never wait on each other; two messages from the same
customer are processed one after the other.

Usage:
------
    store = ConversationStore()

    with store.lock(conversation_id):
        conversation = store.get_or_create(conversation_id)
        conversation.state = ConversationState.MENU
        ...
        store.delete(conversation_id)
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from ..tasks.models import Conversation


logger = logging.getLogger(__name__)


class _KeyLock:
    """Per-conversation lock plus the number of threads holding or waiting on it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.RLock()
        self.users = 0


class ConversationStore:
    """In-memory map from conversation id to Conversation, with per-key locks."""

    def __init__(self):
        self._conversations: Dict[str, Conversation] = {}
        self._key_locks: Dict[str, _KeyLock] = {}
        self._map_lock = threading.Lock()

    @contextmanager
    def lock(self, conversation_id: str) -> Iterator[None]:
        """Hold the lock of one conversation for a read-modify-write."""
        with self._map_lock:
            entry = self._key_locks.get(conversation_id)
            if entry is None:
                entry = _KeyLock()
                self._key_locks[conversation_id] = entry
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._map_lock:
                entry.users -= 1
                if entry.users == 0 and conversation_id not in self._conversations:
                    self._key_locks.pop(conversation_id, None)

    def get(self, conversation_id: str) -> Optional[Conversation]:
        with self._map_lock:
            return self._conversations.get(conversation_id)

    def get_or_create(self, conversation_id: str) -> Conversation:
        """
        Return the conversation for this id, creating a fresh one at START
        with an empty order if none exists.
        """
        with self._map_lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                conversation = Conversation(conversation_id=conversation_id)
                self._conversations[conversation_id] = conversation
                logger.info("New conversation: %s", conversation_id)
            return conversation

    def delete(self, conversation_id: str) -> bool:
        """Remove a conversation. Returns False if it did not exist."""
        with self._map_lock:
            removed = self._conversations.pop(conversation_id, None)
            entry = self._key_locks.get(conversation_id)
            if entry is not None and entry.users == 0:
                del self._key_locks[conversation_id]
        if removed is not None:
            logger.info("Conversation removed: %s", conversation_id)
        return removed is not None

    def __contains__(self, conversation_id: str) -> bool:
        with self._map_lock:
            return conversation_id in self._conversations

    def __len__(self) -> int:
        with self._map_lock:
            return len(self._conversations)

    def lock_count(self) -> int:
        """Number of per-conversation locks currently kept."""
        with self._map_lock:
            return len(self._key_locks)
