"""
Prioritized conversations (customer asked for a human).

When a customer chooses "Falar com atendente" the conversation is flagged
so staff can find it on the admin surface, oldest request first. A
follow-up reminder is scheduled per conversation and is cancelled when the
flag is cleared (conversation resolved, exited or finalized). If the timer
still fires after the flag is gone, it does nothing.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..config import AGENT_FOLLOW_UP_SECONDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrioritizedConversation:
    conversation_id: str
    requested_at: float  # epoch seconds

    def wait_minutes(self, now: float) -> int:
        return int((now - self.requested_at) // 60)


class PriorityRegistry:
    """
    Set of conversations waiting for a human agent.

    Args:
        send_follow_up: Called with the conversation id when the reminder
            fires and the conversation is still prioritized.
        follow_up_seconds: Reminder delay.
        timer_factory: threading.Timer compatible factory (tests replace it).
        clock: Wall-clock source in epoch seconds.
    """

    def __init__(
        self,
        send_follow_up: Optional[Callable[[str], None]] = None,
        follow_up_seconds: float = AGENT_FOLLOW_UP_SECONDS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
        clock: Callable[[], float] = time.time,
    ):
        self.send_follow_up = send_follow_up
        self.follow_up_seconds = follow_up_seconds
        self.timer_factory = timer_factory
        self.clock = clock
        self._entries: Dict[str, PrioritizedConversation] = {}
        self._timers: Dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    def mark(self, conversation_id: str) -> None:
        """Flag a conversation and (re)schedule its follow-up reminder."""
        with self._lock:
            if conversation_id not in self._entries:
                self._entries[conversation_id] = PrioritizedConversation(conversation_id, self.clock())
            previous = self._timers.pop(conversation_id, None)
            if previous is not None:
                previous.cancel()
            if self.send_follow_up is not None:
                timer = self.timer_factory(self.follow_up_seconds, self._fire, args=(conversation_id,))
                timer.daemon = True
                self._timers[conversation_id] = timer
                timer.start()
        logger.info("Conversation %s asked for an agent", conversation_id)

    def _fire(self, conversation_id: str) -> None:
        with self._lock:
            self._timers.pop(conversation_id, None)
            still_waiting = conversation_id in self._entries
        if not still_waiting:
            logger.debug("Follow-up for %s skipped, no longer prioritized", conversation_id)
            return
        try:
            self.send_follow_up(conversation_id)
        except Exception:
            logger.exception("Follow-up to %s failed", conversation_id)

    def is_prioritized(self, conversation_id: str) -> bool:
        with self._lock:
            return conversation_id in self._entries

    def clear(self, conversation_id: str) -> bool:
        """Remove the flag and cancel any pending reminder."""
        with self._lock:
            removed = self._entries.pop(conversation_id, None)
            timer = self._timers.pop(conversation_id, None)
        if timer is not None:
            timer.cancel()
        if removed is not None:
            logger.info("Conversation %s no longer prioritized", conversation_id)
        return removed is not None

    def list(self) -> list[dict]:
        """Waiting conversations, oldest first, with wait time in minutes."""
        now = self.clock()
        with self._lock:
            entries = sorted(self._entries.values(), key=lambda e: e.requested_at)
        return [
            {
                "conversation_id": entry.conversation_id,
                "wait_minutes": entry.wait_minutes(now),
                "requested_at": entry.requested_at,
            }
            for entry in entries
        ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def shutdown(self) -> None:
        """Cancel every pending reminder."""
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
