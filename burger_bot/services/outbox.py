"""
Outbound message queue.

Staff can queue a message for a customer from the admin surface. The queue
is drained on a fixed interval by a background thread; messages whose send
fails are put back and retried on the next drain.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class QueuedMessage:
    recipient: str
    text: str
    attempts: int = 0
    queued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class OutboundQueue:
    """FIFO of messages waiting to be sent."""

    def __init__(self):
        self._queue: deque[QueuedMessage] = deque()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def enqueue(self, recipient: str, text: str) -> QueuedMessage:
        message = QueuedMessage(recipient=recipient, text=text)
        with self._lock:
            self._queue.append(message)
        logger.info("Message queued for %s", recipient)
        return message

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def drain(self, send: Callable[[str, str], bool]) -> int:
        """
        Try to send everything currently queued.

        send(recipient, text) returns True on success. Failed messages go
        back to the end of the queue. Returns the number sent.
        """
        with self._lock:
            batch = list(self._queue)
            self._queue.clear()

        sent = 0
        failed = []
        for message in batch:
            message.attempts += 1
            try:
                ok = send(message.recipient, message.text)
            except Exception:
                logger.exception("Queued send to %s raised", message.recipient)
                ok = False
            if ok:
                sent += 1
            else:
                failed.append(message)

        if failed:
            with self._lock:
                self._queue.extend(failed)
            logger.warning("%d queued message(s) will be retried", len(failed))
        return sent

    def start(self, send: Callable[[str, str], bool], interval_seconds: float) -> None:
        """Drain every interval_seconds on a daemon thread until stop()."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()

        def run():
            while not self._stop.wait(interval_seconds):
                self.drain(send)

        self._thread = threading.Thread(target=run, name="outbox-drain", daemon=True)
        self._thread.start()
        logger.info("Outbox drain started (every %ss)", interval_seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
