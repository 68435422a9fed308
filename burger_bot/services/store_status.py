"""
Store-status cache.

The restaurant's web backend publishes whether the store is taking orders.
The bot reads that flag before letting a customer into the menu. The value
is cached and refreshed at most once per STORE_STATUS_TTL_SECONDS; when the
service can't be reached the store is assumed open.
"""

import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Optional

import requests

from ..config import HTTP_TIMEOUT_SECONDS, STORE_STATUS_TTL_SECONDS, STORE_STATUS_URL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreStatus:
    """Snapshot of the store's open/closed flag."""
    is_open: bool = True
    next_open_time: Optional[str] = None
    message: Optional[str] = None
    last_checked: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "is_open": self.is_open,
            "next_open_time": self.next_open_time,
            "message": self.message,
            "last_checked": self.last_checked.isoformat() if self.last_checked else None,
        }


class StoreStatusService:
    """
    Cached reader of the store-status endpoint.

    Concurrent refreshes are not serialised: two threads may both fetch and
    the last write wins, which is harmless.
    """

    def __init__(
        self,
        url: str = STORE_STATUS_URL,
        ttl_seconds: float = STORE_STATUS_TTL_SECONDS,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        http: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.url = url
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self.http = http or requests.Session()
        self.clock = clock
        self._status = StoreStatus()
        self._checked_at: Optional[float] = None

    @property
    def cached(self) -> StoreStatus:
        """Last known status without triggering a refresh."""
        return self._status

    def _is_stale(self) -> bool:
        return self._checked_at is None or self.clock() - self._checked_at >= self.ttl_seconds

    def refresh(self) -> StoreStatus:
        """
        Fetch the status now.

        A non-2xx answer keeps the previous values. Network errors and
        unreadable bodies mark the store open. Either way the check time is
        recorded so the service is not hammered while it is down.
        """
        self._checked_at = self.clock()
        now = datetime.now(timezone.utc)
        try:
            response = self.http.get(self.url, timeout=self.timeout)
            if not response.ok:
                logger.warning("Store status returned HTTP %s; keeping cached value", response.status_code)
                self._status = replace(self._status, last_checked=now)
                return self._status
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Store status check failed, assuming open: %s", e)
            self._status = replace(self._status, is_open=True, last_checked=now)
            return self._status

        if not isinstance(data, dict):
            logger.warning("Store status payload is not an object, assuming open")
            self._status = replace(self._status, is_open=True, last_checked=now)
            return self._status

        self._status = StoreStatus(
            # Only an explicit false closes the store
            is_open=data.get("isOpen") is not False,
            next_open_time=data.get("nextOpenTime") or None,
            message=data.get("message") or None,
            last_checked=now,
        )
        logger.debug("Store status refreshed: open=%s", self._status.is_open)
        return self._status

    def get_status(self) -> StoreStatus:
        if self._is_stale():
            return self.refresh()
        return self._status

    def is_open(self) -> bool:
        return self.get_status().is_open
