from datetime import datetime
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

import burger_bot.config as config_mod
from burger_bot.app_factory import create_app
from burger_bot.catalog import Catalog
from burger_bot.routes import limiter
from burger_bot.runtime import build_runtime
from burger_bot.services.order import (
    BackendOrderResponse,
    OrderBackendError,
    OrderFinalizer,
)
from burger_bot.services.priority import PriorityRegistry
from burger_bot.services.session import ConversationStore
from burger_bot.services.store_status import StoreStatus
from burger_bot.tasks import MessageBuilder, OrderStateMachine
from burger_bot.whatsapp import WhatsAppSender

# Test admin credentials
TEST_ADMIN_USERNAME = "testadmin"
TEST_ADMIN_PASSWORD = "testpassword123"


# =============================================================================
# Fakes
# =============================================================================

class FakeStoreStatus:
    """Store-status stand-in; flip .status to open or close the store."""

    def __init__(self, status: StoreStatus = None):
        self.status = status or StoreStatus(is_open=True)
        self.refresh_calls = 0

    @property
    def cached(self) -> StoreStatus:
        return self.status

    def refresh(self) -> StoreStatus:
        self.refresh_calls += 1
        return self.status

    def get_status(self) -> StoreStatus:
        return self.status

    def is_open(self) -> bool:
        return self.status.is_open

    def close(self, message=None, next_open_time=None):
        self.status = StoreStatus(is_open=False, message=message, next_open_time=next_open_time)


class FakeOrderBackend:
    """Records submitted payloads and answers with a canned response."""

    def __init__(self):
        self.payloads = []
        self.response = BackendOrderResponse(
            success=True,
            order_id="abc123def",
            daily_sequence=7,
            customer_total_orders=3,
        )
        self.error = None

    def submit(self, payload):
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.response

    def fail_with(self, reason="backend down"):
        self.error = OrderBackendError(reason, status_code=500)


class FakeTimer:
    """threading.Timer look-alike that only fires when told to."""

    def __init__(self, interval, function, args=()):
        self.interval = interval
        self.function = function
        self.args = args
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args)


class FakeTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, function, args=()):
        timer = FakeTimer(interval, function, args)
        self.timers.append(timer)
        return timer


class FakeTwilioMessages:
    def __init__(self):
        self.calls = []
        self.error = None
        self.content_error = None

    def create(self, **kwargs):
        if "content_sid" in kwargs and self.content_error is not None:
            raise self.content_error
        if self.error is not None:
            raise self.error
        self.calls.append(kwargs)
        return SimpleNamespace(sid=f"SM{len(self.calls):04d}")


class FakeTwilioClient:
    def __init__(self):
        self.messages = FakeTwilioMessages()


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def catalog():
    return Catalog()


@pytest.fixture
def store_status():
    return FakeStoreStatus()


@pytest.fixture
def backend():
    return FakeOrderBackend()


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def follow_ups():
    """Conversation ids that received the agent follow-up reminder."""
    return []


@pytest.fixture
def priority(timers, follow_ups):
    return PriorityRegistry(
        send_follow_up=follow_ups.append,
        follow_up_seconds=30,
        timer_factory=timers,
    )


@pytest.fixture
def conversations():
    return ConversationStore()


@pytest.fixture
def machine(catalog, conversations, store_status, backend, priority):
    """State machine wired with fakes; the clock is fixed at 13:00 (afternoon)."""
    builder = MessageBuilder(catalog, "Tamboril Burguer")
    return OrderStateMachine(
        catalog=catalog,
        store=conversations,
        finalizer=OrderFinalizer(backend, builder),
        store_status=store_status,
        priority=priority,
        message_builder=builder,
        clock=lambda: datetime(2026, 3, 14, 13, 0),
    )


@pytest.fixture
def twilio():
    return FakeTwilioClient()


@pytest.fixture
def sender(twilio):
    return WhatsAppSender(
        account_sid=None,
        auth_token=None,
        from_number="whatsapp:+14155238886",
        quick_reply_content_sid="HX0000000000000000000000000000test",
        restaurant_name="Tamboril Burguer",
        client=twilio,
    )


@pytest.fixture
def runtime(catalog, sender, store_status, backend, priority):
    return build_runtime(
        catalog=catalog,
        sender=sender,
        store_status=store_status,
        backend=backend,
        priority=priority,
        restaurant_name="Tamboril Burguer",
    )


@pytest.fixture
def client(runtime, monkeypatch):
    """FastAPI TestClient around a runtime wired with fakes.

    Sets test admin credentials and disables rate limiting.
    """
    monkeypatch.setattr(config_mod, "ADMIN_USERNAME", TEST_ADMIN_USERNAME)
    monkeypatch.setattr(config_mod, "ADMIN_PASSWORD", TEST_ADMIN_PASSWORD)
    monkeypatch.setattr(limiter, "enabled", False)

    app = create_app(runtime, start_background=False)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_auth():
    """Returns HTTP Basic Auth tuple for admin endpoints."""
    return (TEST_ADMIN_USERNAME, TEST_ADMIN_PASSWORD)

