"""
Tests for the stateful services: conversation store, store-status cache,
prioritized conversations and the outbound queue.
"""

import threading
from unittest.mock import MagicMock

import requests

from burger_bot.runtime import build_runtime
from burger_bot.services.outbox import OutboundQueue
from burger_bot.services.priority import PriorityRegistry
from burger_bot.services.session import ConversationStore
from burger_bot.services.store_status import StoreStatusService
from burger_bot.tasks import ConversationState


# =============================================================================
# Conversation Store
# =============================================================================

class TestConversationStore:
    def test_get_or_create_starts_fresh(self):
        store = ConversationStore()
        conversation = store.get_or_create("c1")
        assert conversation.state == ConversationState.START
        assert not conversation.order.has_items
        assert store.get_or_create("c1") is conversation
        assert len(store) == 1

    def test_delete(self):
        store = ConversationStore()
        store.get_or_create("c1")
        assert store.delete("c1")
        assert "c1" not in store
        assert not store.delete("c1")

    def test_lock_is_reentrant(self):
        store = ConversationStore()
        with store.lock("c1"):
            with store.lock("c1"):
                store.get_or_create("c1")
        assert "c1" in store

    def test_lock_serialises_same_conversation(self):
        store = ConversationStore()
        entered = threading.Event()
        release = threading.Event()
        order = []

        def first():
            with store.lock("c1"):
                entered.set()
                release.wait(2)
                order.append("first")

        def second():
            entered.wait(2)
            with store.lock("c1"):
                order.append("second")

        threads = [threading.Thread(target=first), threading.Thread(target=second)]
        for t in threads:
            t.start()
        entered.wait(2)
        release.set()
        for t in threads:
            t.join(2)
        assert order == ["first", "second"]


# =============================================================================
# Store Status
# =============================================================================

class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def _status_response(status_code=200, body=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if json_error:
        response.json.side_effect = ValueError("bad json")
    else:
        response.json.return_value = body
    return response


def _service(http, clock=None):
    return StoreStatusService(
        url="https://backend.test/status", ttl_seconds=60, timeout=2, http=http, clock=clock or FakeClock(),
    )


class TestStoreStatusService:
    def test_open_by_default(self):
        http = MagicMock()
        service = _service(http)
        assert service.cached.is_open
        http.get.assert_not_called()

    def test_closed_with_message(self):
        http = MagicMock()
        http.get.return_value = _status_response(body={
            "isOpen": False, "nextOpenTime": "18:00", "message": "Voltamos às 18h",
        })
        status = _service(http).get_status()
        assert not status.is_open
        assert status.next_open_time == "18:00"
        assert status.message == "Voltamos às 18h"
        assert status.last_checked is not None
        http.get.assert_called_once_with("https://backend.test/status", timeout=2)

    def test_only_explicit_false_closes(self):
        http = MagicMock()
        http.get.return_value = _status_response(body={"isOpen": None})
        assert _service(http).is_open()

    def test_cached_within_ttl(self):
        http = MagicMock()
        http.get.return_value = _status_response(body={"isOpen": False})
        clock = FakeClock()
        service = _service(http, clock)
        service.get_status()
        clock.now += 59
        service.get_status()
        assert http.get.call_count == 1
        clock.now += 1
        service.get_status()
        assert http.get.call_count == 2

    def test_network_error_assumes_open(self):
        http = MagicMock()
        http.get.return_value = _status_response(body={"isOpen": False})
        clock = FakeClock()
        service = _service(http, clock)
        assert not service.is_open()

        http.get.side_effect = requests.ConnectionError("down")
        clock.now += 120
        assert service.is_open()

    def test_failed_check_is_not_retried_within_ttl(self):
        http = MagicMock()
        http.get.side_effect = requests.Timeout("slow")
        clock = FakeClock()
        service = _service(http, clock)
        service.is_open()
        clock.now += 10
        service.is_open()
        assert http.get.call_count == 1

    def test_http_error_keeps_cached_value(self):
        http = MagicMock()
        http.get.return_value = _status_response(body={"isOpen": False, "message": "Fechado"})
        clock = FakeClock()
        service = _service(http, clock)
        service.get_status()

        http.get.return_value = _status_response(status_code=500)
        clock.now += 120
        status = service.get_status()
        assert not status.is_open
        assert status.message == "Fechado"

    def test_non_json_assumes_open(self):
        http = MagicMock()
        http.get.return_value = _status_response(json_error=True)
        assert _service(http).is_open()

    def test_non_object_payload_assumes_open(self):
        http = MagicMock()
        http.get.return_value = _status_response(body=[False])
        assert _service(http).is_open()

    def test_to_dict(self):
        http = MagicMock()
        http.get.return_value = _status_response(body={"isOpen": True})
        data = _service(http).refresh().to_dict()
        assert data["is_open"] is True
        assert isinstance(data["last_checked"], str)


# =============================================================================
# Prioritized Conversations
# =============================================================================

class TestPriorityRegistry:
    def test_mark_and_list_oldest_first(self, timers):
        clock = FakeClock(0)
        registry = PriorityRegistry(send_follow_up=lambda cid: None, timer_factory=timers, clock=clock)
        registry.mark("b")
        clock.now = 60
        registry.mark("a")
        clock.now = 200
        entries = registry.list()
        assert [e["conversation_id"] for e in entries] == ["b", "a"]
        assert [e["wait_minutes"] for e in entries] == [3, 2]

    def test_mark_again_keeps_original_time_and_reschedules(self, timers):
        clock = FakeClock(0)
        registry = PriorityRegistry(send_follow_up=lambda cid: None, timer_factory=timers, clock=clock)
        registry.mark("a")
        clock.now = 100
        registry.mark("a")
        assert registry.list()[0]["requested_at"] == 0
        assert timers.timers[0].cancelled
        assert timers.timers[1].started
        assert len(registry) == 1

    def test_follow_up_fires_while_prioritized(self, timers):
        sent = []
        registry = PriorityRegistry(send_follow_up=sent.append, follow_up_seconds=30, timer_factory=timers)
        registry.mark("a")
        assert timers.timers[0].interval == 30
        assert timers.timers[0].daemon
        timers.timers[0].fire()
        assert sent == ["a"]

    def test_follow_up_skipped_after_clear(self, timers):
        sent = []
        registry = PriorityRegistry(send_follow_up=sent.append, timer_factory=timers)
        registry.mark("a")
        timer = timers.timers[0]
        assert registry.clear("a")
        assert timer.cancelled
        # A timer already running when cleared must not send either
        timer.function(*timer.args)
        assert sent == []

    def test_follow_up_errors_are_contained(self, timers):
        def boom(conversation_id):
            raise RuntimeError("twilio down")

        registry = PriorityRegistry(send_follow_up=boom, timer_factory=timers)
        registry.mark("a")
        timers.timers[0].fire()
        assert registry.is_prioritized("a")

    def test_clear_unknown(self, timers):
        registry = PriorityRegistry(timer_factory=timers)
        assert not registry.clear("nobody")

    def test_no_timer_without_callback(self, timers):
        registry = PriorityRegistry(timer_factory=timers)
        registry.mark("a")
        assert timers.timers == []

    def test_shutdown_cancels_timers(self, timers):
        registry = PriorityRegistry(send_follow_up=lambda cid: None, timer_factory=timers)
        registry.mark("a")
        registry.mark("b")
        registry.shutdown()
        assert all(t.cancelled for t in timers.timers)


# =============================================================================
# Outbound Queue
# =============================================================================

class TestOutboundQueue:
    def test_drain_sends_in_order(self):
        queue = OutboundQueue()
        queue.enqueue("a", "one")
        queue.enqueue("b", "two")
        sent = []
        assert queue.drain(lambda r, t: sent.append((r, t)) or True) == 2
        assert sent == [("a", "one"), ("b", "two")]
        assert len(queue) == 0

    def test_failed_sends_are_retried(self):
        queue = OutboundQueue()
        queue.enqueue("a", "one")
        queue.enqueue("b", "two")
        assert queue.drain(lambda r, t: r == "a") == 1
        assert len(queue) == 1
        assert queue.drain(lambda r, t: True) == 1
        assert len(queue) == 0

    def test_exceptions_count_as_failures(self):
        queue = OutboundQueue()
        message = queue.enqueue("a", "one")

        def explode(recipient, text):
            raise RuntimeError("boom")

        assert queue.drain(explode) == 0
        assert len(queue) == 1
        assert message.attempts == 1

    def test_background_drain(self):
        queue = OutboundQueue()
        done = threading.Event()

        def send(recipient, text):
            done.set()
            return True

        queue.enqueue("a", "one")
        queue.start(send, interval_seconds=0.01)
        try:
            assert done.wait(2)
        finally:
            queue.stop(timeout=2)
        assert len(queue) == 0

    def test_stop_without_start(self):
        OutboundQueue().stop()


class TestConversationLockCleanup:
    def test_ended_conversations_leave_no_locks(self):
        store = ConversationStore()
        for n in range(1000):
            cid = f"whatsapp:+55219{n:08d}"
            with store.lock(cid):
                store.get_or_create(cid)
                store.delete(cid)
        assert len(store) == 0
        assert store.lock_count() == 0

    def test_unknown_id_leaves_no_lock(self):
        store = ConversationStore()
        with store.lock("nobody"):
            assert store.get("nobody") is None
        assert store.lock_count() == 0

    def test_live_conversation_keeps_its_lock(self):
        store = ConversationStore()
        with store.lock("c1"):
            store.get_or_create("c1")
        assert store.lock_count() == 1
        store.delete("c1")
        assert store.lock_count() == 0

    def test_waiter_keeps_lock_until_done(self):
        store = ConversationStore()
        holding = threading.Event()
        release = threading.Event()
        active = []
        overlaps = []

        def body(name):
            with store.lock("c1"):
                if active:
                    overlaps.append(name)
                active.append(name)
                if name == "first":
                    store.get_or_create("c1")
                    holding.set()
                    release.wait(2)
                    store.delete("c1")
                active.remove(name)

        first = threading.Thread(target=body, args=("first",))
        first.start()
        holding.wait(2)
        second = threading.Thread(target=body, args=("second",))
        second.start()
        # arrives while "second" still waits on the lock of the deleted conversation
        third = threading.Thread(target=body, args=("third",))
        third.start()
        release.set()
        for t in (first, second, third):
            t.join(2)
        assert overlaps == []
        assert store.lock_count() == 0


# =============================================================================
# Runtime Wiring
# =============================================================================

class TestBuildRuntime:
    def test_injected_components_are_used(self, catalog, sender, store_status, backend, timers):
        registry = PriorityRegistry(timer_factory=timers)
        assert len(registry) == 0
        runtime = build_runtime(
            catalog=catalog, sender=sender, store_status=store_status, backend=backend, priority=registry,
        )
        assert runtime.priority is registry
        assert runtime.catalog is catalog
        assert runtime.sender is sender
        assert runtime.store_status is store_status
        assert registry.send_follow_up == runtime.send_agent_follow_up
