"""
Process-wide bot components.

Everything with state (conversation store, prioritized set, catalog
availability, outbound queue, store-status cache) is created once per
process by build_runtime() and hung on app.state.runtime. Routes get it
through the get_runtime dependency; nothing is a module-level global.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .catalog import Catalog
from .config import RESTAURANT_NAME
from .message_processor import MessageProcessor
from .services.order import OrderBackendClient, OrderFinalizer
from .services.outbox import OutboundQueue
from .services.priority import PriorityRegistry
from .services.session import ConversationStore
from .services.store_status import StoreStatusService
from .tasks import MessageBuilder, OrderStateMachine
from .whatsapp import WhatsAppSender

logger = logging.getLogger(__name__)


@dataclass
class BotRuntime:
    catalog: Catalog
    conversations: ConversationStore
    store_status: StoreStatusService
    priority: PriorityRegistry
    outbox: OutboundQueue
    sender: WhatsAppSender
    message_builder: MessageBuilder
    state_machine: OrderStateMachine
    processor: MessageProcessor

    def send_queued(self, recipient: str, text: str) -> bool:
        """Outbox drain callback."""
        return self.sender.send_text(recipient, text).ok

    def send_agent_follow_up(self, conversation_id: str) -> None:
        self.sender.send_text(conversation_id, self.message_builder.build_agent_follow_up())


def build_runtime(
    catalog: Optional[Catalog] = None,
    sender: Optional[WhatsAppSender] = None,
    store_status: Optional[StoreStatusService] = None,
    backend: Optional[OrderBackendClient] = None,
    priority: Optional[PriorityRegistry] = None,
    restaurant_name: str = RESTAURANT_NAME,
) -> BotRuntime:
    """Wire the components; any of them can be passed in (tests do)."""
    if catalog is None:
        catalog = Catalog()
    if sender is None:
        sender = WhatsAppSender(restaurant_name=restaurant_name)
    if store_status is None:
        store_status = StoreStatusService()
    if backend is None:
        backend = OrderBackendClient()
    # PriorityRegistry defines __len__, so an empty one is falsy
    if priority is None:
        priority = PriorityRegistry()
    message_builder = MessageBuilder(catalog, restaurant_name)
    conversations = ConversationStore()
    outbox = OutboundQueue()
    finalizer = OrderFinalizer(backend, message_builder)

    state_machine = OrderStateMachine(
        catalog=catalog,
        store=conversations,
        finalizer=finalizer,
        store_status=store_status,
        priority=priority,
        message_builder=message_builder,
    )
    runtime = BotRuntime(
        catalog=catalog,
        conversations=conversations,
        store_status=store_status,
        priority=priority,
        outbox=outbox,
        sender=sender,
        message_builder=message_builder,
        state_machine=state_machine,
        processor=MessageProcessor(state_machine, sender),
    )
    if priority.send_follow_up is None:
        priority.send_follow_up = runtime.send_agent_follow_up

    if not sender.is_configured():
        logger.warning("Twilio not configured - WhatsApp messages will only be logged")
    return runtime


def get_runtime(request: Request) -> BotRuntime:
    return request.app.state.runtime
