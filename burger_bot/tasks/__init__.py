"""
Conversation Task System for WhatsApp Order Capture.

This package holds the dialogue controller and everything it needs:
- Conversation / Order / OrderLine models (pydantic)
- ConversationState, OrderType and PaymentMethod enums
- Deterministic parsers, including the natural-language order extractor
- MessageBuilder for all customer-facing text
- OrderStateMachine, the per-state dispatch controller
"""

from .models import (
    Conversation,
    Order,
    OrderLine,
)

from .schemas import (
    ConversationState,
    OrderType,
    OutboundMessage,
    PaymentMethod,
    QuickReply,
    StateMachineResult,
)

from .message_builder import MessageBuilder
from .checkout_handler import CheckoutHandler
from .state_machine import OrderStateMachine

__all__ = [
    # Models
    "Conversation",
    "Order",
    "OrderLine",
    # Schemas
    "ConversationState",
    "OrderType",
    "OutboundMessage",
    "PaymentMethod",
    "QuickReply",
    "StateMachineResult",
    # Controller
    "MessageBuilder",
    "CheckoutHandler",
    "OrderStateMachine",
]
