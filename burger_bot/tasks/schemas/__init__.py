"""
State Machine Schemas.

This package contains the enums and result structures used by the
conversation state machine.
"""

from .phases import ConversationState, OrderType, PaymentMethod
from .result import OutboundMessage, QuickReply, StateMachineResult

__all__ = [
    "ConversationState",
    "OrderType",
    "PaymentMethod",
    "OutboundMessage",
    "QuickReply",
    "StateMachineResult",
]
