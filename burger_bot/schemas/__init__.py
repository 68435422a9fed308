"""
API Schemas for Burger Bot.

Request/response models for the HTTP endpoints, grouped by router.
"""

from .chat import (
    ChatMessageRequest,
    ChatMessageResponse,
    QuickReplyOut,
    ReplyOut,
)
from .admin import (
    AvailabilityUpdate,
    ConversationOut,
    DeliveryNotificationRequest,
    DeliveryNotificationResponse,
    EnqueueMessageRequest,
    EnqueueMessageResponse,
    MenuItemOut,
    OrderLineOut,
    PrioritizedConversationOut,
    PrioritizedListResponse,
    StoreStatusOut,
)

__all__ = [
    "ChatMessageRequest",
    "ChatMessageResponse",
    "QuickReplyOut",
    "ReplyOut",
    "AvailabilityUpdate",
    "ConversationOut",
    "DeliveryNotificationRequest",
    "DeliveryNotificationResponse",
    "EnqueueMessageRequest",
    "EnqueueMessageResponse",
    "MenuItemOut",
    "OrderLineOut",
    "PrioritizedConversationOut",
    "PrioritizedListResponse",
    "StoreStatusOut",
]
