"""
Admin Schemas for Burger Bot
============================

Pydantic models for the staff-facing admin endpoints: prioritized
conversations, the outbound message queue, delivery notifications, the
store-status cache and item availability (the "86" list).
"""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class PrioritizedConversationOut(BaseModel):
    conversation_id: str
    wait_minutes: int


class PrioritizedListResponse(BaseModel):
    conversations: List[PrioritizedConversationOut]
    total: int


class EnqueueMessageRequest(BaseModel):
    recipient: str = Field(..., min_length=1, description="Conversation id or phone number")
    text: str = Field(..., min_length=1)


class EnqueueMessageResponse(BaseModel):
    queued: bool = True
    queue_size: int


class DeliveryNotificationRequest(BaseModel):
    """Either display_id or daily_sequence must be given."""
    phone: str = Field(..., min_length=8)
    customer_name: str = Field(..., min_length=1)
    display_id: Optional[str] = None
    daily_sequence: Optional[int] = Field(None, ge=1)
    address: Optional[str] = None

    @model_validator(mode="after")
    def _require_order_reference(self):
        if not self.display_id and self.daily_sequence is None:
            raise ValueError("display_id or daily_sequence is required")
        return self


class DeliveryNotificationResponse(BaseModel):
    sent: bool
    display_id: str
    recipient: str
    mock: bool = False


class StoreStatusOut(BaseModel):
    is_open: bool
    next_open_time: Optional[str] = None
    message: Optional[str] = None
    last_checked: Optional[str] = None


class AvailabilityUpdate(BaseModel):
    available: bool


class MenuItemOut(BaseModel):
    id: str
    name: str
    price: float
    category: str
    available: bool


class OrderLineOut(BaseModel):
    id: str
    item_id: str
    name: str
    quantity: int
    unit_price: float
    total: float


class ConversationOut(BaseModel):
    """Read-only view of a live conversation, for staff taking over."""
    conversation_id: str
    state: str
    prioritized: bool
    customer_name: str = ""
    order_type: Optional[str] = None
    payment_method: Optional[str] = None
    delivery_address: Optional[str] = None
    lines: List[OrderLineOut] = Field(default_factory=list)
    total: float
