"""
Pydantic models for a WhatsApp conversation and its order.

- Conversation (one per customer address)
  - Order
    - OrderLine (one per menu selection round or extracted phrase)
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import MAX_QUANTITY, MIN_QUANTITY
from .schemas import ConversationState, OrderType, PaymentMethod


class OrderLine(BaseModel):
    """
    One catalog item in the order.

    unit_price is a snapshot in centavos taken when the line was added, so
    later catalog price changes do not touch lines already in the order.
    """
    model_config = ConfigDict(frozen=True)

    id: str  # display-only, e.g. "hamburguer-1"
    item_id: str
    name: str
    quantity: int = Field(ge=MIN_QUANTITY, le=MAX_QUANTITY)
    unit_price: int = Field(ge=0)

    @property
    def total(self) -> int:
        return self.quantity * self.unit_price


class Order(BaseModel):
    """Cart plus customer, payment and delivery details for one conversation."""

    customer_name: str = ""
    customer_phone: str = ""
    lines: list[OrderLine] = Field(default_factory=list)
    payment_method: Optional[PaymentMethod] = None
    order_type: Optional[OrderType] = None
    delivery_address: Optional[str] = None

    # Two-step selections (type first, quantity second). At most one is set.
    pending_item_type: Optional[str] = None
    pending_beverage: Optional[str] = None

    # Total captured at finalize time; the live total is always derived
    total_snapshot: Optional[int] = None

    @property
    def total(self) -> int:
        return sum(line.total for line in self.lines)

    @property
    def has_items(self) -> bool:
        return bool(self.lines)

    def add_line(self, item_id: str, name: str, quantity: int, unit_price: int, prefix: str) -> OrderLine:
        """Append a new line; prefix feeds the display id ("suco" -> "suco-3")."""
        line = OrderLine(
            id=f"{prefix}-{len(self.lines) + 1}",
            item_id=item_id,
            name=name,
            quantity=quantity,
            unit_price=unit_price,
        )
        self.lines.append(line)
        return line

    def select_item_type(self, item_id: str) -> None:
        self.pending_beverage = None
        self.pending_item_type = item_id

    def select_beverage(self, item_id: str) -> None:
        self.pending_item_type = None
        self.pending_beverage = item_id

    def clear_pending(self) -> None:
        self.pending_item_type = None
        self.pending_beverage = None


class Conversation(BaseModel):
    """A customer's ongoing dialogue, keyed by their transport address."""

    conversation_id: str
    state: ConversationState = ConversationState.START
    order: Order = Field(default_factory=Order)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
