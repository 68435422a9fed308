"""
Order Submission Service for Burger Bot
=======================================

This module submits finalized orders to the restaurant's order backend and
turns the backend's answer into the confirmation shown to the customer.

Key Pieces:
-----------
- OrderBackendClient: POSTs the order JSON, validates the reply with
  pydantic and raises OrderBackendError on any failure.
- OrderFinalizer: builds the payload from an Order (total, normalized
  phone, default name), calls the client and formats the confirmation or
  the generic retry message.

Order Lifecycle:
----------------
1. Customer builds the order over WhatsApp (in memory only)
2. Customer picks a payment method -> OrderFinalizer.finalize
3. Backend accepts -> confirmation is sent and the conversation is removed
4. Backend fails -> one error message, the conversation stays in
   PAYMENT_METHOD so the customer can simply pick the method again

Display Id:
-----------
The backend may return a display id ("#007"). If it doesn't, the daily
sequence number is formatted as "#NNN"; failing that, the first six
characters of the backend order id are used, upper-cased.

Estimated Time:
---------------
Backend estimate if present, else daily_sequence * MINUTES_PER_QUEUED_ORDER,
else DEFAULT_ESTIMATE_MINUTES. The customer sees a window of
[estimate, estimate + ESTIMATE_WINDOW_MINUTES].
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import requests
from pydantic import BaseModel, ConfigDict, ValidationError

from ..config import (
    DEFAULT_ESTIMATE_MINUTES,
    HTTP_TIMEOUT_SECONDS,
    MINUTES_PER_QUEUED_ORDER,
    ORDER_WEBHOOK_URL,
)
from ..tasks.message_builder import MessageBuilder
from ..tasks.models import Order
from ..tasks.parsers import normalize_phone
from ..tasks.pricing import to_reais
from ..tasks.schemas import OrderType


logger = logging.getLogger(__name__)


class OrderSubmissionError(Exception):
    """Raised when a finalized order could not be handed to the backend."""


class OrderBackendError(OrderSubmissionError):
    """The order backend was unreachable or gave an unusable answer."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason if status_code is None else f"{reason} (HTTP {status_code})")


# =============================================================================
# Backend Client
# =============================================================================

class BackendOrderResponse(BaseModel):
    """Reply of the order backend webhook."""
    model_config = ConfigDict(extra="ignore")

    success: bool
    order_id: Optional[Union[str, int]] = None
    display_id: Optional[str] = None
    daily_sequence: Optional[int] = None
    customer_total_orders: Optional[int] = None
    estimated_time: Optional[int] = None
    error: Optional[str] = None


class OrderBackendClient:
    """Thin HTTP client for the order backend webhook."""

    def __init__(
        self,
        url: str = ORDER_WEBHOOK_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        http: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.http = http or requests.Session()

    def submit(self, payload: Dict[str, Any]) -> BackendOrderResponse:
        """
        Submit an order.

        Raises:
            OrderBackendError: network error or timeout, non-2xx status,
                non-JSON body, unexpected schema, or success=false.
        """
        try:
            response = self.http.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise OrderBackendError(f"request failed: {e}") from e

        if not response.ok:
            raise OrderBackendError("backend rejected the order", status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise OrderBackendError("backend returned a non-JSON body") from e

        try:
            result = BackendOrderResponse.model_validate(body)
        except ValidationError as e:
            raise OrderBackendError(f"unexpected backend response: {e.error_count()} error(s)") from e

        if not result.success:
            raise OrderBackendError(result.error or "backend reported failure")
        if result.order_id is None and not result.display_id and not result.daily_sequence:
            raise OrderBackendError("backend response carries no order identifier")
        return result


# =============================================================================
# Finalizer
# =============================================================================

def format_display_id(daily_sequence: int) -> str:
    """Daily sequence as shown to customers and staff: 7 -> '#007'."""
    return f"#{daily_sequence:03d}"


def resolve_display_id(result: BackendOrderResponse) -> str:
    if result.display_id:
        return result.display_id
    if result.daily_sequence:
        return format_display_id(result.daily_sequence)
    return f"#{str(result.order_id)[:6].upper()}"


def estimate_minutes(result: BackendOrderResponse) -> int:
    if result.estimated_time:
        return result.estimated_time
    if result.daily_sequence:
        return result.daily_sequence * MINUTES_PER_QUEUED_ORDER
    return DEFAULT_ESTIMATE_MINUTES


@dataclass(frozen=True)
class OrderReceipt:
    """What the customer is told about an accepted order."""
    order_id: Optional[str]
    display_id: str
    daily_sequence: Optional[int] = None
    customer_total_orders: Optional[int] = None
    estimated_minutes: int = DEFAULT_ESTIMATE_MINUTES


@dataclass(frozen=True)
class FinalizeResult:
    success: bool
    message: str
    receipt: Optional[OrderReceipt] = None


def build_order_payload(order: Order, customer_name: str, customer_phone: str) -> Dict[str, Any]:
    """Backend JSON body. Money goes out in reais, two decimals."""
    order_type = order.order_type or OrderType.DINE_IN
    return {
        "customer_name": customer_name,
        "customer_phone": customer_phone,
        "items": [
            {
                "id": line.id,
                "item_id": line.item_id,
                "name": line.name,
                "quantity": line.quantity,
                "price": to_reais(line.unit_price),
            }
            for line in order.lines
        ],
        "total_price": to_reais(order.total),
        "payment_method": order.payment_method.value if order.payment_method else None,
        "order_type": order_type.value,
        "delivery_address": order.delivery_address if order_type == OrderType.DELIVERY else None,
    }


class OrderFinalizer:
    """
    Submits a completed order and formats the customer reply.

    The order is only updated (name, total snapshot) when the backend
    accepts it; on failure it is left exactly as it was so the same
    finalize can be retried.
    """

    def __init__(self, client: OrderBackendClient, message_builder: MessageBuilder):
        self.client = client
        self.message_builder = message_builder

    def finalize(self, conversation_id: str, order: Order) -> FinalizeResult:
        phone = normalize_phone(conversation_id)
        customer_name = order.customer_name or f"Cliente {phone}"
        payload = build_order_payload(order, customer_name, phone)

        try:
            result = self.client.submit(payload)
        except OrderSubmissionError as e:
            logger.error("Order submission for %s failed: %s", conversation_id, e)
            return FinalizeResult(success=False, message=self.message_builder.build_finalize_error())

        receipt = OrderReceipt(
            order_id=str(result.order_id) if result.order_id is not None else None,
            display_id=resolve_display_id(result),
            daily_sequence=result.daily_sequence,
            customer_total_orders=result.customer_total_orders,
            estimated_minutes=estimate_minutes(result),
        )

        order.customer_phone = phone
        order.customer_name = customer_name
        order.total_snapshot = order.total

        logger.info("Order created: %s (ID: %s)", receipt.display_id, receipt.order_id)
        return FinalizeResult(
            success=True,
            message=self.message_builder.build_confirmation(order, receipt),
            receipt=receipt,
        )
