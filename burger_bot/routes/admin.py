"""
Admin Routes for Burger Bot
===========================

Staff-facing endpoints, all behind HTTP Basic auth.

Endpoints:
----------
- GET    /admin/conversations/prioritized: customers waiting for a human,
         oldest first, with wait time in minutes
- DELETE /admin/conversations/prioritized/{conversation_id}: mark handled
- GET    /admin/conversations/{conversation_id}: state and cart of a live
         conversation
- POST   /admin/messages: queue a WhatsApp message (sent by the outbox drain)
- POST   /admin/notifications/out-for-delivery: tell a customer the order
         left for delivery
- GET    /admin/store-status: cached store status (?refresh=true to fetch)
- GET    /admin/menu: catalog with prices and availability
- PUT    /admin/menu/{item_id}/availability: mark an item sold out or back
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..auth import verify_admin_credentials
from ..runtime import BotRuntime, get_runtime
from ..schemas.admin import (
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
from ..services.order import format_display_id
from ..tasks.pricing import to_reais

logger = logging.getLogger(__name__)

admin_router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(verify_admin_credentials)],
)


# =============================================================================
# Prioritized Conversations
# =============================================================================

@admin_router.get("/conversations/prioritized", response_model=PrioritizedListResponse)
def list_prioritized(runtime: BotRuntime = Depends(get_runtime)) -> PrioritizedListResponse:
    entries = runtime.priority.list()
    return PrioritizedListResponse(
        conversations=[
            PrioritizedConversationOut(conversation_id=e["conversation_id"], wait_minutes=e["wait_minutes"])
            for e in entries
        ],
        total=len(entries),
    )


@admin_router.delete("/conversations/prioritized/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
def resolve_prioritized(conversation_id: str, runtime: BotRuntime = Depends(get_runtime)) -> None:
    if not runtime.priority.clear(conversation_id):
        raise HTTPException(status_code=404, detail="Conversation is not waiting for an agent")


@admin_router.get("/conversations/{conversation_id}", response_model=ConversationOut)
def get_conversation(conversation_id: str, runtime: BotRuntime = Depends(get_runtime)) -> ConversationOut:
    """Current state and cart of a live conversation."""
    with runtime.conversations.lock(conversation_id):
        conversation = runtime.conversations.get(conversation_id)
        if conversation is None:
            raise HTTPException(status_code=404, detail="Conversation not found")
        order = conversation.order
        return ConversationOut(
            conversation_id=conversation.conversation_id,
            state=conversation.state.value,
            prioritized=runtime.priority.is_prioritized(conversation_id),
            customer_name=order.customer_name,
            order_type=order.order_type.value if order.order_type else None,
            payment_method=order.payment_method.value if order.payment_method else None,
            delivery_address=order.delivery_address,
            lines=[
                OrderLineOut(
                    id=line.id,
                    item_id=line.item_id,
                    name=line.name,
                    quantity=line.quantity,
                    unit_price=to_reais(line.unit_price),
                    total=to_reais(line.total),
                )
                for line in order.lines
            ],
            total=to_reais(order.total),
        )


# =============================================================================
# Outbound Messages
# =============================================================================

@admin_router.post("/messages", response_model=EnqueueMessageResponse, status_code=status.HTTP_202_ACCEPTED)
def enqueue_message(req: EnqueueMessageRequest, runtime: BotRuntime = Depends(get_runtime)) -> EnqueueMessageResponse:
    runtime.outbox.enqueue(req.recipient, req.text)
    return EnqueueMessageResponse(queued=True, queue_size=len(runtime.outbox))


@admin_router.post("/notifications/out-for-delivery", response_model=DeliveryNotificationResponse)
def notify_out_for_delivery(
    req: DeliveryNotificationRequest,
    runtime: BotRuntime = Depends(get_runtime),
) -> DeliveryNotificationResponse:
    display_id = req.display_id or format_display_id(req.daily_sequence)
    result = runtime.sender.notify_out_for_delivery(
        phone=req.phone,
        display_id=display_id,
        customer_name=req.customer_name,
        address=req.address,
    )
    if not result.ok:
        raise HTTPException(status_code=502, detail=f"Notification not sent: {result.error}")
    return DeliveryNotificationResponse(
        sent=True,
        display_id=display_id,
        recipient=result.recipient,
        mock=result.mock,
    )


# =============================================================================
# Store Status / Menu
# =============================================================================

@admin_router.get("/store-status", response_model=StoreStatusOut)
def get_store_status(
    refresh: bool = Query(False, description="Fetch from the store-status service now"),
    runtime: BotRuntime = Depends(get_runtime),
) -> StoreStatusOut:
    current = runtime.store_status.refresh() if refresh else runtime.store_status.cached
    return StoreStatusOut(**current.to_dict())


def _menu_item_out(item) -> MenuItemOut:
    return MenuItemOut(
        id=item.id,
        name=item.name,
        price=to_reais(item.price),
        category=item.category,
        available=item.available,
    )


@admin_router.get("/menu", response_model=List[MenuItemOut])
def list_menu(runtime: BotRuntime = Depends(get_runtime)) -> List[MenuItemOut]:
    return [_menu_item_out(item) for item in runtime.catalog.items()]


@admin_router.put("/menu/{item_id}/availability", response_model=MenuItemOut)
def set_availability(
    item_id: str,
    req: AvailabilityUpdate,
    runtime: BotRuntime = Depends(get_runtime),
) -> MenuItemOut:
    try:
        runtime.catalog.set_available(item_id, req.available)
    except KeyError:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return _menu_item_out(runtime.catalog.get(item_id))
