"""
Checkout Handler for the Order State Machine.

This module handles the checkout part of the dialogue: order type
(restaurant or delivery), delivery address, customer name and payment
method. Picking a payment method hands the order to the finalizer.
"""

import logging
from typing import Protocol, TYPE_CHECKING

from .message_builder import MessageBuilder
from .models import Conversation, Order
from .parsers import (
    is_back_request,
    is_payment_back_request,
    parse_order_type,
    parse_payment_method,
    validate_customer_name,
    validate_delivery_address,
)
from .schemas import ConversationState, OrderType, StateMachineResult

if TYPE_CHECKING:
    from ..services.order import FinalizeResult

logger = logging.getLogger(__name__)


class Finalizer(Protocol):
    def finalize(self, conversation_id: str, order: Order) -> "FinalizeResult": ...


class CheckoutHandler:
    """
    Handles the checkout states.

    Every handler mutates the conversation in place (state and order) and
    returns the messages to send back.
    """

    def __init__(self, message_builder: MessageBuilder, finalizer: Finalizer):
        self.message_builder = message_builder
        self.finalizer = finalizer

    def handle_order_type(self, text: str, conversation: Conversation) -> StateMachineResult:
        order = conversation.order
        if is_back_request(text):
            conversation.state = ConversationState.ADD_MORE
            return StateMachineResult.reply(self.message_builder.build_add_more_prompt(order))

        order_type = parse_order_type(text)
        if order_type == OrderType.DINE_IN:
            order.order_type = OrderType.DINE_IN
            order.delivery_address = None
            conversation.state = ConversationState.CUSTOMER_NAME
            return StateMachineResult.reply(self.message_builder.build_dine_in_selected())
        if order_type == OrderType.DELIVERY:
            order.order_type = OrderType.DELIVERY
            conversation.state = ConversationState.DELIVERY_ADDRESS
            return StateMachineResult.reply(self.message_builder.build_delivery_selected())

        return StateMachineResult.reply(self.message_builder.build_invalid_order_type())

    def handle_delivery_address(self, text: str, conversation: Conversation) -> StateMachineResult:
        if is_back_request(text):
            conversation.state = ConversationState.ORDER_TYPE
            return StateMachineResult.reply(self.message_builder.build_order_type_prompt())

        address, error = validate_delivery_address(text)
        if error:
            return StateMachineResult.reply(error)

        conversation.order.delivery_address = address
        conversation.state = ConversationState.CUSTOMER_NAME
        return StateMachineResult.reply(self.message_builder.build_address_saved(address))

    def handle_customer_name(self, text: str, conversation: Conversation) -> StateMachineResult:
        order = conversation.order
        is_delivery = order.order_type == OrderType.DELIVERY
        if is_back_request(text):
            if is_delivery:
                conversation.state = ConversationState.DELIVERY_ADDRESS
                return StateMachineResult.reply(self.message_builder.build_address_prompt())
            conversation.state = ConversationState.ORDER_TYPE
            return StateMachineResult.reply(self.message_builder.build_order_type_prompt())

        name, error = validate_customer_name(text)
        if error:
            return StateMachineResult.reply(error)

        order.customer_name = name
        conversation.state = ConversationState.PAYMENT_METHOD
        return StateMachineResult.reply(self.message_builder.build_payment_prompt(name))

    def handle_payment_method(self, text: str, conversation: Conversation) -> StateMachineResult:
        """
        Set the payment method and finalize.

        On success the result is marked closed so the controller drops the
        conversation. On failure the state stays PAYMENT_METHOD with the
        lines untouched, so the customer can retry by answering again.
        """
        order = conversation.order
        if is_payment_back_request(text):
            conversation.state = ConversationState.CUSTOMER_NAME
            return StateMachineResult.reply(
                self.message_builder.build_name_prompt(order.order_type == OrderType.DELIVERY)
            )

        method = parse_payment_method(text)
        if method is None:
            return StateMachineResult.reply(self.message_builder.build_invalid_payment())

        order.payment_method = method
        outcome = self.finalizer.finalize(conversation.conversation_id, order)
        result = StateMachineResult.reply(outcome.message)
        if outcome.success:
            result.conversation_closed = True
        else:
            logger.warning("Finalize failed for %s; waiting for retry", conversation.conversation_id)
        return result
