"""
State Machine for the WhatsApp Order Flow.

This module is the dialogue controller. Each conversation is in exactly one
ConversationState; every inbound text is routed to the handler of that
state through a dispatch table. Handlers validate the input, mutate the
order, pick the next state and return the messages to send.

Before dispatch, two global commands are honoured in any state:
- "sair"/"encerrar" drop the conversation and say goodbye
- "resumo"/"pedido"/"ver pedido" show the order without changing state

Back navigation is hand-authored per state (not a stack) and always clears
the pending selection slot it undoes.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Protocol

from ..catalog import (
    BURGER_CHOICES,
    JUICE_CHOICES,
    JUICE_MENU_CHOICE,
    SODA_CHOICES,
    SODA_MENU_CHOICE,
    WATER_ID,
    WATER_MENU_CHOICE,
    Catalog,
)
from .checkout_handler import CheckoutHandler, Finalizer
from .message_builder import ADD_MORE_OPTIONS, BACK_HINT, BACK_TO_MENU_HINT, MessageBuilder
from .models import Conversation, Order, OrderLine
from .parsers import (
    ExtractedOrder,
    extract_order,
    is_back_request,
    normalize_text,
    parse_button_index,
    parse_menu_number,
    parse_quantity,
    parse_yes_no,
    validate_delivery_address,
)
from .parsers.constants import (
    AGENT_SUBSTRINGS,
    AGENT_WORDS,
    BUTTON_AGENT,
    BUTTON_MENU,
    BUTTON_SUMMARY_OR_AGENT,
    EXIT_COMMANDS,
    MENU_WORDS,
    START_SUMMARY_WORDS,
    SUMMARY_COMMANDS,
)
from .schemas import ConversationState, OrderType, StateMachineResult

logger = logging.getLogger(__name__)


class StoreStatusProvider(Protocol):
    def get_status(self): ...


class PriorityTracker(Protocol):
    def mark(self, conversation_id: str) -> None: ...

    def clear(self, conversation_id: str) -> bool: ...


class ConversationRepository(Protocol):
    def lock(self, conversation_id: str): ...

    def get_or_create(self, conversation_id: str) -> Conversation: ...

    def delete(self, conversation_id: str) -> bool: ...


class OrderStateMachine:
    """
    Dialogue controller for the ordering conversation.

    All collaborators are injected so one instance owns the whole process
    state and tests can drive it without a transport:

    Args:
        catalog: Prices, availability and display names.
        store: Conversation store (per-key locking, lazy creation).
        finalizer: Submits the order when a payment method is chosen.
        store_status: Open/closed flag; None means always open.
        priority: Tracks conversations that asked for an agent.
        message_builder: Customer-facing texts.
        clock: Local time source for the greeting.
    """

    def __init__(
        self,
        catalog: Catalog,
        store: ConversationRepository,
        finalizer: Finalizer,
        store_status: Optional[StoreStatusProvider] = None,
        priority: Optional[PriorityTracker] = None,
        message_builder: Optional[MessageBuilder] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.catalog = catalog
        self.store = store
        self.store_status = store_status
        self.priority = priority
        self.message_builder = message_builder or MessageBuilder(catalog)
        self.clock = clock
        self.checkout = CheckoutHandler(self.message_builder, finalizer)

        self._handlers: dict[ConversationState, Callable[[str, Conversation], StateMachineResult]] = {
            ConversationState.START: self._handle_start,
            ConversationState.MENU: self._handle_menu,
            ConversationState.BURGER_QUANTITY: self._handle_burger_quantity,
            ConversationState.ADD_MORE: self._handle_add_more,
            ConversationState.BEVERAGE_TYPE_SODA: self._handle_beverage_type,
            ConversationState.BEVERAGE_TYPE_JUICE: self._handle_beverage_type,
            ConversationState.BEVERAGE_QUANTITY_SODA: self._handle_beverage_quantity,
            ConversationState.BEVERAGE_QUANTITY_JUICE: self._handle_beverage_quantity,
            ConversationState.BEVERAGE_QUANTITY_GENERIC: self._handle_beverage_quantity,
            ConversationState.ORDER_TYPE: self.checkout.handle_order_type,
            ConversationState.DELIVERY_ADDRESS: self.checkout.handle_delivery_address,
            ConversationState.CUSTOMER_NAME: self.checkout.handle_customer_name,
            ConversationState.PAYMENT_METHOD: self.checkout.handle_payment_method,
        }

        # type state -> (choices, quantity state, sub-menu builder)
        self._beverage_menus = {
            ConversationState.BEVERAGE_TYPE_SODA: (
                SODA_CHOICES, ConversationState.BEVERAGE_QUANTITY_SODA, self.message_builder.build_soda_menu,
            ),
            ConversationState.BEVERAGE_TYPE_JUICE: (
                JUICE_CHOICES, ConversationState.BEVERAGE_QUANTITY_JUICE, self.message_builder.build_juice_menu,
            ),
        }
        # quantity state -> type state it goes back to (None = main menu)
        self._beverage_back = {
            ConversationState.BEVERAGE_QUANTITY_SODA: ConversationState.BEVERAGE_TYPE_SODA,
            ConversationState.BEVERAGE_QUANTITY_JUICE: ConversationState.BEVERAGE_TYPE_JUICE,
            ConversationState.BEVERAGE_QUANTITY_GENERIC: None,
        }

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def process(self, conversation_id: str, text: str) -> StateMachineResult:
        """
        Handle one inbound message.

        The whole read-modify-write runs under the conversation's lock.
        """
        with self.store.lock(conversation_id):
            conversation = self.store.get_or_create(conversation_id)
            previous_state = conversation.state
            normalized = normalize_text(text)

            if normalized in EXIT_COMMANDS:
                self._close(conversation_id)
                result = StateMachineResult.reply(self.message_builder.build_farewell())
                result.conversation_closed = True
                return result

            if normalized in SUMMARY_COMMANDS:
                return StateMachineResult.reply(self.message_builder.build_summary(conversation.order))

            handler = self._handlers[conversation.state]
            result = handler(text, conversation)

            if result.conversation_closed:
                self._close(conversation_id)
            elif conversation.state != previous_state:
                logger.info(
                    "Conversation %s: %s -> %s",
                    conversation_id, previous_state.value, conversation.state.value,
                )
            return result

    def _close(self, conversation_id: str) -> None:
        self.store.delete(conversation_id)
        if self.priority is not None:
            self.priority.clear(conversation_id)

    def _closed_store_status(self):
        """Store status when the store is closed, otherwise None."""
        if self.store_status is None:
            return None
        status = self.store_status.get_status()
        return None if status.is_open else status

    def _add_line(self, order: Order, item_id: str, quantity: int) -> OrderLine:
        price = self.catalog.price_of(item_id)
        return order.add_line(
            item_id=item_id,
            name=self.catalog.display_name_of(item_id),
            quantity=quantity,
            unit_price=price if price is not None else 0,
            prefix=self.catalog.category_of(item_id),
        )

    def _greeting(self, order: Order) -> StateMachineResult:
        text, options = self.message_builder.build_greeting(order, self.clock().hour)
        return StateMachineResult.reply(text, options=options)

    # -------------------------------------------------------------------------
    # Start
    # -------------------------------------------------------------------------

    def _handle_start(self, text: str, conversation: Conversation) -> StateMachineResult:
        """
        Order of checks: store closed, quick-reply button, free-text order,
        keywords. Anything unrecognised gets the greeting.
        """
        order = conversation.order

        closed_status = self._closed_store_status()
        if closed_status is not None:
            logger.info("Store closed, turning away %s", conversation.conversation_id)
            return StateMachineResult.reply(self.message_builder.build_store_closed(closed_status))

        button = parse_button_index(text)
        if button is not None:
            return self._handle_start_button(button, conversation)

        extracted = extract_order(text, self.catalog)
        if extracted.success:
            return self._apply_extracted_order(extracted, conversation)

        normalized = normalize_text(text)
        if normalized in MENU_WORDS:
            return self._open_menu(conversation)
        if normalized in START_SUMMARY_WORDS:
            return self._start_summary(order)
        if normalized in AGENT_WORDS or any(word in normalized for word in AGENT_SUBSTRINGS):
            return self._request_agent(conversation)
        return self._greeting(order)

    def _handle_start_button(self, button: int, conversation: Conversation) -> StateMachineResult:
        order = conversation.order
        if button == BUTTON_MENU:
            return self._open_menu(conversation)
        if button == BUTTON_SUMMARY_OR_AGENT:
            # The second button is "Ver Resumo" only when there are items
            if order.has_items:
                return StateMachineResult.reply(self.message_builder.build_summary(order))
            return self._request_agent(conversation)
        if button == BUTTON_AGENT:
            return self._request_agent(conversation)
        return self._greeting(order)

    def _open_menu(self, conversation: Conversation) -> StateMachineResult:
        conversation.state = ConversationState.MENU
        return StateMachineResult.reply(self.message_builder.build_menu(conversation.order))

    def _start_summary(self, order: Order) -> StateMachineResult:
        if order.has_items:
            return StateMachineResult.reply(self.message_builder.build_summary(order))
        return StateMachineResult.reply(self.message_builder.build_no_items_yet())

    def _request_agent(self, conversation: Conversation) -> StateMachineResult:
        if self.priority is not None:
            self.priority.mark(conversation.conversation_id)
        return StateMachineResult.reply(self.message_builder.build_agent_handoff())

    def _apply_extracted_order(self, extracted: ExtractedOrder, conversation: Conversation) -> StateMachineResult:
        order = conversation.order
        for item_id, quantity in extracted.items:
            self._add_line(order, item_id, quantity)

        order.order_type = extracted.order_type
        address = None
        if extracted.order_type == OrderType.DELIVERY and extracted.address:
            address, _ = validate_delivery_address(extracted.address)
        order.delivery_address = address

        if extracted.order_type == OrderType.DELIVERY and not address:
            conversation.state = ConversationState.DELIVERY_ADDRESS
            follow_up = "📦 *Tipo: DELIVERY*\n\nPor favor, informe o endereço de entrega:\n\n" + BACK_HINT
        elif not order.customer_name:
            conversation.state = ConversationState.CUSTOMER_NAME
            follow_up = "Por favor, informe seu nome:"
        else:
            conversation.state = ConversationState.ADD_MORE
            follow_up = f"Deseja adicionar mais itens?\n\n{ADD_MORE_OPTIONS}"

        return StateMachineResult.reply(self.message_builder.build_extracted_items(order, follow_up))

    # -------------------------------------------------------------------------
    # Menu
    # -------------------------------------------------------------------------

    def _handle_menu(self, text: str, conversation: Conversation) -> StateMachineResult:
        order = conversation.order
        if is_back_request(text):
            order.clear_pending()
            if order.has_items:
                conversation.state = ConversationState.ADD_MORE
                return StateMachineResult.reply(self.message_builder.build_add_more_prompt(order))
            conversation.state = ConversationState.START
            return self._greeting(order)

        choice = parse_menu_number(text)

        if choice in BURGER_CHOICES:
            item_id = BURGER_CHOICES[choice]
            if not self.catalog.is_available(item_id):
                return StateMachineResult.reply(
                    self.message_builder.build_sold_out(item_id, self.message_builder.build_menu(order))
                )
            order.select_item_type(item_id)
            conversation.state = ConversationState.BURGER_QUANTITY
            return StateMachineResult.reply(self.message_builder.build_quantity_prompt(item_id))

        if choice == SODA_MENU_CHOICE:
            conversation.state = ConversationState.BEVERAGE_TYPE_SODA
            return StateMachineResult.reply(self.message_builder.build_soda_menu())

        if choice == JUICE_MENU_CHOICE:
            conversation.state = ConversationState.BEVERAGE_TYPE_JUICE
            return StateMachineResult.reply(self.message_builder.build_juice_menu())

        if choice == WATER_MENU_CHOICE:
            if not self.catalog.is_available(WATER_ID):
                return StateMachineResult.reply(
                    self.message_builder.build_sold_out(WATER_ID, self.message_builder.build_menu(order))
                )
            order.select_beverage(WATER_ID)
            conversation.state = ConversationState.BEVERAGE_QUANTITY_GENERIC
            return StateMachineResult.reply(self.message_builder.build_quantity_prompt(WATER_ID))

        return StateMachineResult.reply(self.message_builder.build_invalid_menu_option(order))

    # -------------------------------------------------------------------------
    # Quantities
    # -------------------------------------------------------------------------

    def _handle_burger_quantity(self, text: str, conversation: Conversation) -> StateMachineResult:
        order = conversation.order
        if is_back_request(text):
            order.clear_pending()
            return self._open_menu(conversation)

        quantity = parse_quantity(text)
        if quantity is None:
            return StateMachineResult.reply(self.message_builder.build_invalid_quantity())

        item_id = order.pending_item_type
        if item_id is None:
            logger.warning("No pending burger for %s, back to menu", conversation.conversation_id)
            return self._open_menu(conversation)

        line = self._add_line(order, item_id, quantity)
        order.clear_pending()
        conversation.state = ConversationState.ADD_MORE
        return StateMachineResult.reply(self.message_builder.build_line_added(line))

    def _handle_beverage_type(self, text: str, conversation: Conversation) -> StateMachineResult:
        order = conversation.order
        choices, quantity_state, build_submenu = self._beverage_menus[conversation.state]

        if is_back_request(text):
            order.clear_pending()
            return self._open_menu(conversation)

        choice = parse_menu_number(text)
        if choice not in choices:
            return StateMachineResult.reply(
                self.message_builder.build_invalid_beverage_option(build_submenu())
            )

        item_id = choices[choice]
        if not self.catalog.is_available(item_id):
            return StateMachineResult.reply(self.message_builder.build_sold_out(item_id, build_submenu()))

        order.select_beverage(item_id)
        conversation.state = quantity_state
        return StateMachineResult.reply(self.message_builder.build_quantity_prompt(item_id, BACK_HINT))

    def _handle_beverage_quantity(self, text: str, conversation: Conversation) -> StateMachineResult:
        order = conversation.order
        back_state = self._beverage_back[conversation.state]
        back_hint = BACK_HINT if back_state is not None else BACK_TO_MENU_HINT

        if is_back_request(text):
            order.clear_pending()
            if back_state is None:
                return self._open_menu(conversation)
            conversation.state = back_state
            _, _, build_submenu = self._beverage_menus[back_state]
            return StateMachineResult.reply(build_submenu())

        quantity = parse_quantity(text)
        if quantity is None:
            return StateMachineResult.reply(self.message_builder.build_invalid_quantity(back_hint))

        item_id = order.pending_beverage
        if item_id is None:
            logger.warning("No pending beverage for %s, back to menu", conversation.conversation_id)
            return self._open_menu(conversation)

        line = self._add_line(order, item_id, quantity)
        order.clear_pending()
        conversation.state = ConversationState.ADD_MORE
        return StateMachineResult.reply(self.message_builder.build_line_added(line))

    # -------------------------------------------------------------------------
    # Add more
    # -------------------------------------------------------------------------

    def _handle_add_more(self, text: str, conversation: Conversation) -> StateMachineResult:
        if is_back_request(text):
            return self._open_menu(conversation)

        answer = parse_yes_no(text)
        if answer is True:
            return self._open_menu(conversation)
        if answer is False:
            conversation.state = ConversationState.ORDER_TYPE
            return StateMachineResult.reply(self.message_builder.build_order_type_prompt())

        return StateMachineResult.reply(self.message_builder.build_add_more_reprompt())
