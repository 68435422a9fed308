"""
Conversation State Definitions.

This module defines the ConversationState enum representing every step of
the WhatsApp ordering dialogue, plus the order-type and payment enums whose
values are the exact strings the order backend expects.
"""

from enum import Enum


class ConversationState(str, Enum):
    """Steps of the ordering dialogue."""
    START = "inicio"
    MENU = "cardapio"
    BURGER_QUANTITY = "quantidade_hamburguer"
    ADD_MORE = "adicionar_mais"
    BEVERAGE_TYPE_SODA = "tipo_refrigerante"
    BEVERAGE_QUANTITY_SODA = "quantidade_refrigerante"
    BEVERAGE_TYPE_JUICE = "tipo_suco"
    BEVERAGE_QUANTITY_JUICE = "quantidade_suco"
    BEVERAGE_QUANTITY_GENERIC = "quantidade_bebida"  # water
    ORDER_TYPE = "tipo_pedido"
    DELIVERY_ADDRESS = "endereco_delivery"
    CUSTOMER_NAME = "nome_cliente"
    PAYMENT_METHOD = "metodo_pagamento"


class OrderType(str, Enum):
    DINE_IN = "restaurante"
    DELIVERY = "delivery"


class PaymentMethod(str, Enum):
    CASH = "Dinheiro"
    PIX = "PIX"
    CARD = "Cartão"
