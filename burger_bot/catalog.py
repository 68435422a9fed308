"""
Menu catalog: prices, availability (the "86" list) and display names.

Prices are stored as integer centavos. The numbered layout of the WhatsApp
menu (which digit selects which item) lives here too, so the state machine
never hardcodes item identifiers.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MenuItem:
    """A single sellable item."""
    id: str
    name: str
    price: int  # centavos
    category: str  # "hamburguer", "refrigerante", "suco", "bebida"
    available: bool = True


# =============================================================================
# Menu Layout
# =============================================================================
# Digits shown to the customer on each (sub)menu.

BURGER_CHOICES = {
    1: "hamburguer_bovino_simples",
    2: "hamburguer_bovino_duplo",
    3: "hamburguer_suino_simples",
    4: "hamburguer_suino_duplo",
}
SODA_MENU_CHOICE = 5
JUICE_MENU_CHOICE = 6
WATER_MENU_CHOICE = 7

SODA_CHOICES = {
    1: "refrigerante_coca",
    2: "refrigerante_pepsi",
    3: "refrigerante_guarana",
    4: "refrigerante_fanta",
}
JUICE_CHOICES = {
    1: "suco_laranja",
    2: "suco_maracuja",
    3: "suco_limao",
    4: "suco_abacaxi",
}
WATER_ID = "agua"


DEFAULT_ITEMS = [
    MenuItem("hamburguer_bovino_simples", "Hambúrguer Bovino Simples", 1800, "hamburguer"),
    MenuItem("hamburguer_bovino_duplo", "Hambúrguer Bovino Duplo", 2800, "hamburguer"),
    MenuItem("hamburguer_suino_simples", "Hambúrguer Suíno Simples", 2000, "hamburguer"),
    MenuItem("hamburguer_suino_duplo", "Hambúrguer Suíno Duplo", 3000, "hamburguer"),
    MenuItem("refrigerante_coca", "Coca-Cola", 500, "refrigerante"),
    MenuItem("refrigerante_pepsi", "Pepsi", 500, "refrigerante"),
    MenuItem("refrigerante_guarana", "Guaraná", 500, "refrigerante"),
    MenuItem("refrigerante_fanta", "Fanta", 500, "refrigerante"),
    MenuItem("suco_laranja", "Suco de Laranja", 600, "suco"),
    MenuItem("suco_maracuja", "Suco de Maracujá", 600, "suco"),
    MenuItem("suco_limao", "Suco de Limão", 600, "suco"),
    MenuItem("suco_abacaxi", "Suco de Abacaxi", 600, "suco"),
    MenuItem(WATER_ID, "Água", 300, "bebida"),
]


class Catalog:
    """
    Price list and availability flags for the restaurant menu.

    Lookups never raise for unknown identifiers: price_of returns None,
    display_name_of echoes the identifier and is_available returns True.
    """

    def __init__(self, items: Optional[list[MenuItem]] = None):
        source = DEFAULT_ITEMS if items is None else items
        self._items: dict[str, MenuItem] = {item.id: item for item in source}

    def get(self, item_id: str) -> Optional[MenuItem]:
        return self._items.get(item_id)

    def price_of(self, item_id: str) -> Optional[int]:
        item = self._items.get(item_id)
        return item.price if item else None

    def is_available(self, item_id: str) -> bool:
        item = self._items.get(item_id)
        return item is None or item.available

    def display_name_of(self, item_id: str) -> str:
        item = self._items.get(item_id)
        return item.name if item else item_id

    def category_of(self, item_id: str) -> str:
        item = self._items.get(item_id)
        return item.category if item else "item"

    def set_available(self, item_id: str, available: bool) -> None:
        """Mark an item as sold out (False) or back in stock (True)."""
        item = self._items.get(item_id)
        if item is None:
            raise KeyError(item_id)
        self._items[item_id] = replace(item, available=available)
        logger.info("Availability of %s set to %s", item_id, available)

    def set_price(self, item_id: str, price: int) -> None:
        item = self._items.get(item_id)
        if item is None:
            raise KeyError(item_id)
        self._items[item_id] = replace(item, price=price)

    def items(self) -> list[MenuItem]:
        return list(self._items.values())
