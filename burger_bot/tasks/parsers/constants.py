"""
Parser Constants.

Keyword sets recognised by the WhatsApp ordering dialogue. Customers write in
Portuguese; matching is done on lower-cased, stripped text.
"""

# =============================================================================
# Global Commands (work in any state)
# =============================================================================

EXIT_COMMANDS = frozenset({"sair", "encerrar"})
SUMMARY_COMMANDS = frozenset({"resumo", "pedido", "ver pedido"})

# Exact back-navigation tokens; any text containing "voltar" also counts
BACK_WORDS = frozenset({"voltar", "volta", "v", "0"})
BACK_SUBSTRING = "voltar"

# =============================================================================
# Start State
# =============================================================================

MENU_WORDS = frozenset({"1", "sim", "s", "menu", "cardapio", "cardápio"})
START_SUMMARY_WORDS = frozenset({"2", "resumo"})
AGENT_WORDS = frozenset({"3"})
AGENT_SUBSTRINGS = ("atendente", "falar")

# Quick-reply tokens are "btn_<index>"
BUTTON_PREFIX = "btn_"
BUTTON_MENU = 0
BUTTON_SUMMARY_OR_AGENT = 1
BUTTON_AGENT = 2

# =============================================================================
# Add More
# =============================================================================

YES_WORDS = frozenset({"1", "sim", "s", "quero", "mais", "yes"})
NO_WORDS = frozenset({"2", "n", "no"})
NO_SUBSTRINGS = ("nao", "não", "finalizar")

# =============================================================================
# Order Type
# =============================================================================

DINE_IN_WORDS = frozenset({"1"})
DINE_IN_SUBSTRINGS = ("restaurante", "comer")
DELIVERY_WORDS = frozenset({"2"})
DELIVERY_SUBSTRINGS = ("delivery", "entrega")

# =============================================================================
# Payment Method
# =============================================================================

PAYMENT_BACK_WORDS = frozenset({"4"})
CASH_WORDS = frozenset({"1", "din"})
CASH_SUBSTRINGS = ("dinheiro",)
PIX_WORDS = frozenset({"2"})
PIX_SUBSTRINGS = ("pix",)
CARD_WORDS = frozenset({"3", "card"})
CARD_SUBSTRINGS = ("cartao", "cartão", "credito", "crédito", "debito", "débito")

# =============================================================================
# Natural-Language Orders
# =============================================================================

# Keywords that switch a free-text order to delivery. Longest first so the
# address capture starts after the whole word.
DELIVERY_KEYWORDS = ("entregar", "entrega", "delivery")

WORD_TO_NUM = {
    "um": 1, "uma": 1,
    "dois": 2, "duas": 2,
    "tres": 3, "três": 3,
    "quatro": 4,
    "cinco": 5,
    "seis": 6,
    "sete": 7,
    "oito": 8,
    "nove": 9,
    "dez": 10,
}

# Canonical spelling for words captured by the extraction templates
KEYWORD_ALIASES = {
    # burger proteins
    "boi": "bovino", "carne": "bovino",
    "porco": "suino", "porquinho": "suino",
    # burger sizes
    "normal": "simples",
    # soda brands
    "coca cola": "coca", "coca-cola": "coca", "cocacola": "coca", "cola": "coca",
}
