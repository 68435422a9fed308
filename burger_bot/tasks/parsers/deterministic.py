"""
Deterministic Parsing Functions.

This module contains all regex/string-based parsing used by the dialogue:
quantities, menu digits, back navigation, yes/no, order type, payment
method, and the natural-language order extractor that turns a phrase like
"2 hamburguer suino e 1 coca, entrega rua das flores 123" into order lines.
"""

import re
import logging
import unicodedata
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ...config import MAX_QUANTITY, MIN_QUANTITY
from ..schemas import OrderType, PaymentMethod
from .constants import (
    BACK_SUBSTRING,
    BACK_WORDS,
    BUTTON_PREFIX,
    CARD_SUBSTRINGS,
    CARD_WORDS,
    CASH_SUBSTRINGS,
    CASH_WORDS,
    DELIVERY_KEYWORDS,
    DELIVERY_SUBSTRINGS,
    DELIVERY_WORDS,
    DINE_IN_SUBSTRINGS,
    DINE_IN_WORDS,
    KEYWORD_ALIASES,
    NO_SUBSTRINGS,
    NO_WORDS,
    PAYMENT_BACK_WORDS,
    PIX_SUBSTRINGS,
    PIX_WORDS,
    WORD_TO_NUM,
    YES_WORDS,
)

if TYPE_CHECKING:
    from ...catalog import Catalog

logger = logging.getLogger(__name__)


# =============================================================================
# Simple Token Parsing
# =============================================================================

_INTEGER_PATTERN = re.compile(r"\d+")
_BUTTON_PATTERN = re.compile(re.escape(BUTTON_PREFIX) + r"(\d+)")


def normalize_text(text: str) -> str:
    return (text or "").strip().lower()


def is_back_request(text: str) -> bool:
    """True for "voltar", "volta", "v", "0" or anything containing "voltar"."""
    normalized = normalize_text(text)
    return normalized in BACK_WORDS or BACK_SUBSTRING in normalized


def is_payment_back_request(text: str) -> bool:
    # "4" is the back option on the payment menu
    return normalize_text(text) in PAYMENT_BACK_WORDS or is_back_request(text)


def parse_menu_number(text: str) -> Optional[int]:
    """Parse a bare non-negative integer ("5"); anything else is None."""
    normalized = normalize_text(text)
    if not _INTEGER_PATTERN.fullmatch(normalized):
        return None
    return int(normalized)


def parse_quantity(text: str) -> Optional[int]:
    """
    Parse a line quantity.

    Only base-10 integers between MIN_QUANTITY and MAX_QUANTITY are
    accepted. Signs, decimals, words and out-of-range values give None.
    """
    value = parse_menu_number(text)
    if value is None or not MIN_QUANTITY <= value <= MAX_QUANTITY:
        return None
    return value


def parse_button_index(text: str) -> Optional[int]:
    """Index of a quick-reply token ("btn_2" -> 2), or None."""
    match = _BUTTON_PATTERN.fullmatch(normalize_text(text))
    return int(match.group(1)) if match else None


def _matches(normalized: str, words: frozenset, substrings: tuple = ()) -> bool:
    return normalized in words or any(s in normalized for s in substrings)


def parse_yes_no(text: str) -> bool | None:
    """
    Parse the "add more items?" answer.

    Returns True to keep ordering, False to move on to checkout, None if
    unclear. Exact yes tokens are checked first so "sim" never reads as no.
    """
    normalized = normalize_text(text)
    if not normalized:
        return None
    if normalized in YES_WORDS:
        return True
    if _matches(normalized, NO_WORDS, NO_SUBSTRINGS):
        return False
    return None


def parse_order_type(text: str) -> Optional[OrderType]:
    normalized = normalize_text(text)
    if _matches(normalized, DINE_IN_WORDS, DINE_IN_SUBSTRINGS):
        return OrderType.DINE_IN
    if _matches(normalized, DELIVERY_WORDS, DELIVERY_SUBSTRINGS):
        return OrderType.DELIVERY
    return None


def parse_payment_method(text: str) -> Optional[PaymentMethod]:
    """Map "1"/"2"/"3" or a payment keyword to a PaymentMethod."""
    normalized = normalize_text(text)
    if _matches(normalized, CASH_WORDS, CASH_SUBSTRINGS):
        return PaymentMethod.CASH
    if _matches(normalized, PIX_WORDS, PIX_SUBSTRINGS):
        return PaymentMethod.PIX
    if _matches(normalized, CARD_WORDS, CARD_SUBSTRINGS):
        return PaymentMethod.CARD
    return None


# =============================================================================
# Natural-Language Order Extraction
# =============================================================================

def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def canonical_keyword(word: str) -> str:
    """Lower-case, accent-free, alias-resolved form of a captured word."""
    key = " ".join(_strip_accents(word).lower().split())
    return KEYWORD_ALIASES.get(key, key)


def _quantity_value(token: Optional[str]) -> Optional[int]:
    if token is None:
        return 1
    token = token.lower()
    if token.isdigit():
        return int(token)
    return WORD_TO_NUM.get(token)


_NUMBER_WORDS = "|".join(sorted(WORD_TO_NUM, key=len, reverse=True))

# Optional leading quantity: "2", "2x", "2 x", "dois"
_QTY = r"(?<!\w)(?:(\d+|" + _NUMBER_WORDS + r")\s*(?:x\s*)?)?"
_BURGER = r"hamb[uú]rgu?(?:eres|ers|er)\s*(?:de\s+)?"
_PROTEIN = r"(bovino|boi|carne|su[ií]no|porco|porquinho)s?\b"
_SIZE = r"(simples|normal|duplo)s?\b"
_SIZE_WORD = r"(?:simples|normal|duplos?)\b"


@dataclass(frozen=True)
class ExtractionRule:
    """
    One item template of the extractor.

    Group 1 of the pattern is always the optional quantity. Any further
    groups are canonicalised, joined with spaces and looked up in
    keyword_ids; default_id is used for patterns with no variant.
    """
    name: str
    pattern: re.Pattern
    default_id: Optional[str] = None
    keyword_ids: dict = field(default_factory=dict)

    def resolve(self, match: re.Match) -> Optional[str]:
        variant = " ".join(canonical_keyword(g) for g in match.groups()[1:] if g)
        if variant:
            return self.keyword_ids.get(variant, self.default_id)
        return self.default_id


EXTRACTION_RULES = [
    ExtractionRule(
        name="burger_by_protein",
        # A trailing size word belongs to burger_by_protein_and_size
        pattern=re.compile(_QTY + _BURGER + _PROTEIN + r"(?!\s*" + _SIZE_WORD + ")", re.IGNORECASE),
        keyword_ids={
            "bovino": "hamburguer_bovino_simples",
            "suino": "hamburguer_suino_simples",
        },
    ),
    ExtractionRule(
        name="burger_by_protein_and_size",
        pattern=re.compile(_QTY + _BURGER + _PROTEIN + r"\s+" + _SIZE, re.IGNORECASE),
        keyword_ids={
            "bovino simples": "hamburguer_bovino_simples",
            "bovino duplo": "hamburguer_bovino_duplo",
            "suino simples": "hamburguer_suino_simples",
            "suino duplo": "hamburguer_suino_duplo",
        },
    ),
    ExtractionRule(
        name="soda_by_brand",
        pattern=re.compile(
            _QTY + r"(?:refrigerantes?\s*(?:de\s+)?)?"
            r"(coca(?:[\s-]*cola)?|cola|pepsi|guaran[aá]|fanta)s?\b",
            re.IGNORECASE,
        ),
        keyword_ids={
            "coca": "refrigerante_coca",
            "pepsi": "refrigerante_pepsi",
            "guarana": "refrigerante_guarana",
            "fanta": "refrigerante_fanta",
        },
    ),
    ExtractionRule(
        name="juice_by_flavor",
        pattern=re.compile(
            _QTY + r"(?:sucos?\s*(?:de\s+)?)?"
            r"(laranja|maracuj[aá]|lim[aã]o|abacaxi)s?\b",
            re.IGNORECASE,
        ),
        keyword_ids={
            "laranja": "suco_laranja",
            "maracuja": "suco_maracuja",
            "limao": "suco_limao",
            "abacaxi": "suco_abacaxi",
        },
    ),
    ExtractionRule(
        name="water",
        pattern=re.compile(_QTY + r"[aá]guas?\b", re.IGNORECASE),
        default_id="agua",
    ),
]

_DELIVERY_PATTERN = re.compile(
    r"\b(?:" + "|".join(DELIVERY_KEYWORDS) + r")\b[\s:]*([^,]*)",
    re.IGNORECASE,
)


@dataclass
class ExtractedOrder:
    """Result of scanning free text for an order."""
    items: list[tuple[str, int]] = field(default_factory=list)
    order_type: OrderType = OrderType.DINE_IN
    address: Optional[str] = None

    @property
    def success(self) -> bool:
        return bool(self.items)


def extract_order(text: str, catalog: "Catalog") -> ExtractedOrder:
    """
    Scan free text for quantity + item phrases and a delivery hint.

    Every rule scans the whole input on its own; rules are not mutually
    exclusive. Items the catalog reports as sold out, and quantities outside
    the accepted range, are dropped.
    """
    result = ExtractedOrder()
    if not text:
        return result

    for rule in EXTRACTION_RULES:
        for match in rule.pattern.finditer(text):
            item_id = rule.resolve(match)
            if item_id is None:
                continue
            quantity = _quantity_value(match.group(1))
            if quantity is None or not MIN_QUANTITY <= quantity <= MAX_QUANTITY:
                logger.debug("Ignoring %r: quantity out of range", match.group(0))
                continue
            if not catalog.is_available(item_id):
                logger.info("Ignoring sold out item %s in free-text order", item_id)
                continue
            result.items.append((item_id, quantity))

    delivery_match = _DELIVERY_PATTERN.search(text)
    if delivery_match:
        result.order_type = OrderType.DELIVERY
        address = delivery_match.group(1).strip()
        result.address = address or None

    if result.success:
        logger.info(
            "Extracted %d item(s) from free text (order_type=%s)",
            len(result.items), result.order_type.value,
        )
    return result
