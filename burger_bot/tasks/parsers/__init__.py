"""
Parsers Package.

This package contains all parsing functions and constants used by the
state machine for interpreting customer input.

Exports:
- Validators: address, name and phone helpers
- Deterministic Parsers: quantities, menu digits, navigation keywords,
  payment/order type mapping and the natural-language order extractor
"""

from .validators import (
    format_whatsapp_number,
    normalize_phone,
    validate_customer_name,
    validate_delivery_address,
)

from .deterministic import (
    EXTRACTION_RULES,
    ExtractedOrder,
    ExtractionRule,
    canonical_keyword,
    extract_order,
    is_back_request,
    is_payment_back_request,
    normalize_text,
    parse_button_index,
    parse_menu_number,
    parse_order_type,
    parse_payment_method,
    parse_quantity,
    parse_yes_no,
)

__all__ = [
    # Validators
    "format_whatsapp_number",
    "normalize_phone",
    "validate_customer_name",
    "validate_delivery_address",
    # Deterministic
    "EXTRACTION_RULES",
    "ExtractedOrder",
    "ExtractionRule",
    "canonical_keyword",
    "extract_order",
    "is_back_request",
    "is_payment_back_request",
    "normalize_text",
    "parse_button_index",
    "parse_menu_number",
    "parse_order_type",
    "parse_payment_method",
    "parse_quantity",
    "parse_yes_no",
]
