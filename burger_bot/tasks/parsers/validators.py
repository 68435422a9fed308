"""
Input Validation Functions.

This module contains validation functions for customer-provided data
(delivery address, name) and for phone numbers derived from the chat
transport address.
"""

import re
import logging

import phonenumbers
from phonenumbers.phonenumberutil import NumberParseException

from ...config import MIN_ADDRESS_LENGTH

logger = logging.getLogger(__name__)

BRAZIL_COUNTRY_CODE = "55"


def normalize_phone(conversation_id: str) -> str:
    """
    Derive the customer's phone from a transport address.

    "whatsapp:+5511999998888" -> "11999998888"
    "5511999998888@c.us"      -> "11999998888"

    Everything after an "@" is dropped, non-digits are stripped and a
    leading Brazilian country code is removed.
    """
    local_part = conversation_id.split("@", 1)[0]
    digits = re.sub(r"\D", "", local_part)
    if digits.startswith(BRAZIL_COUNTRY_CODE) and len(digits) > len(BRAZIL_COUNTRY_CODE):
        digits = digits[len(BRAZIL_COUNTRY_CODE):]
    return digits


def format_whatsapp_number(phone: str) -> str | None:
    """
    Format a stored phone number as a WhatsApp address.

    Numbers with 10 or 11 digits are assumed to be Brazilian and get the
    country code. The result is validated with phonenumbers and returned in
    E.164 form prefixed with "whatsapp:". Returns None when the number can't
    be used.
    """
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        return None

    if len(digits) in (10, 11) and not digits.startswith(BRAZIL_COUNTRY_CODE):
        digits = BRAZIL_COUNTRY_CODE + digits

    try:
        parsed_number = phonenumbers.parse("+" + digits, None)
    except NumberParseException as e:
        logger.warning("Phone parse failed: %s - %s", phone, str(e))
        return None

    if not phonenumbers.is_possible_number(parsed_number):
        logger.warning("Phone number not possible: %s", phone)
        return None

    formatted = phonenumbers.format_number(parsed_number, phonenumbers.PhoneNumberFormat.E164)
    return f"whatsapp:{formatted}"


def validate_delivery_address(address: str) -> tuple[str | None, str | None]:
    """
    Validate a free-text delivery address.

    Returns:
        Tuple of (address, error_message). The address must be strictly
        longer than MIN_ADDRESS_LENGTH characters after stripping.
    """
    cleaned = (address or "").strip()
    if len(cleaned) <= MIN_ADDRESS_LENGTH:
        return (None, "❌ Endereço muito curto. Por favor, informe o endereço completo (rua, número, bairro):")
    return (cleaned, None)


def validate_customer_name(name: str) -> tuple[str | None, str | None]:
    cleaned = (name or "").strip()
    if not cleaned:
        return (None, "❌ Por favor, digite seu nome:")
    return (cleaned, None)
