"""
Tests for the deterministic parsers and validators.
"""

import pytest

from burger_bot.catalog import Catalog
from burger_bot.tasks.parsers import (
    canonical_keyword,
    extract_order,
    format_whatsapp_number,
    is_back_request,
    is_payment_back_request,
    normalize_phone,
    parse_button_index,
    parse_menu_number,
    parse_order_type,
    parse_payment_method,
    parse_quantity,
    parse_yes_no,
    validate_customer_name,
    validate_delivery_address,
)
from burger_bot.tasks.schemas import OrderType, PaymentMethod


# =============================================================================
# Token Parsers
# =============================================================================

class TestParseQuantity:
    @pytest.mark.parametrize("text,expected", [
        ("1", 1), ("10", 10), (" 7 ", 7), ("07", 7),
    ])
    def test_accepts_integers_in_range(self, text, expected):
        assert parse_quantity(text) == expected

    @pytest.mark.parametrize("text", ["0", "11", "-3", "+3", "2.0", "1,5", "três", "", "2 x", "1e1"])
    def test_rejects_everything_else(self, text):
        assert parse_quantity(text) is None


class TestParseMenuNumber:
    def test_digits(self):
        assert parse_menu_number("5") == 5

    @pytest.mark.parametrize("text", ["cinco", "5a", "", "-5"])
    def test_non_digits(self, text):
        assert parse_menu_number(text) is None


class TestBackRequests:
    @pytest.mark.parametrize("text", ["voltar", "VOLTA", "v", "0", "quero voltar"])
    def test_back(self, text):
        assert is_back_request(text)

    @pytest.mark.parametrize("text", ["vamos", "1", "volto já"])
    def test_not_back(self, text):
        assert not is_back_request(text)

    def test_payment_menu_uses_four_for_back(self):
        assert is_payment_back_request("4")
        assert is_payment_back_request("voltar")
        assert not is_back_request("4")


class TestButtons:
    def test_button_index(self):
        assert parse_button_index("btn_0") == 0
        assert parse_button_index(" BTN_2 ") == 2

    @pytest.mark.parametrize("text", ["btn_", "btn_x", "botao_1", "1"])
    def test_not_a_button(self, text):
        assert parse_button_index(text) is None


class TestYesNo:
    @pytest.mark.parametrize("text", ["1", "sim", "S", "quero", "mais"])
    def test_yes(self, text):
        assert parse_yes_no(text) is True

    @pytest.mark.parametrize("text", ["2", "não", "NAO", "n", "finalizar pedido"])
    def test_no(self, text):
        assert parse_yes_no(text) is False

    @pytest.mark.parametrize("text", ["talvez", "", "3"])
    def test_unclear(self, text):
        assert parse_yes_no(text) is None


class TestOrderType:
    @pytest.mark.parametrize("text", ["1", "restaurante", "vou comer aí"])
    def test_dine_in(self, text):
        assert parse_order_type(text) == OrderType.DINE_IN

    @pytest.mark.parametrize("text", ["2", "delivery", "Entrega por favor"])
    def test_delivery(self, text):
        assert parse_order_type(text) == OrderType.DELIVERY

    def test_unknown(self):
        assert parse_order_type("3") is None


class TestPaymentMethod:
    @pytest.mark.parametrize("text,expected", [
        ("1", PaymentMethod.CASH),
        ("dinheiro", PaymentMethod.CASH),
        ("din", PaymentMethod.CASH),
        ("2", PaymentMethod.PIX),
        ("PIX", PaymentMethod.PIX),
        ("3", PaymentMethod.CARD),
        ("cartão de crédito", PaymentMethod.CARD),
        ("debito", PaymentMethod.CARD),
        ("card", PaymentMethod.CARD),
    ])
    def test_methods(self, text, expected):
        assert parse_payment_method(text) == expected

    @pytest.mark.parametrize("text", ["5", "cheque", "cardápio"])
    def test_unknown(self, text):
        assert parse_payment_method(text) is None

    def test_backend_values(self):
        assert [m.value for m in PaymentMethod] == ["Dinheiro", "PIX", "Cartão"]


# =============================================================================
# Validators
# =============================================================================

class TestValidators:
    def test_address_strips_and_accepts(self):
        assert validate_delivery_address("  Rua das Flores, 123  ") == ("Rua das Flores, 123", None)

    @pytest.mark.parametrize("text", ["", "Rua 1", "1234567890", "   Rua Ab 12   "])
    def test_address_too_short(self, text):
        address, error = validate_delivery_address(text)
        assert address is None
        assert "Endereço muito curto" in error

    def test_name(self):
        assert validate_customer_name(" João ") == ("João", None)
        name, error = validate_customer_name("  ")
        assert name is None
        assert error

    @pytest.mark.parametrize("conversation_id,expected", [
        ("whatsapp:+5521999998888", "21999998888"),
        ("5511988887777@c.us", "11988887777"),
        ("+1 (415) 523-8886", "14155238886"),
    ])
    def test_normalize_phone(self, conversation_id, expected):
        assert normalize_phone(conversation_id) == expected

    def test_format_whatsapp_number_adds_country_code(self):
        assert format_whatsapp_number("21999998888") == "whatsapp:+5521999998888"
        assert format_whatsapp_number("(21) 99999-8888") == "whatsapp:+5521999998888"

    def test_format_whatsapp_number_keeps_full_number(self):
        assert format_whatsapp_number("5521999998888") == "whatsapp:+5521999998888"

    @pytest.mark.parametrize("phone", ["", "abc", "123"])
    def test_format_whatsapp_number_rejects(self, phone):
        assert format_whatsapp_number(phone) is None


# =============================================================================
# Natural-Language Extraction
# =============================================================================

@pytest.fixture
def menu():
    return Catalog()


class TestCanonicalKeyword:
    @pytest.mark.parametrize("word,expected", [
        ("Suíno", "suino"),
        ("porquinho", "suino"),
        ("BOI", "bovino"),
        ("Coca-Cola", "coca"),
        ("coca  cola", "coca"),
        ("Guaraná", "guarana"),
        ("normal", "simples"),
    ])
    def test_aliases(self, word, expected):
        assert canonical_keyword(word) == expected


class TestExtractOrder:
    def test_example_order(self, menu):
        result = extract_order("2 hamburguer suino e 1 coca, entrega rua das flores 123", menu)
        assert result.success
        assert result.items == [("hamburguer_suino_simples", 2), ("refrigerante_coca", 1)]
        assert result.order_type == OrderType.DELIVERY
        assert result.address == "rua das flores 123"

    def test_default_order_type_is_dine_in(self, menu):
        result = extract_order("1 pepsi", menu)
        assert result.order_type == OrderType.DINE_IN
        assert result.address is None

    def test_quantity_defaults_to_one(self, menu):
        assert extract_order("hamburguer de carne", menu).items == [("hamburguer_bovino_simples", 1)]

    @pytest.mark.parametrize("text,expected", [
        ("2 hamburguer bovino duplo", [("hamburguer_bovino_duplo", 2)]),
        ("1 hambúrguer suíno simples", [("hamburguer_suino_simples", 1)]),
        ("3x hamburger porco duplo", [("hamburguer_suino_duplo", 3)]),
        ("um hamburguer de boi normal", [("hamburguer_bovino_simples", 1)]),
    ])
    def test_burger_sizes(self, menu, text, expected):
        assert extract_order(text, menu).items == expected

    @pytest.mark.parametrize("text,expected", [
        ("2 cocas", [("refrigerante_coca", 2)]),
        ("1 coca-cola", [("refrigerante_coca", 1)]),
        ("duas guaranás", [("refrigerante_guarana", 2)]),
        ("1 refrigerante de fanta", [("refrigerante_fanta", 1)]),
        ("2 sucos de maracujá", [("suco_maracuja", 2)]),
        ("1 limão", [("suco_limao", 1)]),
        ("3 águas", [("agua", 3)]),
    ])
    def test_beverages(self, menu, text, expected):
        assert extract_order(text, menu).items == expected

    def test_every_rule_scans_independently(self, menu):
        result = extract_order("1 hamburguer bovino, 2 pepsi, 1 suco de abacaxi e 2 agua", menu)
        assert sorted(result.items) == sorted([
            ("hamburguer_bovino_simples", 1),
            ("refrigerante_pepsi", 2),
            ("suco_abacaxi", 1),
            ("agua", 2),
        ])

    def test_out_of_range_quantities_are_dropped(self, menu):
        result = extract_order("11 coca e 2 agua", menu)
        assert result.items == [("agua", 2)]

    def test_sold_out_items_are_dropped(self, menu):
        menu.set_available("agua", False)
        result = extract_order("2 agua", menu)
        assert not result.success

    @pytest.mark.parametrize("text", ["oi", "quero ver o cardápio", "", "hamburguer", "2 pizzas"])
    def test_no_items(self, menu, text):
        assert not extract_order(text, menu).success

    def test_delivery_keyword_without_address(self, menu):
        result = extract_order("1 coca para entregar", menu)
        assert result.order_type == OrderType.DELIVERY
        assert result.address is None

    def test_address_stops_at_comma(self, menu):
        result = extract_order("1 agua delivery: Av. Brasil 500, sem gelo", menu)
        assert result.address == "Av. Brasil 500"
