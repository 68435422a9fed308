"""
Message Builder for the Order State Machine.

This module builds every customer-facing text of the WhatsApp dialogue:
greeting, menus, prompts, order summary, confirmation and the various
error/reprompt messages. Prices always come from the catalog so the menu
text never drifts from what is charged.
"""

from typing import Optional, TYPE_CHECKING

from ..catalog import (
    BURGER_CHOICES,
    JUICE_CHOICES,
    SODA_CHOICES,
    WATER_ID,
    Catalog,
)
from ..config import ESTIMATE_WINDOW_MINUTES, MAX_QUANTITY, MIN_QUANTITY, RESTAURANT_NAME
from .models import Order, OrderLine
from .pricing import format_brl
from .schemas import OrderType, QuickReply

if TYPE_CHECKING:
    from ..services.order import OrderReceipt
    from ..services.store_status import StoreStatus


DIVIDER = "━" * 20

BACK_TO_START_HINT = "⬅️ Digite *VOLTAR* para voltar ao início"
BACK_TO_ORDER_HINT = "⬅️ Digite *VOLTAR* para ver opções do pedido"
BACK_TO_MENU_HINT = "⬅️ Digite *VOLTAR* para voltar ao cardápio"
BACK_HINT = "⬅️ Digite *VOLTAR* para voltar"

ADD_MORE_OPTIONS = "1️⃣ Sim\n2️⃣ Não, finalizar pedido"

ORDER_TYPE_LABELS = {
    OrderType.DINE_IN: "🍽️ Restaurante",
    OrderType.DELIVERY: "🚴 Delivery",
}


def keycap(number: int) -> str:
    """Digit emoji for menu options: 3 -> '3️⃣'."""
    return f"{number}\ufe0f\u20e3"


def greeting_for_hour(hour: int) -> str:
    if hour >= 18:
        return "Boa noite"
    if hour >= 12:
        return "Boa tarde"
    return "Bom dia"


class MessageBuilder:
    """
    Builds outbound texts for the ordering dialogue.

    Holds a reference to the catalog for prices and display names, and the
    restaurant name used in headers and sign-offs.
    """

    def __init__(self, catalog: Catalog, restaurant_name: str = RESTAURANT_NAME):
        self.catalog = catalog
        self.restaurant_name = restaurant_name

    def _price(self, item_id: str) -> str:
        return format_brl(self.catalog.price_of(item_id) or 0)

    # -------------------------------------------------------------------------
    # Start
    # -------------------------------------------------------------------------

    def build_greeting(self, order: Order, hour: int) -> tuple[str, list[QuickReply]]:
        """Greeting text plus quick replies (summary button only with items)."""
        text = (
            f"🍔 *{self.restaurant_name.upper()}*\n\n"
            f"{greeting_for_hour(hour)}! 👋\n\n"
            "Como podemos ajudar?\n\n"
            "*Escolha uma opção:*\n"
            "1️⃣ Ver cardápio e fazer pedido\n"
            "2️⃣ Ver resumo do pedido atual\n"
            "3️⃣ Falar com atendente\n\n"
            "*Ou digite:*\n"
            "• *1* ou *CARDÁPIO* para ver o cardápio\n"
            "• *2* ou *RESUMO* para ver seu pedido\n"
            "• *SAIR* para encerrar"
        )
        if order.has_items:
            labels = ["1️⃣ Ver Cardápio", "2️⃣ Ver Resumo", "3️⃣ Falar com Atendente"]
        else:
            labels = ["1️⃣ Ver Cardápio", "2️⃣ Falar com Atendente"]
        options = [QuickReply(label=label, id=f"btn_{i}") for i, label in enumerate(labels)]
        return text, options

    def build_store_closed(self, status: "StoreStatus") -> str:
        parts = ["🚫 *LOJA FECHADA*"]
        if status.message:
            parts.append(status.message)
        if status.next_open_time:
            parts.append(f"⏰ *Horário de abertura:* {status.next_open_time}")
        else:
            parts.append("⏰ Não há previsão de abertura no momento.")
        parts.append(f"Obrigado por escolher {self.restaurant_name}! 🍔\nVolte em breve! 👋")
        return "\n\n".join(parts)

    def build_no_items_yet(self) -> str:
        return "Você ainda não tem itens no pedido. Digite *1* ou *SIM* para começar!"

    def build_agent_handoff(self) -> str:
        return (
            "👋 *ATENDIMENTO HUMANIZADO*\n\n"
            "Olá! Um de nossos atendentes vai te responder em breve.\n\n"
            "Enquanto isso, você pode continuar fazendo seu pedido normalmente! 😊\n\n"
            "*Digite qualquer coisa que nossa equipe verá sua mensagem.*"
        )

    def build_agent_follow_up(self) -> str:
        return (
            "💬 *Sua mensagem foi recebida!*\n\n"
            "Nossa equipe está verificando e vai te responder em breve. "
            "Obrigado pela paciência! 🙏"
        )

    def build_farewell(self) -> str:
        return "👋 Obrigado! Até logo!"

    # -------------------------------------------------------------------------
    # Menus
    # -------------------------------------------------------------------------

    def build_menu(self, order: Order) -> str:
        """
        Main menu. When the order already has items the summary comes first
        and VOLTAR leads back to the order options instead of the start.
        """
        b = BURGER_CHOICES
        menu = (
            "🍔 *NOSSO CARDÁPIO*\n\n"
            "*HAMBÚRGUERES:*\n\n"
            "🍖 *Hambúrguer Bovino*\n"
            f"   1️⃣ Simples - {self._price(b[1])}\n"
            f"   2️⃣ Duplo - {self._price(b[2])}\n\n"
            "🐷 *Hambúrguer Suíno*\n"
            f"   3️⃣ Simples - {self._price(b[3])}\n"
            f"   4️⃣ Duplo - {self._price(b[4])}\n\n"
            "*BEBIDAS:*\n"
            f"   5️⃣ Refrigerante - {self._price(SODA_CHOICES[1])}\n"
            f"   6️⃣ Suco - {self._price(JUICE_CHOICES[1])}\n"
            f"   7️⃣ Água - {self._price(WATER_ID)}\n\n"
            "Digite o *NÚMERO* da opção desejada!"
        )
        if order.has_items:
            return f"{self.build_summary(order)}\n\n{menu}\n\n{BACK_TO_ORDER_HINT}"
        return f"{menu}\n\n{BACK_TO_START_HINT}"

    def _build_submenu(self, header: str, choices: dict[int, str], strip_prefix: str = "") -> str:
        lines = [header, ""]
        for number, item_id in choices.items():
            name = self.catalog.display_name_of(item_id)
            if strip_prefix and name.startswith(strip_prefix):
                name = name[len(strip_prefix):]
            lines.append(f"{keycap(number)} {name}")
        lines += ["", "Digite o número da opção:", "", BACK_TO_MENU_HINT]
        return "\n".join(lines)

    def build_soda_menu(self) -> str:
        return self._build_submenu(
            f"🥤 *REFRIGERANTES* - {self._price(SODA_CHOICES[1])} cada", SODA_CHOICES,
        )

    def build_juice_menu(self) -> str:
        return self._build_submenu(
            f"🧃 *SUCOS* - {self._price(JUICE_CHOICES[1])} cada", JUICE_CHOICES, strip_prefix="Suco de ",
        )

    def build_invalid_menu_option(self, order: Order) -> str:
        return f"❌ Opção inválida. Digite um número de 1 a 7.\n\n{self.build_menu(order)}"

    def build_invalid_beverage_option(self, submenu: str) -> str:
        return f"❌ Opção inválida. Digite um número de 1 a 4.\n\n{submenu}"

    def build_sold_out(self, item_id: str, submenu: str) -> str:
        """Sold-out notice followed by the sub-menu to pick from again."""
        name = self.catalog.display_name_of(item_id)
        return (
            f"❌ *{name}* está esgotado no momento.\n\n"
            "Por favor, escolha outro item do cardápio.\n\n"
            f"{submenu}"
        )

    # -------------------------------------------------------------------------
    # Quantities
    # -------------------------------------------------------------------------

    def build_quantity_prompt(self, item_id: str, back_hint: str = BACK_TO_MENU_HINT) -> str:
        name = self.catalog.display_name_of(item_id)
        noun = "hambúrgueres" if self.catalog.category_of(item_id) == "hamburguer" else "unidades"
        question = "Quantos" if noun == "hambúrgueres" else "Quantas"
        return (
            f"✅ {name} - {self._price(item_id)}\n\n"
            f"{question} {noun}? ({MIN_QUANTITY} a {MAX_QUANTITY})\n\n"
            f"{back_hint}"
        )

    def build_invalid_quantity(self, back_hint: str = BACK_TO_MENU_HINT) -> str:
        return f"❌ Quantidade inválida. Digite um número de {MIN_QUANTITY} a {MAX_QUANTITY}.\n\n{back_hint}"

    def build_line_added(self, line: OrderLine) -> str:
        return (
            f"✅ {line.quantity}x {line.name} adicionado!\n\n"
            "Deseja adicionar mais itens? (hambúrgueres ou bebidas)\n\n"
            f"{ADD_MORE_OPTIONS}"
        )

    # -------------------------------------------------------------------------
    # Order summary / add more
    # -------------------------------------------------------------------------

    def build_summary(self, order: Order) -> str:
        """Numbered item list with line totals and the order total."""
        if not order.has_items:
            return "Nenhum item adicionado ainda."
        lines = ["📋 *RESUMO DO PEDIDO:*", ""]
        for index, line in enumerate(order.lines, start=1):
            lines.append(f"{index}. {line.quantity}x {line.name} - {format_brl(line.total)}")
        lines += ["", f"💰 *Total: {format_brl(order.total)}*"]
        return "\n".join(lines)

    def build_add_more_prompt(self, order: Order) -> str:
        return f"{self.build_summary(order)}\n\nDeseja adicionar mais itens?\n\n{ADD_MORE_OPTIONS}"

    def build_add_more_reprompt(self) -> str:
        return (
            "Digite *1* para adicionar mais itens, *2* para finalizar o pedido "
            "ou *VOLTAR* para voltar ao cardápio."
        )

    def build_extracted_items(self, order: Order, follow_up: str) -> str:
        """Reply to a free-text order: what was added and the next question."""
        return f"✅ *Itens adicionados ao pedido!*\n\n{self.build_summary(order)}\n\n{follow_up}"

    # -------------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------------

    def build_order_type_prompt(self) -> str:
        return (
            "*TIPO DE PEDIDO:*\n\n"
            "1️⃣ 🍽️ Comer no restaurante\n"
            "2️⃣ 🚴 Delivery (entrega)\n\n"
            "Digite o número da opção:\n\n"
            f"{BACK_HINT}"
        )

    def build_invalid_order_type(self) -> str:
        return f"❌ Opção inválida. Digite 1 para restaurante ou 2 para delivery.\n\n{BACK_HINT}"

    def build_address_prompt(self) -> str:
        return (
            "Por favor, informe seu *endereço completo* para entrega:\n\n"
            "(Rua, número, bairro, complemento)\n\n"
            f"{BACK_HINT}"
        )

    def build_delivery_selected(self) -> str:
        return f"✅ Pedido para delivery!\n\n{self.build_address_prompt()}"

    def build_dine_in_selected(self) -> str:
        return f"✅ Pedido para comer no restaurante!\n\n{self.build_name_prompt(False)}"

    def build_address_saved(self, address: str) -> str:
        return f"✅ Endereço registrado: {address}\n\n{self.build_name_prompt(True)}"

    def build_name_prompt(self, back_to_address: bool) -> str:
        hint = "⬅️ Digite *VOLTAR* para voltar ao endereço" if back_to_address else BACK_HINT
        return f"Qual seu nome?\n\n{hint}"

    def build_payment_prompt(self, name: Optional[str] = None) -> str:
        header = f"✅ Nome: {name}\n\n" if name else ""
        return (
            f"{header}*MÉTODO DE PAGAMENTO:*\n\n"
            "1️⃣ Dinheiro\n"
            "2️⃣ PIX\n"
            "3️⃣ Cartão\n"
            "4️⃣ Voltar ao pedido\n\n"
            "Digite o número da opção:"
        )

    def build_invalid_payment(self) -> str:
        return "❌ Opção inválida. Digite 1, 2, 3 ou 4 (voltar)."

    # -------------------------------------------------------------------------
    # Finalize
    # -------------------------------------------------------------------------

    def build_confirmation(self, order: Order, receipt: "OrderReceipt") -> str:
        header = f"🆔 *PEDIDO {receipt.display_id}*"
        if receipt.daily_sequence:
            header += f"\n📍 *Posição na fila:* {receipt.daily_sequence}º pedido do dia"
        if receipt.customer_total_orders:
            header += f"\n🎉 *Este é seu {receipt.customer_total_orders}º pedido!*"

        items = "\n".join(
            f"{line.quantity}x {line.name} - {format_brl(line.total)}" for line in order.lines
        )
        total = order.total_snapshot if order.total_snapshot is not None else order.total
        order_type = ORDER_TYPE_LABELS.get(order.order_type, ORDER_TYPE_LABELS[OrderType.DINE_IN])
        payment = order.payment_method.value if order.payment_method else ""
        window_end = receipt.estimated_minutes + ESTIMATE_WINDOW_MINUTES

        return (
            "✅ *PEDIDO CONFIRMADO!*\n\n"
            f"{DIVIDER}\n{header}\n{DIVIDER}\n\n"
            f"📋 *Resumo:*\n{items}\n\n"
            f"💰 *Total: {format_brl(total)}*\n"
            f"{order_type} | 💳 {payment}\n\n"
            f"⏰ *Tempo estimado: {receipt.estimated_minutes}-{window_end} minutos*\n\n"
            "🍔 Seu pedido está sendo preparado!\n\n"
            "*Obrigado pela preferência!* 😊"
        )

    def build_finalize_error(self) -> str:
        return "❌ Erro ao processar pedido. Tente novamente."

