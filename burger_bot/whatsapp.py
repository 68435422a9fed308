"""
WhatsApp transport for customer messages.

Sends real WhatsApp messages via Twilio when configured, falls back to
logging in mock mode.

Quick replies (the greeting buttons) go through a Twilio Content template
when TWILIO_QUICK_REPLY_CONTENT_SID is set; if that send fails, or no
template is configured, the plain text is sent instead (it already lists
the numbered options).

Environment variables:
- TWILIO_ACCOUNT_SID: Twilio Account SID (starts with AC)
- TWILIO_AUTH_TOKEN: Twilio Auth Token
- TWILIO_WHATSAPP_NUMBER: WhatsApp sender, e.g. whatsapp:+14155238886
- TWILIO_QUICK_REPLY_CONTENT_SID: Optional quick-reply content template
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .config import (
    HTTP_TIMEOUT_SECONDS,
    RESTAURANT_NAME,
    TWILIO_ACCOUNT_SID,
    TWILIO_AUTH_TOKEN,
    TWILIO_QUICK_REPLY_CONTENT_SID,
    TWILIO_WHATSAPP_NUMBER,
)
from .tasks.parsers import format_whatsapp_number
from .tasks.schemas import QuickReply

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"
MAX_QUICK_REPLIES = 3


@dataclass(frozen=True)
class SendResult:
    """Outcome of one send attempt."""
    ok: bool
    recipient: str
    sid: Optional[str] = None
    mock: bool = False
    error: Optional[str] = None


def build_out_for_delivery_message(
    display_id: str,
    customer_name: str,
    address: Optional[str] = None,
    restaurant_name: str = RESTAURANT_NAME,
) -> str:
    address_line = f"📍 Endereço: {address}\n" if address else ""
    return (
        f"🚚 *PEDIDO {display_id} SAIU PARA ENTREGA!*\n\n"
        f"Olá {customer_name}! 👋\n\n"
        f"Seu pedido {display_id} acabou de sair para entrega e está a caminho! 🍔\n\n"
        f"{address_line}Em breve chegará até você!\n\n"
        f"Obrigado por escolher {restaurant_name}! 🍔❤️"
    )


class WhatsAppSender:
    """
    Sends customer messages over Twilio's WhatsApp API.

    Recipients are conversation ids ("whatsapp:+55...") or bare phone
    numbers, which are converted with format_whatsapp_number.
    """

    def __init__(
        self,
        account_sid: Optional[str] = TWILIO_ACCOUNT_SID,
        auth_token: Optional[str] = TWILIO_AUTH_TOKEN,
        from_number: Optional[str] = TWILIO_WHATSAPP_NUMBER,
        quick_reply_content_sid: Optional[str] = TWILIO_QUICK_REPLY_CONTENT_SID,
        restaurant_name: str = RESTAURANT_NAME,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        client=None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.quick_reply_content_sid = quick_reply_content_sid
        self.restaurant_name = restaurant_name
        self.timeout = timeout
        self._client = client

    def is_configured(self) -> bool:
        """Check if Twilio is properly configured."""
        if self._client is not None:
            return bool(self.from_number)
        return all([self.account_sid, self.auth_token, self.from_number])

    def _get_client(self):
        if self._client is None:
            from twilio.http.http_client import TwilioHttpClient
            from twilio.rest import Client

            # Sends run while the conversation lock is held
            self._client = Client(
                self.account_sid,
                self.auth_token,
                http_client=TwilioHttpClient(timeout=self.timeout),
            )
        return self._client

    def _sender_address(self) -> str:
        number = self.from_number or ""
        return number if number.startswith(WHATSAPP_PREFIX) else f"{WHATSAPP_PREFIX}{number}"

    def _recipient_address(self, recipient: str) -> Optional[str]:
        if recipient.startswith(WHATSAPP_PREFIX):
            return recipient
        return format_whatsapp_number(recipient)

    def send_text(self, recipient: str, text: str) -> SendResult:
        """Send a plain text message. Failures are logged, never raised."""
        to = self._recipient_address(recipient)
        if to is None:
            logger.error("Cannot send to %s: not a usable WhatsApp number", recipient)
            return SendResult(ok=False, recipient=recipient, error="invalid recipient")

        if not self.is_configured():
            # Mock mode - just log the message
            logger.info("MOCK WhatsApp to %s: %s", to, text)
            return SendResult(ok=True, recipient=to, mock=True)

        try:
            message = self._get_client().messages.create(
                body=text,
                from_=self._sender_address(),
                to=to,
            )
        except Exception as e:
            logger.error("Failed to send WhatsApp message to %s: %s", to, str(e))
            return SendResult(ok=False, recipient=to, error=str(e))

        logger.debug("WhatsApp message sent to %s (SID: %s)", to, message.sid)
        return SendResult(ok=True, recipient=to, sid=message.sid)

    def send_with_options(self, recipient: str, text: str, options: Sequence[QuickReply]) -> SendResult:
        """
        Send text with up to three quick-reply buttons.

        Falls back to plain text when no template is configured or the rich
        send fails.
        """
        options = list(options)[:MAX_QUICK_REPLIES]
        to = self._recipient_address(recipient)
        if not options or to is None or not self.quick_reply_content_sid:
            return self.send_text(recipient, text)

        if not self.is_configured():
            labels = ", ".join(f"{o.label} [{o.id}]" for o in options)
            logger.info("MOCK WhatsApp to %s: %s (buttons: %s)", to, text, labels)
            return SendResult(ok=True, recipient=to, mock=True)

        variables = {"1": text, "2": self.restaurant_name}
        for index, option in enumerate(options):
            variables[str(3 + index * 2)] = option.label
            variables[str(4 + index * 2)] = option.id

        try:
            message = self._get_client().messages.create(
                from_=self._sender_address(),
                to=to,
                content_sid=self.quick_reply_content_sid,
                content_variables=json.dumps(variables),
            )
        except Exception as e:
            logger.error("Quick-reply send to %s failed, falling back to text: %s", to, str(e))
            return self.send_text(recipient, text)

        logger.debug("WhatsApp quick replies sent to %s (SID: %s)", to, message.sid)
        return SendResult(ok=True, recipient=to, sid=message.sid)

    def notify_out_for_delivery(
        self,
        phone: str,
        display_id: str,
        customer_name: str,
        address: Optional[str] = None,
    ) -> SendResult:
        """Tell a customer their order has left for delivery."""
        text = build_out_for_delivery_message(display_id, customer_name, address, self.restaurant_name)
        result = self.send_text(phone, text)
        if result.ok:
            logger.info("Delivery notification for %s sent to %s", display_id, result.recipient)
        return result
