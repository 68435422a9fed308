"""
Unified message processing for all inbound endpoints.

This module provides a single MessageProcessor class that handles the complete
lifecycle of one inbound customer message:
- Dialogue controller processing (state machine)
- Sending the replies through the WhatsApp transport
- Failure isolation: an unexpected error while handling one conversation
  is logged and never leaks into other conversations

Both the Twilio webhook and the JSON test endpoint use this class, with only
request/response format handling done in the endpoint itself.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .tasks import OrderStateMachine, OutboundMessage
from .tasks.parsers import normalize_text
from .whatsapp import SendResult, WhatsAppSender

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------

@dataclass
class ProcessingContext:
    """Input context for message processing."""
    conversation_id: str
    text: str

    # Quick-reply token sent by the transport instead of typed text
    button_payload: Optional[str] = None

    # When False the replies are returned but not sent (JSON endpoint)
    deliver: bool = True

    @property
    def effective_text(self) -> str:
        return self.button_payload or self.text or ""


@dataclass
class ProcessingResult:
    """Output from message processing."""
    replies: List[OutboundMessage] = field(default_factory=list)
    sends: List[SendResult] = field(default_factory=list)
    conversation_closed: bool = False
    ignored: bool = False
    error: bool = False

    @property
    def reply_texts(self) -> List[str]:
        return [reply.text for reply in self.replies]


# -----------------------------------------------------------------------------
# MessageProcessor Class
# -----------------------------------------------------------------------------

class MessageProcessor:
    """
    Runs one inbound message through the controller and sends the replies.

    Usage:
        processor = MessageProcessor(state_machine, sender)
        result = processor.handle(ProcessingContext(
            conversation_id="whatsapp:+5521999998888",
            text="oi",
        ))
    """

    def __init__(self, state_machine: OrderStateMachine, sender: WhatsAppSender):
        self.state_machine = state_machine
        self.sender = sender

    def handle(self, ctx: ProcessingContext) -> ProcessingResult:
        text = ctx.effective_text
        if not normalize_text(text):
            logger.debug("Ignoring empty message from %s", ctx.conversation_id)
            return ProcessingResult(ignored=True)

        logger.info("Message from %s: %s", ctx.conversation_id, text)

        try:
            sm_result = self.state_machine.process(ctx.conversation_id, text)
        except Exception:
            logger.exception("Unhandled error processing message from %s", ctx.conversation_id)
            return ProcessingResult(error=True)

        result = ProcessingResult(
            replies=list(sm_result.messages),
            conversation_closed=sm_result.conversation_closed,
        )
        if ctx.deliver:
            result.sends = [self._send(ctx.conversation_id, reply) for reply in sm_result.messages]
        return result

    def _send(self, conversation_id: str, reply: OutboundMessage) -> SendResult:
        if reply.has_options:
            return self.sender.send_with_options(conversation_id, reply.text, reply.options)
        return self.sender.send_text(conversation_id, reply.text)
