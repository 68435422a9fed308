"""
Chat Routes for Burger Bot
==========================

Customer-facing inbound endpoints. Both feed the same MessageProcessor, so
a message behaves identically whichever way it arrives.

Endpoints:
----------
- POST /webhook/whatsapp: Twilio WhatsApp webhook (form post with From,
  Body and, for quick-reply taps, ButtonPayload). Replies are sent through
  the Twilio REST API; the webhook itself answers with empty TwiML.
- POST /chat/message: JSON endpoint for testing and integrations. Returns
  the replies in the response and only sends them when deliver=true.

Rate Limiting:
--------------
Both endpoints are limited per caller address (default: 60/minute, see
RATE_LIMIT_WEBHOOK) using slowapi's in-memory storage.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address
from twilio.twiml.messaging_response import MessagingResponse

from ..config import RATE_LIMIT_ENABLED, get_rate_limit_webhook
from ..message_processor import ProcessingContext
from ..runtime import BotRuntime, get_runtime
from ..schemas.chat import ChatMessageRequest, ChatMessageResponse, QuickReplyOut, ReplyOut

logger = logging.getLogger(__name__)


# =============================================================================
# Rate Limiting Setup
# =============================================================================

limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)


# =============================================================================
# Routers
# =============================================================================

webhook_router = APIRouter(prefix="/webhook", tags=["Webhook"])
chat_router = APIRouter(prefix="/chat", tags=["Chat"])


@webhook_router.post("/whatsapp")
@limiter.limit(get_rate_limit_webhook)
def whatsapp_webhook(
    request: Request,
    sender: str = Form(..., alias="From"),
    body: str = Form("", alias="Body"),
    button_payload: Optional[str] = Form(None, alias="ButtonPayload"),
    runtime: BotRuntime = Depends(get_runtime),
) -> Response:
    """Inbound WhatsApp message from Twilio."""
    runtime.processor.handle(ProcessingContext(
        conversation_id=sender,
        text=body,
        button_payload=button_payload,
    ))
    return Response(content=str(MessagingResponse()), media_type="application/xml")


@chat_router.post("/message", response_model=ChatMessageResponse)
@limiter.limit(get_rate_limit_webhook)
def chat_message(
    request: Request,
    req: ChatMessageRequest,
    runtime: BotRuntime = Depends(get_runtime),
) -> ChatMessageResponse:
    """Run a message through the dialogue and return the replies."""
    result = runtime.processor.handle(ProcessingContext(
        conversation_id=req.conversation_id,
        text=req.message,
        button_payload=req.button_payload,
        deliver=req.deliver,
    ))
    if result.error:
        raise HTTPException(status_code=500, detail="Failed to process message")

    state = None
    if not result.conversation_closed:
        conversation = runtime.conversations.get(req.conversation_id)
        if conversation is not None:
            state = conversation.state.value

    return ChatMessageResponse(
        replies=[
            ReplyOut(
                text=reply.text,
                options=[QuickReplyOut(label=o.label, id=o.id) for o in reply.options],
            )
            for reply in result.replies
        ],
        conversation_closed=result.conversation_closed,
        state=state,
    )
