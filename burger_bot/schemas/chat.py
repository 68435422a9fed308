"""
Chat Schemas for Burger Bot
===========================

Pydantic models for the JSON chat endpoint. The Twilio webhook posts form
data and has no request model; it is parsed with Form() in the route.

Endpoint Coverage:
------------------
- POST /chat/message: Run one message through the dialogue and get the
  replies back (optionally also sending them over WhatsApp)
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..config import MAX_MESSAGE_LENGTH


class ChatMessageRequest(BaseModel):
    conversation_id: str = Field(..., min_length=1, description="Customer address, e.g. whatsapp:+5521999998888")
    message: str = Field(..., max_length=MAX_MESSAGE_LENGTH)
    button_payload: Optional[str] = Field(None, description="Quick-reply id such as btn_0")
    deliver: bool = Field(False, description="Also send the replies over WhatsApp")


class QuickReplyOut(BaseModel):
    label: str
    id: str


class ReplyOut(BaseModel):
    text: str
    options: List[QuickReplyOut] = Field(default_factory=list)


class ChatMessageResponse(BaseModel):
    replies: List[ReplyOut]
    conversation_closed: bool = False
    state: Optional[str] = Field(None, description="Dialogue state after the message; None once closed")
