"""
Routes Package for Burger Bot
=============================

FastAPI routers grouped by audience.

**Customer-Facing Routes:**
- chat.py: Twilio WhatsApp webhook and the JSON chat endpoint

**Admin Routes (HTTP Basic auth):**
- admin.py: prioritized conversations, outbound queue, delivery
  notifications, store status and item availability

Error Handling:
---------------
Routes raise HTTPException for error conditions:
- 401: Unauthorized (invalid credentials)
- 404: Not found (unknown conversation or menu item)
- 429: Too many requests (rate limited)
- 502: WhatsApp send failed
- 503: Service unavailable (admin password not configured)
"""

from .chat import chat_router, limiter, webhook_router
from .admin import admin_router

__all__ = [
    "chat_router",
    "webhook_router",
    "admin_router",
    "limiter",
]
