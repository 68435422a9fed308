"""
Configuration Module for Burger Bot
===================================

This module centralizes all configuration settings, environment variables, and
constants used throughout the Burger Bot application. Values are read once at
import time; tests override them by passing explicit arguments to the objects
that use them.

Configuration Categories:
-------------------------
- **Restaurant**: Display name used in greetings, confirmations and the
  quick-reply footer.

- **Upstream Services**: The order backend webhook and the store-status
  service, plus the timeout applied to every outbound HTTP call.

- **Conversation Rules**: Quantity bounds, minimum address length and the
  constants used to estimate preparation time.

- **Agent Handoff**: Delay before the follow-up reminder is sent to a
  customer who asked to talk to a person.

- **Transport**: Twilio WhatsApp credentials. When they are missing the
  sender runs in mock mode and only logs outgoing messages.

- **Rate Limiting / Admin**: Inbound webhook throttling and HTTP Basic
  credentials for the admin surface.

Environment Variables:
----------------------
- RESTAURANT_NAME: Brand name (default: "Tamboril Burguer")
- ORDER_WEBHOOK_URL: Order backend endpoint
- STORE_STATUS_URL: Store-status endpoint
- HTTP_TIMEOUT_SECONDS: Timeout for outbound HTTP calls (default: 10)
- STORE_STATUS_TTL_SECONDS: Store-status cache lifetime (default: 60)
- AGENT_FOLLOW_UP_SECONDS: Agent-handoff reminder delay (default: 30)
- OUTBOX_DRAIN_INTERVAL_SECONDS: Send queue drain period (default: 5)
- TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN / TWILIO_WHATSAPP_NUMBER
- TWILIO_QUICK_REPLY_CONTENT_SID: Optional quick-reply content template
- RATE_LIMIT_WEBHOOK: Webhook rate limit (default: "60 per minute")
- RATE_LIMIT_ENABLED: Enable/disable rate limiting (default: "true")
- ADMIN_USERNAME / ADMIN_PASSWORD: Admin credentials
- MAX_MESSAGE_LENGTH: Longest accepted chat message (default: 2000)
- CORS_ORIGINS: Allowed origins for the admin surface (default: all)
- HOST / PORT: Bind address for `python -m burger_bot.main` (default: 0.0.0.0:8000)
"""

import os


# =============================================================================
# Restaurant
# =============================================================================

RESTAURANT_NAME: str = os.getenv("RESTAURANT_NAME", "Tamboril Burguer")


# =============================================================================
# Upstream Services
# =============================================================================
# Both services are owned by the restaurant's web backend. The bot only
# submits finalized orders and reads the open/closed flag.

ORDER_WEBHOOK_URL: str = os.getenv(
    "ORDER_WEBHOOK_URL",
    "https://tamboril-burguer.vercel.app/api/webhook/whatsapp",
)
STORE_STATUS_URL: str = os.getenv(
    "STORE_STATUS_URL",
    "https://tamboril-burguer.vercel.app/api/store/status",
)

# Every outbound call (backend, store status, transport) is bounded by this
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

# The store-status service is queried at most once per this many seconds
STORE_STATUS_TTL_SECONDS: float = float(os.getenv("STORE_STATUS_TTL_SECONDS", "60"))


# =============================================================================
# Conversation Rules
# =============================================================================

MIN_QUANTITY: int = 1
MAX_QUANTITY: int = 10

# Delivery addresses must be strictly longer than this many characters
MIN_ADDRESS_LENGTH: int = 10

# Confirmation time window: [estimate, estimate + ESTIMATE_WINDOW_MINUTES]
DEFAULT_ESTIMATE_MINUTES: int = 20
MINUTES_PER_QUEUED_ORDER: int = 20
ESTIMATE_WINDOW_MINUTES: int = 10


# =============================================================================
# Agent Handoff / Outbox
# =============================================================================

AGENT_FOLLOW_UP_SECONDS: float = float(os.getenv("AGENT_FOLLOW_UP_SECONDS", "30"))
OUTBOX_DRAIN_INTERVAL_SECONDS: float = float(os.getenv("OUTBOX_DRAIN_INTERVAL_SECONDS", "5"))


# =============================================================================
# Transport (Twilio WhatsApp)
# =============================================================================

TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_WHATSAPP_NUMBER = os.getenv("TWILIO_WHATSAPP_NUMBER")
TWILIO_QUICK_REPLY_CONTENT_SID = os.getenv("TWILIO_QUICK_REPLY_CONTENT_SID")


# =============================================================================
# Rate Limiting Configuration
# =============================================================================
# Uses slowapi with in-memory storage, keyed by the caller's address.

RATE_LIMIT_WEBHOOK: str = os.getenv("RATE_LIMIT_WEBHOOK", "60 per minute")
RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"


def get_rate_limit_webhook() -> str:
    """
    Return the current webhook rate limit.

    Lets tests override the limit without modifying the module constant.
    """
    return RATE_LIMIT_WEBHOOK


# =============================================================================
# Admin Authentication Configuration
# =============================================================================
# ADMIN_PASSWORD must be set for the admin surface to answer at all.

ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")


# =============================================================================
# Inbound Messages
# =============================================================================
# Longest accepted message on the JSON chat endpoint

MAX_MESSAGE_LENGTH: int = int(os.getenv("MAX_MESSAGE_LENGTH", "2000"))


# =============================================================================
# HTTP Server
# =============================================================================
# CORS_ORIGINS is a comma-separated list; empty allows all origins (local dev)

_cors_origins_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS: list = [origin.strip() for origin in _cors_origins_env.split(",") if origin.strip()] or ["*"]

HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8000"))
