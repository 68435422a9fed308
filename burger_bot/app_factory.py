"""
Application factory for the Burger Bot FastAPI app.

create_app() builds a fresh application around a BotRuntime. Production
uses the default runtime (real Twilio sender, real backends); tests pass a
runtime wired with fakes so each test gets isolated state.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import CORS_ORIGINS, OUTBOX_DRAIN_INTERVAL_SECONDS, RESTAURANT_NAME
from .middleware import RequestIDMiddleware
from .routes import admin_router, chat_router, limiter, webhook_router
from .runtime import BotRuntime, build_runtime

logger = logging.getLogger(__name__)


def create_app(
    runtime: Optional[BotRuntime] = None,
    start_background: bool = True,
) -> FastAPI:
    """
    Create a FastAPI application.

    Args:
        runtime: Components to serve. Built from configuration when None.
        start_background: Run the outbox drain thread while the app is up.

    Returns:
        Configured FastAPI application
    """
    runtime = runtime or build_runtime()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_background:
            runtime.outbox.start(runtime.send_queued, OUTBOX_DRAIN_INTERVAL_SECONDS)
        logger.info("%s bot started", RESTAURANT_NAME)
        yield
        runtime.outbox.stop(timeout=OUTBOX_DRAIN_INTERVAL_SECONDS)
        runtime.priority.shutdown()
        logger.info("%s bot stopped", RESTAURANT_NAME)

    app = FastAPI(
        title="Burger Bot API",
        description=f"WhatsApp ordering bot for {RESTAURANT_NAME}",
        version="1.0.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Health check endpoints"},
            {"name": "Webhook", "description": "Twilio WhatsApp webhook"},
            {"name": "Chat", "description": "JSON chat endpoint for testing and integrations"},
            {"name": "Admin", "description": "Staff endpoints (HTTP Basic auth)"},
        ],
    )
    app.state.runtime = runtime

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Configure rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.include_router(webhook_router)
    app.include_router(chat_router)
    app.include_router(admin_router)

    @app.get("/health", tags=["Health"])
    def health() -> Dict[str, str]:
        """Health check endpoint. Returns ok if the service is running."""
        return {"status": "ok"}

    @app.get("/status", tags=["Health"])
    def service_status(request: Request) -> Dict[str, Any]:
        """Counters for dashboards; never calls the store-status service."""
        current: BotRuntime = request.app.state.runtime
        return {
            "status": "ok",
            "restaurant": RESTAURANT_NAME,
            "active_conversations": len(current.conversations),
            "prioritized_conversations": len(current.priority),
            "queued_messages": len(current.outbox),
            "store_open": current.store_status.cached.is_open,
            "whatsapp_configured": current.sender.is_configured(),
        }

    logger.info("Application created")
    return app
