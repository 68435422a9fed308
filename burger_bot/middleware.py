"""
FastAPI middleware for request correlation.
"""

import logging
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .logging_config import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Adds a unique request ID to each request.

    The ID is taken from the incoming X-Request-ID header when present
    (Twilio retries keep theirs), stored in request.state.request_id, set
    as the logging request id for the duration of the request and echoed
    back in the response header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_id(request_id)

        try:
            response = await call_next(request)
        finally:
            # Always clear the id after the request
            clear_request_id()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
