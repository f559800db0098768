import logging
import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from smokehouse.core.dependencies import SESSION_HEADER
from smokehouse.core.logging_config import request_id_ctx_var, session_id_ctx_var

logger = logging.getLogger("smokehouse.request")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log one access line per response.

    The cart session starts as whatever the client sent and is logged as the
    one the cart dependency resolved (a minted guest id when none was sent).
    Both context vars are reset when the request ends so ids never leak into
    the next request handled by the same worker.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        request_token = request_id_ctx_var.set(request_id)
        session_token = session_id_ctx_var.set((request.headers.get(SESSION_HEADER) or "").strip() or None)
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            if response is not None:
                response.headers["X-Request-ID"] = request_id
                cart_session = response.headers.get(SESSION_HEADER)
                logger.info(
                    "request",
                    extra={
                        "path": request.url.path,
                        "method": request.method,
                        "status_code": response.status_code,
                        "duration_ms": int((time.perf_counter() - start) * 1000),
                        "cart_session": cart_session,
                        "session_minted": bool(cart_session) and cart_session != request.headers.get(SESSION_HEADER),
                    },
                )
            session_id_ctx_var.reset(session_token)
            request_id_ctx_var.reset(request_token)
