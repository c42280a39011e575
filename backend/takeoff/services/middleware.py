"""Request timing and tracing middleware for the takeoff API."""
import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("takeoff-api.middleware")

SKIP_LOG_PATHS = {"/health"}


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an X-Request-ID, reports X-Process-Time in ms,
    and logs one structured line per request (except health probes).
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()
        request.state.request_id = request_id

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        if request.url.path not in SKIP_LOG_PATHS:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={"request_id": request_id, "duration_ms": duration_ms},
            )

        return response
