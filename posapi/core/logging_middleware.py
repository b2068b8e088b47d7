import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

# posapi logger so request lines share the app's JSON handler
logger = logging.getLogger("posapi")

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """One line per request and per response, tagged with a request id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        client = request.client.host if request.client else "-"
        target = f"{request.method} {request.url.path}"
        started = time.perf_counter()

        logger.info(f"[{request_id}] --> {target} from {client}")
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[{request_id}] !! {target} raised")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        message = f"[{request_id}] <-- {target} {response.status_code} ({elapsed_ms:.1f}ms)"
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
