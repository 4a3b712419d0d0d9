from __future__ import annotations

import re
import time
import uuid

import structlog
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .metrics import REQ_COUNTER, REQ_LATENCY

logger = structlog.get_logger(__name__)

HEADER_REQ_ID = "X-Request-Id"
HTTP_STATUS_INTERNAL_ERROR = "500"

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def validate_request_id(req_id: str) -> bool:
    """Accept only UUID-shaped request IDs from callers."""
    if not req_id or len(req_id) > 100:
        return False
    return UUID_PATTERN.match(req_id) is not None


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Adds a request ID, records latency metrics, and emits structured logs.
    """

    def __init__(self, app, service_name: str = "algolia-sync"):
        super().__init__(app)
        self.service_name = service_name

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming_req_id = request.headers.get(HEADER_REQ_ID)
        if incoming_req_id and validate_request_id(incoming_req_id):
            req_id = incoming_req_id
        else:
            req_id = str(uuid.uuid4())

        request.state.request_id = req_id
        structlog.contextvars.bind_contextvars(request_id=req_id)
        start = time.time()
        route = request.url.path

        try:
            response = await call_next(request)
        except Exception:
            self._observe(request.method, route, HTTP_STATUS_INTERNAL_ERROR, start)
            logger.error(
                "request.failed",
                route=route,
                method=request.method,
                status=int(HTTP_STATUS_INTERNAL_ERROR),
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        status = str(response.status_code)
        self._observe(request.method, route, status, start)
        logger.info(
            "request",
            request_id=req_id,
            route=route,
            method=request.method,
            status=response.status_code,
        )
        response.headers[HEADER_REQ_ID] = req_id
        return response

    def _observe(self, method: str, route: str, status: str, start: float) -> None:
        REQ_COUNTER.labels(
            service=self.service_name, method=method, path=route, status=status
        ).inc()
        REQ_LATENCY.labels(
            service=self.service_name, method=method, path=route
        ).observe(time.time() - start)


class NoContentCORSMiddleware(CORSMiddleware):
    """CORS middleware that answers accepted preflight requests with ``204``."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)
