"""
Request ID — correlaciona access log, logs de domínio e corpo de erro.

O id (recebido em X-Request-ID ou gerado) fica num ContextVar durante o
request; RequestIdLogFilter o injeta em todo LogRecord como `request_id`.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_INBOUND_LENGTH = 64

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

logger = logging.getLogger("fieldsurvey.access")


def current_request_id() -> str:
    return request_id_var.get()


class RequestIdLogFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


def _inbound_id(request: Request) -> str:
    # Ids do cliente são aceitos só se curtos e imprimíveis.
    value = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if value and len(value) <= _MAX_INBOUND_LENGTH and value.isprintable():
        return value
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _inbound_id(request)
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s %d %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={"request_id": request_id},
        )
        return response
