"""
Registrar Backend — Request ID Middleware
===========================================

What:  Gives every request a correlation ID, echoed in `X-Request-ID`.
How:   A client-supplied `X-Request-ID` is reused when it is a short token of
       letters, digits, `.`, `_` or `-`; anything else is replaced by eight hex
       characters of a UUID4. The ID is stored in a ContextVar for loggers and
       error handlers and in `request.state` for route handlers.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Client IDs end up in log lines verbatim
_CLIENT_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(header_value: Optional[str]) -> str:
    """Returns the client's ID if it is a safe token, otherwise a fresh one."""
    if header_value and _CLIENT_ID.match(header_value):
        return header_value
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
