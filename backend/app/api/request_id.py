"""Request id propagation.

Incoming ``X-Request-Id`` headers are reused when they look like an id a
proxy would set; anything else is replaced with a fresh uuid4 hex.
"""

from __future__ import annotations

import re
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.obs import logging as obs_logging

REQUEST_ID_ATTR = "request_id"
REQUEST_ID_HEADER = "X-Request-Id"

_ACCEPTABLE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _incoming_or_new(value: Optional[str]) -> str:
    if value and _ACCEPTABLE_ID.match(value):
        return value
    return uuid.uuid4().hex


def get_request_id(request: Optional[Request] = None, default: str = "unknown") -> str:
    """Return the current request id if known, else ``default``."""
    if request is not None:
        rid = getattr(request.state, REQUEST_ID_ATTR, None)
        if rid:
            return str(rid)
    return obs_logging.current_request_id() or default


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        rid = _incoming_or_new(request.headers.get(REQUEST_ID_HEADER))
        setattr(request.state, REQUEST_ID_ATTR, rid)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
