"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log line per request, plus an X-Request-ID on every response.

    203.0.113.9 - - [18/Oct/2026:12:00:00 +0000] "POST /signin" 200 131 4.21ms [a1b2c3d4]

or, with log_format="json":

    {"request_id": "a1b2c3d4", "method": "POST", "path": "/signin",
     "status_code": 200, "content_length": 131, "duration_ms": 4.21, ...}

=============================================================================
REQUEST IDS
=============================================================================

If the caller (a proxy, the web front-end) already sent X-Request-ID, that
value is kept so logs on both sides line up; otherwise a short random id
is generated. The id is also placed in the request context under
"request_id" for handlers that want to log with it.

=============================================================================
WHAT IS NEVER LOGGED
=============================================================================

Request bodies (passwords on /signup and /signin), the Authorization
header and the Cookie header (session tokens). Only method, path, status,
size, timing, client address and user agent.

=============================================================================
"""

import json
import logging
import re
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Optional

from .base import Middleware, NextHandler
from ..http.context import set_value
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


# Namespaced so deployments can route access logs separately:
#   logging.getLogger("grocerme.access").addHandler(file_handler)
logger = logging.getLogger("grocerme.access")


REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_ID_KEY = "request_id"
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


@dataclass
class RequestLog:
    """Structured access-log entry."""

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Apache-style line with the request id appended."""
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms [{self.request_id}]'
        )


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class LoggingMiddleware(Middleware):
    """
    Request logging middleware. Register it FIRST so it sees every
    request, including preflights and auth rejections.

    Args:
        log_format: "text" or "json".
        log_level: Level for access lines (failures always log at ERROR).
        skip_paths: Paths that are not logged, e.g. ["/health"] for probes.
    """

    def __init__(
        self,
        log_format: str = "text",
        log_level: int = logging.INFO,
        skip_paths: Optional[list] = None,
    ):
        if log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {log_format!r}")
        self.log_format = log_format
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        incoming = request.get_header(REQUEST_ID_HEADER)
        request_id = incoming if _REQUEST_ID_PATTERN.match(incoming) else new_request_id()
        request = set_value(request, REQUEST_ID_KEY, request_id)

        start = time.perf_counter()
        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms) [{request_id}]"
            )
            raise
        duration_ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id

        if request.path not in self.skip_paths:
            self._emit(RequestLog(
                request_id=request_id,
                method=request.method,
                path=request.path,
                client_ip=request.client_address[0],
                user_agent=request.get_header("User-Agent") or "-",
                status_code=int(response.status),
                content_length=len(response.body),
                duration_ms=duration_ms,
                timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
            ))

        return response

    def _emit(self, entry: RequestLog) -> None:
        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())
