"""
=============================================================================
CORS (Cross-Origin Resource Sharing) MIDDLEWARE
=============================================================================

Lets the grocer.me web front-end (served from a different origin) call
the API with cookies attached.

    ┌───────────────────────────────────────────────────────────────────┐
    │                    SAME-ORIGIN POLICY                             │
    ├───────────────────────────────────────────────────────────────────┤
    │                                                                    │
    │   Page from: https://grocer.me                                    │
    │                                                                    │
    │   ✅ https://grocer.me/health        (same origin)                │
    │   ❌ https://api.grocer.me/lists     (different host, needs CORS) │
    │                                                                    │
    │   Origin = scheme + domain + port                                 │
    │                                                                    │
    └───────────────────────────────────────────────────────────────────┘

=============================================================================
WHAT THIS MIDDLEWARE DOES
=============================================================================

On EVERY response (including 401s, 404s and 500s from handlers that raise):

    Access-Control-Allow-Origin:      <request Origin, verbatim; "" if none>
    Access-Control-Allow-Credentials: true
    Access-Control-Allow-Methods:     GET, POST, PUT, DELETE, OPTIONS, PATCH
    Access-Control-Allow-Headers:     Content-Type, Authorization, X-Requested-With
    Access-Control-Max-Age:           3600
    Vary:                             Origin

For OPTIONS (preflight) it answers 204 No Content itself and the route
handler is never called. It never rejects a request.

NOTE: the origin is reflected without an allow-list, with credentials
allowed. Any site can therefore make credentialed calls. An allow-list
belongs here if the API is ever exposed beyond the grocer.me front-end.

=============================================================================
MIDDLEWARE POSITION
=============================================================================

    router.use(LoggingMiddleware())    # log everything, preflights too
    router.use(CORSMiddleware())       # before auth: preflights carry no token
    router.use(AuthMiddleware(gate))

=============================================================================
"""

from dataclasses import dataclass, field
from typing import List
import logging

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, internal_error, no_content


logger = logging.getLogger(__name__)


@dataclass
class CORSConfig:
    """Header values the middleware sends."""

    allow_methods: List[str] = field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"]
    )
    allow_headers: List[str] = field(
        default_factory=lambda: ["Content-Type", "Authorization", "X-Requested-With"]
    )
    allow_credentials: bool = True
    max_age: int = 3600


class CORSMiddleware(Middleware):
    """
    Reflects the caller's Origin and short-circuits preflight requests.

        router.use(CORSMiddleware())
    """

    def __init__(self, config: CORSConfig = None):
        self.config = config or CORSConfig()

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        origin = request.origin

        if request.method == "OPTIONS":
            response = no_content()
        else:
            try:
                response = next(request)
            except Exception as e:
                # handler errors still leave with CORS headers
                logger.exception(f"Handler error for {request.method} {request.path}: {e}")
                response = internal_error()

        return self.apply_headers(response, origin)

    def apply_headers(self, response: HTTPResponse, origin: str) -> HTTPResponse:
        response.headers["Access-Control-Allow-Origin"] = origin
        if self.config.allow_credentials:
            response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = ", ".join(self.config.allow_methods)
        response.headers["Access-Control-Allow-Headers"] = ", ".join(self.config.allow_headers)
        response.headers["Access-Control-Max-Age"] = str(self.config.max_age)

        # Caches must key on Origin since the allow-origin value varies with it
        vary = response.headers.get("Vary", "")
        if "Origin" not in vary:
            response.headers["Vary"] = f"{vary}, Origin".lstrip(", ")
        return response
