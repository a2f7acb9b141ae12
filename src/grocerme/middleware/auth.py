"""
=============================================================================
AUTHENTICATION GATE
=============================================================================

Verifies the caller's bearer token and annotates the request with the
authenticated user id. Rejections are 401 JSON responses; the wrapped
handler never runs for them.

=============================================================================
CREDENTIAL EXTRACTION
=============================================================================

    ┌──────────────────────────────────────────────────────────────────────┐
    │  1. Authorization header                                             │
    │                                                                       │
    │     "Bearer eyJhbGciOi..."    → token = "eyJhbGciOi..."               │
    │     "Bearer  eyJ..." (2 sp)   → not 2 parts, ignored                  │
    │     "bearer eyJ..."           → wrong scheme, ignored                 │
    │     "Basic dXNlcjpwYXNz"      → wrong scheme, ignored                 │
    │                                                                       │
    │  2. Cookie (only if step 1 produced nothing)                          │
    │                                                                       │
    │     Cookie: jwt_token=eyJhbGciOi...   → token = "eyJhbGciOi..."       │
    │                                                                       │
    │  3. Neither → 401 "Authorization required. Please sign in."           │
    └──────────────────────────────────────────────────────────────────────┘

Browsers send the HttpOnly cookie set by /signin automatically; scripts
and mobile clients send the header. When both are present the header
wins.

=============================================================================
OUTCOMES
=============================================================================

    no token                      401 Authorization required. Please sign in.
    bad signature / undecodable   401 Invalid or expired token
    non-HMAC algorithm            401 Invalid or expired token
    expired                       401 Invalid or expired token
    user_id missing / not a str   401 Invalid user ID in token
    ok                            handler(request + context["user_id"])

=============================================================================
THREE WAYS TO USE IT
=============================================================================

    gate = AuthGate(token_service)

    router.get("/me", gate.protect(me))      # per route
    router.use(AuthMiddleware(gate))         # every route on this router
    user_id = gate.extract_user_id(request)  # no wrapping, raises AuthError

=============================================================================
"""

from functools import wraps
from typing import Optional
import logging

from .base import Middleware, NextHandler
from ..errors import AuthError, MalformedCredential
from ..http.context import set_user_id
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, unauthorized
from ..security.tokens import Claims, TokenService


logger = logging.getLogger(__name__)


DEFAULT_COOKIE_NAME = "jwt_token"
BEARER_SCHEME = "Bearer"


def extract_token(request: HTTPRequest, cookie_name: str = DEFAULT_COOKIE_NAME) -> str:
    """
    Raw token from the Authorization header, else from the cookie.

    Returns:
        The token string, or "" when neither source carries one.
    """
    auth_header = request.get_header("Authorization")
    if auth_header:
        parts = auth_header.split(" ")
        if len(parts) == 2 and parts[0] == BEARER_SCHEME and parts[1]:
            return parts[1]

    return request.get_cookie(cookie_name) or ""


class AuthGate:
    """
    Token verification shared by every protected route.

    Args:
        tokens: The TokenService holding the process-wide secret.
        cookie_name: Cookie consulted when no bearer header is present.
    """

    def __init__(self, tokens: TokenService, cookie_name: str = DEFAULT_COOKIE_NAME):
        self.tokens = tokens
        self.cookie_name = cookie_name

    def verify(self, request: HTTPRequest) -> Claims:
        """
        Extract and verify the request's credential.

        Raises:
            MalformedCredential: No token in header or cookie.
            AuthError: Any verification failure (see grocerme.errors).
        """
        token = extract_token(request, self.cookie_name)
        if not token:
            raise MalformedCredential(detail="no bearer header or session cookie")
        return self.tokens.verify_token(token)

    def extract_user_id(self, request: HTTPRequest) -> str:
        """The verified user id. Same checks as the gate, raises instead of responding."""
        return self.verify(request).user_id

    def authenticate(self, request: HTTPRequest):
        """
        Run the gate without calling a handler.

        Returns:
            (authenticated request, None) on success, or
            (None, 401 response) on failure.
        """
        try:
            claims = self.verify(request)
        except AuthError as e:
            logger.debug(
                f"Rejected {request.method} {request.path} from "
                f"{request.client_address[0]}: {type(e).__name__} {e.detail}"
            )
            return None, unauthorized(e.message)
        return set_user_id(request, claims.user_id), None

    def protect(self, handler: NextHandler) -> NextHandler:
        """
        Wrap a single handler so it only runs for authenticated requests.

            router.get("/me", gate.protect(me))
        """
        @wraps(handler)
        def protected(request: HTTPRequest) -> HTTPResponse:
            authed, rejection = self.authenticate(request)
            if rejection is not None:
                return rejection
            return handler(authed)

        return protected

    __call__ = protect


class AuthMiddleware(Middleware):
    """
    Router-level form of the gate: every request through this router must
    carry a valid token.

        api = Router()
        api.use(CORSMiddleware())
        api.use(AuthMiddleware(gate))
    """

    def __init__(self, gate: AuthGate):
        self.gate = gate

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        authed, rejection = self.gate.authenticate(request)
        if rejection is not None:
            return rejection
        return next(authed)


def extract_user_id(request: HTTPRequest, tokens: TokenService,
                    cookie_name: Optional[str] = None) -> str:
    """
    Module-level convenience for handlers that only want the id.

    Raises:
        AuthError: If the request is not authenticated.
    """
    return AuthGate(tokens, cookie_name or DEFAULT_COOKIE_NAME).extract_user_id(request)
