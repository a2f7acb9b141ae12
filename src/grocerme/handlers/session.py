"""
=============================================================================
SESSION HANDLERS
=============================================================================

Sign-up, sign-in, "who am I" and logout.

    ┌────────┬──────────┬───────────┬─────────────────────────────────────┐
    │ Method │ Path     │ Auth      │ Result                              │
    ├────────┼──────────┼───────────┼─────────────────────────────────────┤
    │ POST   │ /signup  │ public    │ 201 {token, user} + session cookie  │
    │        │          │           │ 409 Email already exists            │
    │ POST   │ /signin  │ public    │ 200 {token, user} + session cookie  │
    │        │          │           │ 401 Invalid email or password       │
    │ GET    │ /me      │ protected │ 200 user, 404 User not found        │
    │ POST   │ /logout  │ protected │ 200 + cookie cleared                │
    └────────┴──────────┴───────────┴─────────────────────────────────────┘

The token is returned twice: in the JSON body for scripts and
mobile clients (they send it back as "Authorization: Bearer ..."), and as
an HttpOnly cookie for the browser front-end (page scripts can't read it,
so an XSS bug can't steal it).

Sign-in answers the same 401 for "no such email" and "wrong password" so
the endpoint can't be used to discover which emails are registered.

=============================================================================
"""

from typing import Optional, Tuple
import logging

from ..collaborators import PasswordHasher, User, UserStore, new_user_id
from ..config import AppConfig
from ..errors import DuplicateEmail
from ..http.context import get_user_id
from ..http.request import HTTPParseError, HTTPRequest
from ..http.response import (
    HTTPResponse,
    bad_request,
    conflict,
    error_response,
    json_response,
    not_found,
    ok,
)
from ..http.status_codes import HTTPStatus
from ..security.tokens import TokenService


logger = logging.getLogger(__name__)


MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid email or password"


def get_authenticated_user(request: HTTPRequest) -> Tuple[str, Optional[HTTPResponse]]:
    """
    The user id the auth gate put in the context.

    Returns:
        (user_id, None) when present, ("", 401 response) when the handler
        was somehow reached without going through the gate.
    """
    user_id, found = get_user_id(request)
    if not found:
        return "", error_response(HTTPStatus.UNAUTHORIZED, "User ID not found in context")
    return user_id, None


def _read_credentials(request: HTTPRequest) -> Tuple[str, str, Optional[HTTPResponse]]:
    """Pull {email, password} out of a JSON body, or a 400 explaining why not."""
    try:
        data = request.json
    except HTTPParseError as e:
        return "", "", bad_request(str(e))

    if not isinstance(data, dict):
        return "", "", bad_request("Request body must be a JSON object")

    email = data.get("email")
    password = data.get("password")
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        return "", "", bad_request("email and password are required")

    return email.strip(), password, None


class SessionHandlers:
    """
    Handlers bound to their collaborators.

        session = SessionHandlers(config, tokens, store, hasher)
        router.post("/signup", session.signup)
        router.get("/me", gate.protect(session.me))

    hasher may be None; signup and signin then refuse with 503, and
    create_app() does not register them at all.
    """

    def __init__(
        self,
        config: AppConfig,
        tokens: TokenService,
        store: UserStore,
        hasher: Optional[PasswordHasher] = None,
    ):
        self.config = config
        self.tokens = tokens
        self.store = store
        self.hasher = hasher

    # =========================================================================
    # PUBLIC
    # =========================================================================

    def signup(self, request: HTTPRequest) -> HTTPResponse:
        email, password, problem = _read_credentials(request)
        if problem is not None:
            return problem
        if "@" not in email:
            return bad_request("email must be a valid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            return bad_request(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
        if self.hasher is None:
            return error_response(HTTPStatus.SERVICE_UNAVAILABLE, "Sign-up is not available")

        if self.store.find_by_email(email) is not None:
            return conflict("Email already exists")

        user = User(
            id=new_user_id(),
            email=email,
            password_hash=self.hasher.hash(password),
        )
        try:
            self.store.insert(user)
        except DuplicateEmail:
            # lost a race with a concurrent signup for the same email
            return conflict("Email already exists")

        logger.info(f"User {user.id} signed up")
        return self._session_response(HTTPStatus.CREATED, user)

    def signin(self, request: HTTPRequest) -> HTTPResponse:
        email, password, problem = _read_credentials(request)
        if problem is not None:
            return problem
        if self.hasher is None:
            return error_response(HTTPStatus.SERVICE_UNAVAILABLE, "Sign-in is not available")

        user = self.store.find_by_email(email)
        if user is None or not self.hasher.verify(password, user.password_hash):
            logger.info(f"Failed sign-in from {request.client_address[0]}")
            return error_response(HTTPStatus.UNAUTHORIZED, INVALID_CREDENTIALS)

        logger.info(f"User {user.id} signed in")
        return self._session_response(HTTPStatus.OK, user)

    # =========================================================================
    # PROTECTED (wrap with AuthGate.protect)
    # =========================================================================

    def me(self, request: HTTPRequest) -> HTTPResponse:
        user_id, problem = get_authenticated_user(request)
        if problem is not None:
            return problem

        user = self.store.find_by_id(user_id)
        if user is None:
            return not_found("User not found")
        return ok(user.to_public())

    def logout(self, request: HTTPRequest) -> HTTPResponse:
        user_id, problem = get_authenticated_user(request)
        if problem is not None:
            return problem

        response = ok({"message": "Logged out successfully"})
        response.delete_cookie(
            self.config.token_cookie_name,
            secure=self.config.cookie_secure,
        )
        logger.info(f"User {user_id} logged out")
        return response

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _session_response(self, status: int, user: User) -> HTTPResponse:
        """{token, user} body plus the HttpOnly session cookie."""
        token = self.tokens.issue_token(user.id)
        response = json_response(status, {"token": token, "user": user.to_public()})
        response.set_cookie(
            self.config.token_cookie_name,
            token,
            max_age=self.config.token_ttl,
            path="/",
            secure=self.config.cookie_secure,
            http_only=True,
        )
        return response
