"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the dispatch layer can report is a subclass of GrocerError.

    ┌──────────────────────────────────────────────────────────────────────┐
    │                         EXCEPTION HIERARCHY                          │
    ├──────────────────────────────────────────────────────────────────────┤
    │                                                                       │
    │   GrocerError                                                         │
    │   ├── ConfigError            bad or missing settings (startup only)   │
    │   ├── DuplicateEmail         user store already holds that email      │
    │   └── AuthError (401)        credential rejected by the auth gate     │
    │       ├── MalformedCredential   no token in header or cookie          │
    │       ├── InvalidSignature      bad signature / undecodable token     │
    │       ├── UnsupportedAlgorithm  token not signed with HMAC            │
    │       ├── TokenExpired          exp is in the past                    │
    │       └── MalformedClaims       user_id or exp missing / wrong type   │
    │                                                                       │
    └──────────────────────────────────────────────────────────────────────┘

Route-matching failures are NOT exceptions: an unmatched request simply
falls through to the not-found handler.

Each AuthError carries the client-facing message. Note that several kinds
share one message:

    MalformedCredential   → "Authorization required. Please sign in."
    InvalidSignature      → "Invalid or expired token"
    UnsupportedAlgorithm  → "Invalid or expired token"
    TokenExpired          → "Invalid or expired token"
    MalformedClaims       → "Invalid user ID in token"

=============================================================================
"""


class GrocerError(Exception):
    """Base class for all errors raised by grocerme."""


class ConfigError(GrocerError):
    """Raised when the application configuration is invalid."""


class AuthError(GrocerError):
    """
    A request failed authentication.

    Attributes:
        message: Text sent to the client in the {"error": ...} body.
        status_code: HTTP status for the rejection (always 401).
    """

    status_code = 401
    default_message = "Invalid or expired token"

    def __init__(self, message: str = None, detail: str = ""):
        self.message = message or self.default_message
        # detail is for logs only, never sent to the client
        self.detail = detail
        super().__init__(self.message)


class MalformedCredential(AuthError):
    """No bearer token in the Authorization header and no session cookie."""

    default_message = "Authorization required. Please sign in."


class InvalidSignature(AuthError):
    """The token signature did not verify, or the token could not be decoded."""


class UnsupportedAlgorithm(AuthError):
    """The token header names an algorithm outside the HMAC family."""


class TokenExpired(AuthError):
    """The token's exp claim is in the past."""


class MalformedClaims(AuthError):
    """The token verified but its claims are unusable."""

    default_message = "Invalid user ID in token"


class DuplicateEmail(GrocerError):
    """A user store was asked to insert an email it already holds."""
