"""
=============================================================================
SESSION TOKENS (JWT)
=============================================================================

Issues and verifies the signed bearer tokens that prove a user's identity.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        TOKEN ANATOMY (HS256)                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   eyJhbGciOiJIUzI1NiJ9 . eyJ1c2VyX2lkIjoi... . SflKxwRJSMeKKF2QT4f  │
    │   ─────────┬──────────   ──────────┬───────   ─────────┬─────────   │
    │         header                  claims              signature       │
    │   {"alg": "HS256",        {"user_id": "64f...",   HMAC-SHA256(      │
    │    "typ": "JWT"}           "iat": 1792324800,       header.claims,  │
    │                            "exp": 1792411200}       secret)         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Issuing and verifying share ONE process-wide secret (AppConfig.jwt_secret).
A token lives for token_ttl seconds (24 hours by default).

=============================================================================
VERIFICATION STEPS
=============================================================================

    token
      │
      ├─ 1. read the header (unverified) ── not decodable ─► InvalidSignature
      ├─ 2. alg in {HS256, HS384, HS512}? ── no ──────────► UnsupportedAlgorithm
      ├─ 3. signature valid? ── no ───────────────────────► InvalidSignature
      ├─ 4. exp present? ── no ───────────────────────────► MalformedClaims
      ├─ 5. exp in the future? ── no ─────────────────────► TokenExpired
      ├─ 6. user_id present and a string? ── no ──────────► MalformedClaims
      ▼
    Claims(user_id, issued_at, expires_at)

Step 2 is the defense against algorithm substitution: a token whose header
says "none", or "RS256" (hoping the server treats its HMAC secret as an
RSA public key), is refused before any signature check is attempted.

=============================================================================
INTERVIEW QUESTIONS ABOUT JWT
=============================================================================

Q: "Why pin the algorithm on the server instead of trusting the header?"
A: "The header is attacker-controlled. If the server lets the token pick
   its own algorithm, 'alg: none' skips verification entirely."

Q: "Why not store sessions server-side?"
A: "A signed token needs no lookup per request; the trade-off is that
   a token can't be revoked before it expires."

=============================================================================
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import logging
import time

import jwt

from ..errors import (
    InvalidSignature,
    MalformedClaims,
    TokenExpired,
    UnsupportedAlgorithm,
)


logger = logging.getLogger(__name__)


HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")
DEFAULT_TOKEN_TTL = 24 * 60 * 60
USER_ID_CLAIM = "user_id"


@dataclass(frozen=True)
class Claims:
    """The verified contents of a token."""

    user_id: str
    expires_at: int
    issued_at: Optional[int] = None


class TokenService:
    """
    Issues and verifies HMAC-signed JWTs.

        tokens = TokenService(secret=config.jwt_secret)
        token = tokens.issue_token("64f0c2...")
        claims = tokens.verify_token(token)      # Claims(user_id="64f0c2...", ...)

    Args:
        secret: Shared HMAC secret.
        ttl: Token lifetime in seconds.
        algorithm: Signing algorithm for NEW tokens (must be HMAC).
        clock: Returns the current unix time; injectable for tests.
    """

    def __init__(
        self,
        secret: str,
        ttl: int = DEFAULT_TOKEN_TTL,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("Token secret must not be empty")
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm: {algorithm}")
        self._secret = secret
        self.ttl = ttl
        self.algorithm = algorithm
        self._clock = clock

    def issue_token(self, user_id: str) -> str:
        """Sign a token for user_id with iat=now and exp=now+ttl."""
        now = int(self._clock())
        payload = {
            USER_ID_CLAIM: user_id,
            "iat": now,
            "exp": now + self.ttl,
        }
        logger.debug(f"Issuing token for user {user_id} (expires in {self.ttl}s)")
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Claims:
        """
        Verify a token and return its claims.

        Raises:
            UnsupportedAlgorithm: Header names a non-HMAC algorithm.
            InvalidSignature: Bad signature or undecodable token.
            TokenExpired: exp is in the past.
            MalformedClaims: exp missing, or user_id missing / not a string.
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as e:
            raise InvalidSignature(detail=f"undecodable token: {e}")

        alg = header.get("alg")
        if alg not in HMAC_ALGORITHMS:
            raise UnsupportedAlgorithm(detail=f"unexpected signing method: {alg!r}")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=list(HMAC_ALGORITHMS),
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired(detail="token has expired")
        except jwt.MissingRequiredClaimError as e:
            raise MalformedClaims("Invalid token claims", detail=str(e))
        except jwt.InvalidTokenError as e:
            raise InvalidSignature(detail=str(e))

        return self._claims_from(payload)

    @staticmethod
    def _claims_from(payload: Dict[str, Any]) -> Claims:
        user_id = payload.get(USER_ID_CLAIM)
        if not isinstance(user_id, str):
            raise MalformedClaims(detail=f"user_id claim is {type(user_id).__name__}")

        iat = payload.get("iat")
        return Claims(
            user_id=user_id,
            expires_at=int(payload["exp"]),
            issued_at=int(iat) if iat is not None else None,
        )
