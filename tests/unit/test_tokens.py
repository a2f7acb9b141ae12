"""
Unit tests for token issuance and verification.
"""

import base64
import json
import time

import pytest

from grocerme.errors import (
    AuthError,
    InvalidSignature,
    MalformedClaims,
    TokenExpired,
    UnsupportedAlgorithm,
)
from grocerme.security.tokens import DEFAULT_TOKEN_TTL, Claims, TokenService


def forge(header: dict, payload: dict) -> str:
    """A structurally valid JWT with an arbitrary header and a junk signature."""
    def b64(data: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()
    return f"{b64(header)}.{b64(payload)}.c2lnbmF0dXJl"


class TestTokenServiceInit:
    """Tests for constructor validation."""

    def test_empty_secret(self):
        """An empty secret is refused."""
        with pytest.raises(ValueError):
            TokenService("")

    def test_non_hmac_algorithm(self):
        """Only HMAC algorithms may sign new tokens."""
        with pytest.raises(ValueError):
            TokenService("x" * 32, algorithm="RS256")

    def test_default_ttl(self, tokens):
        """Tokens live 24 hours by default."""
        assert tokens.ttl == DEFAULT_TOKEN_TTL == 86400


class TestIssueToken:
    """Tests for issue_token()."""

    def test_round_trip(self, tokens):
        """A freshly issued token verifies to the same user id."""
        claims = tokens.verify_token(tokens.issue_token("user-1"))

        assert isinstance(claims, Claims)
        assert claims.user_id == "user-1"

    def test_iat_and_exp(self, secret):
        """iat is the clock's now and exp is now + ttl."""
        now = int(time.time()) - 100
        tokens = TokenService(secret, ttl=600, clock=lambda: now)

        claims = tokens.verify_token(tokens.issue_token("user-1"))

        assert claims.issued_at == now
        assert claims.expires_at == now + 600

    def test_issued_token_expires(self, secret):
        """A token issued further back than its ttl is rejected as expired."""
        tokens = TokenService(secret, ttl=60, clock=lambda: time.time() - 3600)
        token = tokens.issue_token("user-1")

        with pytest.raises(TokenExpired):
            tokens.verify_token(token)

    def test_header_is_hs256(self, tokens):
        """New tokens are signed with HS256."""
        header_segment = tokens.issue_token("u").split(".")[0]
        header = json.loads(base64.urlsafe_b64decode(header_segment + "=="))
        assert header["alg"] == "HS256"


class TestVerifyToken:
    """Tests for verify_token() rejections."""

    def test_accepts_other_hmac_algorithms(self, tokens, mint, valid_payload):
        """HS384 and HS512 tokens signed with the same secret are accepted."""
        for alg in ("HS384", "HS512"):
            assert tokens.verify_token(mint(valid_payload, algorithm=alg)).user_id == "user-123"

    def test_wrong_secret(self, tokens, mint, valid_payload):
        """A token signed with another secret fails signature verification."""
        token = mint(valid_payload, secret="another-secret-that-is-also-32-bytes-long")

        with pytest.raises(InvalidSignature) as exc_info:
            tokens.verify_token(token)
        assert exc_info.value.message == "Invalid or expired token"

    def test_tampered_payload(self, tokens, mint, valid_payload):
        """Swapping the payload invalidates the signature."""
        header, _, signature = mint(valid_payload).split(".")
        other = forge({}, {**valid_payload, "user_id": "admin"}).split(".")[1]

        with pytest.raises(InvalidSignature):
            tokens.verify_token(f"{header}.{other}.{signature}")

    def test_garbage(self, tokens):
        """An undecodable string is an invalid token."""
        with pytest.raises(InvalidSignature):
            tokens.verify_token("not-a-token")

    def test_alg_none(self, tokens, mint, valid_payload):
        """Unsigned tokens are refused before any signature check."""
        token = mint(valid_payload, secret=None, algorithm="none")

        with pytest.raises(UnsupportedAlgorithm) as exc_info:
            tokens.verify_token(token)
        assert exc_info.value.message == "Invalid or expired token"

    def test_asymmetric_alg(self, tokens, valid_payload):
        """A token claiming RS256 is refused even though the secret is HMAC."""
        token = forge({"alg": "RS256", "typ": "JWT"}, valid_payload)

        with pytest.raises(UnsupportedAlgorithm):
            tokens.verify_token(token)

    def test_expired(self, tokens, mint):
        """exp in the past is rejected."""
        now = int(time.time())
        token = mint({"user_id": "u", "iat": now - 7200, "exp": now - 3600})

        with pytest.raises(TokenExpired) as exc_info:
            tokens.verify_token(token)
        assert exc_info.value.message == "Invalid or expired token"

    def test_missing_exp(self, tokens, mint):
        """Tokens without exp are refused."""
        with pytest.raises(MalformedClaims) as exc_info:
            tokens.verify_token(mint({"user_id": "u"}))
        assert exc_info.value.message == "Invalid token claims"

    def test_missing_user_id(self, tokens, mint):
        """No user_id claim is a claims error."""
        token = mint({"exp": int(time.time()) + 60})

        with pytest.raises(MalformedClaims) as exc_info:
            tokens.verify_token(token)
        assert exc_info.value.message == "Invalid user ID in token"

    def test_non_string_user_id(self, tokens, mint):
        """A numeric user_id is not accepted."""
        token = mint({"user_id": 42, "exp": int(time.time()) + 60})

        with pytest.raises(MalformedClaims) as exc_info:
            tokens.verify_token(token)
        assert exc_info.value.message == "Invalid user ID in token"

    def test_all_failures_are_auth_errors(self, tokens, mint):
        """Every rejection is an AuthError with status 401."""
        bad_tokens = [
            "not-a-token",
            mint({"user_id": "u"}),
            mint({"user_id": 1, "exp": int(time.time()) + 60}),
        ]
        for token in bad_tokens:
            with pytest.raises(AuthError) as exc_info:
                tokens.verify_token(token)
            assert exc_info.value.status_code == 401
