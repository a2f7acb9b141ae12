"""Signed session tokens (HMAC JWT via PyJWT)."""

from .tokens import Claims, TokenService, HMAC_ALGORITHMS, DEFAULT_TOKEN_TTL

__all__ = ["Claims", "TokenService", "HMAC_ALGORITHMS", "DEFAULT_TOKEN_TTL"]
