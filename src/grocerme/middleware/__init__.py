"""
=============================================================================
MIDDLEWARE
=============================================================================

    request ──► Logging ──► CORS ──► handler
    response ◄── Logging ◄── CORS ◄──┘

LoggingMiddleware:
    Access line per request with timing and an X-Request-ID.

CORSMiddleware:
    Reflects the caller's Origin; answers preflight OPTIONS with 204.

AuthGate / AuthMiddleware:
    Bearer-or-cookie JWT check. AuthGate.protect() wraps one handler,
    AuthMiddleware guards a whole router.

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, FunctionMiddleware, function_middleware, compose
from .logging import LoggingMiddleware
from .cors import CORSConfig, CORSMiddleware
from .auth import AuthGate, AuthMiddleware, extract_token, extract_user_id

__all__ = [
    # Base classes
    "Middleware",
    "MiddlewarePipeline",
    "FunctionMiddleware",
    "function_middleware",
    "compose",

    # Built-in middleware
    "LoggingMiddleware",
    "CORSConfig",
    "CORSMiddleware",
    "AuthGate",
    "AuthMiddleware",
    "extract_token",
    "extract_user_id",
]
