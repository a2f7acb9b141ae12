"""
=============================================================================
APPLICATION ASSEMBLY
=============================================================================

create_app() wires the router the server runs:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Router                                                              │
    │    middleware:  LoggingMiddleware  →  CORSMiddleware                 │
    │                                                                      │
    │    GET   /health    health                          public           │
    │    POST  /signup    session.signup                  public (*)       │
    │    POST  /signin    session.signin                  public (*)       │
    │    GET   /me        gate.protect(session.me)        protected        │
    │    POST  /logout    gate.protect(session.logout)    protected        │
    │                                                                      │
    │  (*) only when a PasswordHasher is supplied                          │
    └─────────────────────────────────────────────────────────────────────┘

The feature routers of the full product (lists, items, sharing) register
on the same Router, wrapping their handlers with the same gate.

=============================================================================
"""

from typing import Optional
import logging

from .collaborators import InMemoryUserStore, PasswordHasher, UserStore
from .config import AppConfig
from .handlers.health import health
from .handlers.session import SessionHandlers
from .http.router import Router
from .middleware.auth import AuthGate
from .middleware.cors import CORSMiddleware
from .middleware.logging import LoggingMiddleware
from .security.tokens import TokenService


logger = logging.getLogger(__name__)


def create_app(
    config: AppConfig,
    store: Optional[UserStore] = None,
    hasher: Optional[PasswordHasher] = None,
) -> Router:
    """
    Build the application router.

    Args:
        config: Validated configuration; jwt_secret must be set.
        store: User persistence. Defaults to an InMemoryUserStore.
        hasher: Password hashing. Without one, /signup and /signin are
                not registered.

    Raises:
        ValueError: config.jwt_secret is empty.
    """
    tokens = TokenService(config.jwt_secret, ttl=config.token_ttl)
    gate = AuthGate(tokens, cookie_name=config.token_cookie_name)
    session = SessionHandlers(
        config,
        tokens,
        store if store is not None else InMemoryUserStore(),
        hasher,
    )

    router = Router()
    router.use(LoggingMiddleware(log_format=config.log_format))
    router.use(CORSMiddleware())

    router.get("/health", health)
    if hasher is not None:
        router.post("/signup", session.signup)
        router.post("/signin", session.signin)
    else:
        logger.warning("No password hasher configured; /signup and /signin are disabled")
    router.get("/me", gate.protect(session.me))
    router.post("/logout", gate.protect(session.logout))

    return router
