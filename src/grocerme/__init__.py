"""
=============================================================================
GROCERME - request dispatch layer for the grocer-me list service
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   GrocerServer        sockets, worker threads, keep-alive            │
    │        │                                                             │
    │        ▼                                                             │
    │   Router              method + ":param" templates, first match wins  │
    │        │                                                             │
    │        ▼                                                             │
    │   Middleware          Logging → CORS → (AuthGate) → handler          │
    │        │                                                             │
    │        ▼                                                             │
    │   RequestContext      user_id and path params, copy-on-write         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    grocerme/
    ├── __main__.py          # python -m grocerme
    ├── app.py               # create_app(): routes + middleware
    ├── server.py            # GrocerServer
    ├── config.py            # AppConfig
    ├── errors.py            # exception hierarchy
    ├── collaborators.py     # User, UserStore, PasswordHasher
    ├── core/                # SocketServer, Connection
    ├── http/                # request, response, context, matcher, router
    ├── middleware/          # base, logging, cors, auth
    ├── security/            # TokenService
    └── handlers/            # health, session

Quick start:

    from grocerme import AppConfig, GrocerServer, create_app

    config = AppConfig(jwt_secret="...", port=8080)
    config.validate()
    app = create_app(config, store=my_store, hasher=my_hasher)

    @app.get("/lists/:id")
    def get_list(request):
        ...

    GrocerServer(config, app).run()

=============================================================================
"""

__version__ = "1.0.0"

# http before middleware: the router module imports middleware.base
from .errors import GrocerError, ConfigError, AuthError
from .config import AppConfig
from .http import HTTPRequest, HTTPResponse, Router
from .middleware import AuthGate
from .security import TokenService
from .app import create_app
from .server import GrocerServer

__all__ = [
    "GrocerError",
    "ConfigError",
    "AuthError",
    "AppConfig",
    "HTTPRequest",
    "HTTPResponse",
    "Router",
    "AuthGate",
    "TokenService",
    "create_app",
    "GrocerServer",
    "__version__",
]
