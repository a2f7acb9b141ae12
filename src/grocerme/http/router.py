"""
=============================================================================
URL ROUTER
=============================================================================

Method + path-template routing with a middleware chain around every
dispatch.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /lists/42                                                      │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  ROUTE TABLE (scanned in registration order)                 │   │
    │   │                                                              │   │
    │   │  GET  /health     → health        path mismatch, skip        │   │
    │   │  POST /lists      → create_list   method mismatch, skip      │   │
    │   │  GET  /lists/:id  → get_list      ← FIRST MATCH WINS         │   │
    │   │  GET  /lists/:key → other         never reached              │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                             │
    │        ▼                                                             │
    │   request' = derive(request) + path_params {"id": "42"}              │
    │        │                                                             │
    │        ▼                                                             │
    │   middleware chain ──► get_list(request')                            │
    │                                                                      │
    │   No match at all? The chain still runs, around the not-found        │
    │   handler, which answers 404 {"error": "Not Found"}.                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LIFECYCLE
=============================================================================

    startup:  add_route / get / post / ... / use     (mutable)
    freeze(): called by the server before accepting connections
    serving:  handle(request)                        (read-only tables)

Registering anything after freeze() raises RuntimeError, so a worker
thread can never observe a half-updated table.

=============================================================================
INTERVIEW QUESTIONS ABOUT ROUTING
=============================================================================

Q: "How do you handle route conflicts?"
A: "First registration wins, silently. Register /lists/shared before
   /lists/:id if you want the literal to be reachable."

Q: "Why does middleware run for 404s too?"
A: "Because CORS and logging must apply to every response. A browser
   needs CORS headers on a 404 to even read the error body."

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple
import logging

from . import matcher
from .context import derive, set_path_params
from .request import HTTPRequest
from .response import HTTPResponse, not_found
from ..middleware.base import MiddlewareLike, MiddlewarePipeline


logger = logging.getLogger(__name__)


# Every route handler, gate-wrapped or not, has this shape
Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass(frozen=True)
class Route:
    """
    A registered route. Immutable once created.

        Route(method="GET", template="/lists/:id", handler=get_list,
              param_names=("id",))
    """

    method: str
    template: str
    handler: Handler
    param_names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RouteMatch:
    """The route that won and the parameters it bound."""

    route: Route
    params: Dict[str, str]


def not_found_handler(request: HTTPRequest) -> HTTPResponse:
    """Terminal handler used when no route matches."""
    return not_found("Not Found")


class Router:
    """
    HTTP request router.

        router = Router()
        router.use(LoggingMiddleware())

        @router.get("/lists/:id")
        def get_list(request):
            return ok({"id": get_path_param(request, "id")})

        router.post("/logout", auth.protect(logout))     # direct form

        response = router.handle(request)
    """

    def __init__(self):
        self._routes: List[Route] = []
        self._pipeline = MiddlewarePipeline()
        self._frozen = False

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def add_route(self, method: str, template: str, handler: Handler) -> Route:
        """
        Register a route.

        Args:
            method: HTTP method ("GET", "POST", ...).
            template: Path template, e.g. "/lists/:id".
            handler: Callable taking a request and returning a response.

        Raises:
            RuntimeError: If the router is frozen.
            ValueError: If the template is malformed (see matcher.template_params).
        """
        self._check_not_frozen()
        param_names = matcher.template_params(template)
        route = Route(
            method=method.upper(),
            template=template,
            handler=handler,
            param_names=tuple(param_names),
        )
        self._routes.append(route)
        logger.debug(f"Registered route {route.method} {route.template}")
        return route

    def route(self, method: str, template: str, handler: Optional[Handler] = None):
        """
        Register directly, or return a decorator when handler is omitted.

            router.route("GET", "/health", health)

            @router.route("GET", "/health")
            def health(request): ...
        """
        if handler is not None:
            self.add_route(method, template, handler)
            return handler

        def decorator(func: Handler) -> Handler:
            self.add_route(method, template, func)
            return func
        return decorator

    def get(self, template: str, handler: Optional[Handler] = None):
        return self.route("GET", template, handler)

    def post(self, template: str, handler: Optional[Handler] = None):
        return self.route("POST", template, handler)

    def put(self, template: str, handler: Optional[Handler] = None):
        return self.route("PUT", template, handler)

    def delete(self, template: str, handler: Optional[Handler] = None):
        return self.route("DELETE", template, handler)

    def patch(self, template: str, handler: Optional[Handler] = None):
        return self.route("PATCH", template, handler)

    def use(self, middleware: MiddlewareLike) -> "Router":
        """Append middleware. Runs for every request, matched or not."""
        self._check_not_frozen()
        self._pipeline.add(middleware)
        return self

    def freeze(self) -> None:
        """Make the route and middleware tables read-only."""
        if not self._frozen:
            self._frozen = True
            self._pipeline.freeze()
            logger.debug(f"Router frozen with {len(self._routes)} routes")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_not_frozen(self) -> None:
        if self._frozen:
            raise RuntimeError("Cannot register routes or middleware after the router is frozen")

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        First route whose method is equal AND whose template matches path.

        Returns:
            RouteMatch, or None if nothing matched.
        """
        for route in self._routes:
            if route.method != method:
                continue
            params, ok = matcher.match(route.template, path)
            if ok:
                return RouteMatch(route=route, params=params)
        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request and return exactly one response.

        1. Pick the first matching route (or the not-found handler).
        2. On a match, bind path params into a freshly derived context.
        3. Wrap the chosen handler in the middleware chain and call it.
        """
        found = self.match(request.method, request.path)

        if found is not None:
            request = set_path_params(derive(request), found.params)
            handler = found.route.handler
        else:
            handler = not_found_handler

        return self._pipeline.wrap(handler)(request)

    __call__ = handle

    # =========================================================================
    # INSPECTION
    # =========================================================================

    def routes(self) -> Tuple[Route, ...]:
        """Snapshot of the route table in registration order."""
        return tuple(self._routes)

    def format_routes(self) -> str:
        """
        Human-readable route table:

              GET      /health
              POST     /signup
              GET      /me
        """
        return "\n".join(f"  {r.method:8} {r.template}" for r in self._routes)
