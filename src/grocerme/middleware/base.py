"""
=============================================================================
MIDDLEWARE CHAIN
=============================================================================

The middleware protocol and the pipeline that composes middleware around
a terminal handler (a matched route handler, or the not-found handler).

    ┌─────────────────────────────────────────────────────────────────────┐
    │                 REQUEST FLOW THROUGH THE CHAIN                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Request ────────────────────────────────────────────────►         │
    │                                                                      │
    │   ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌──────────┐     │
    │   │ Logging  │───►│   CORS   │───►│   Auth   │───►│ Handler  │     │
    │   └──────────┘    └──────────┘    └──────────┘    └──────────┘     │
    │    req id,         OPTIONS →       no token →                      │
    │    timing          204 (stop)      401 (stop)                      │
    │                                                                      │
    │   ◄──────────────────────────────────────────────── Response        │
    │    access log      CORS headers                                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
COMPOSITION ORDER
=============================================================================

Middleware is folded over the handler from LAST-registered to
FIRST-registered, so the first one registered ends up outermost and runs
first:

    use(A); use(B); use(C)

    current = handler
    current = C(current)       # C calls handler
    current = B(current)       # B calls C
    current = A(current)       # A calls B

    A → B → C → handler

With N middleware, one request produces exactly N middleware calls (in
registration order) and at most one handler call. A middleware that
short-circuits (CORS preflight, auth rejection) simply never calls next.

=============================================================================
INTERVIEW QUESTIONS
=============================================================================

Q: "What design pattern would you use for middleware?"
A: "Chain of Responsibility. Each middleware either answers the request
   itself or delegates to the next link."

Q: "How does middleware differ from decorators?"
A: "A decorator wraps one function at definition time. Middleware wraps
   whatever handler the router picked for this request, including the
   not-found handler."

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional, Union
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# A handler, or the rest of the chain as seen from inside a middleware
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    Subclasses implement:

        def __call__(self, request, next) -> HTTPResponse:
            # before: inspect request, maybe return early
            response = next(request)
            # after: decorate response
            return response

    A middleware may pass a DERIVED request to next (for example one whose
    context carries the user id); it never mutates the request it was given.
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The incoming request.
            next: The rest of the chain. Call it to continue; skip it to
                short-circuit with your own response.
        """

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def wrap(self, handler: NextHandler) -> NextHandler:
        """Bind this middleware to a single handler (handler → handler)."""
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return self(request, handler)

        wrapped.__name__ = f"{self.name}({getattr(handler, '__name__', 'handler')})"
        return wrapped


class FunctionMiddleware(Middleware):
    """
    Wraps a plain (request, next) → response function as middleware.

        @function_middleware
        def stamp(request, next):
            response = next(request)
            response.set_header("X-Served-By", "grocerme")
            return response

        router.use(stamp)
    """

    def __init__(
        self,
        func: Callable[[HTTPRequest, NextHandler], HTTPResponse],
        name: Optional[str] = None
    ):
        self._func = func
        self._name = name or func.__name__

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        return self._func(request, next)

    @property
    def name(self) -> str:
        return self._name


def function_middleware(
    func: Callable[[HTTPRequest, NextHandler], HTTPResponse]
) -> FunctionMiddleware:
    """Decorator form of FunctionMiddleware."""
    return FunctionMiddleware(func)


MiddlewareLike = Union[Middleware, Callable[[HTTPRequest, NextHandler], HTTPResponse]]


def as_middleware(middleware: MiddlewareLike) -> Middleware:
    """Accept a Middleware instance or a bare (request, next) function."""
    if isinstance(middleware, Middleware):
        return middleware
    if callable(middleware):
        return FunctionMiddleware(middleware)
    raise TypeError(f"Not a middleware: {middleware!r}")


class MiddlewarePipeline:
    """
    Ordered, append-only list of middleware.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())     # first added = outermost
        pipeline.add(CORSMiddleware())

        handler = pipeline.wrap(route_handler)
        response = handler(request)

    After freeze() the list can no longer change; the router freezes its
    pipeline before the server starts accepting connections.
    """

    def __init__(self, middleware: Iterable[MiddlewareLike] = ()):
        self._middleware: List[Middleware] = []
        self._frozen = False
        for mw in middleware:
            self.add(mw)

    def add(self, middleware: MiddlewareLike) -> "MiddlewarePipeline":
        """Append middleware. Returns self for chaining."""
        if self._frozen:
            raise RuntimeError("Cannot add middleware after the pipeline is frozen")
        mw = as_middleware(middleware)
        self._middleware.append(mw)
        logger.debug(f"Added middleware: {mw.name}")
        return self

    def use(self, *middleware: MiddlewareLike) -> "MiddlewarePipeline":
        for mw in middleware:
            self.add(mw)
        return self

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Compose every middleware around handler.

        reversed([A, B, C]) wraps C first, so the result is A(B(C(handler))).
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = middleware.wrap(current)
        return current

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)


def compose(middleware: Iterable[MiddlewareLike], handler: NextHandler) -> NextHandler:
    """One-shot composition without keeping a pipeline around."""
    return MiddlewarePipeline(middleware).wrap(handler)
