"""
Health check endpoint.

    GET /health  →  200 {"status": "ok"}

Liveness only: it answers as long as the worker pool is serving, and
touches no collaborator, so a slow user store never makes a load
balancer pull the instance.
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok


def health(request: HTTPRequest) -> HTTPResponse:
    return ok({"status": "ok"})
