"""
=============================================================================
HTTP LAYER
=============================================================================

Request parsing, response building, per-request context, path matching
and the router.

    raw bytes ──► RequestParser ──► HTTPRequest ──► Router ──► HTTPResponse
                                        │                          │
                                   RequestContext             to_bytes()
                                (user_id, path params)

=============================================================================
"""

from .status_codes import HTTPStatus
from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    json_response,
    error_response,
    ok,             # 200 OK
    created,        # 201 Created
    no_content,     # 204 No Content
    bad_request,    # 400 Bad Request
    unauthorized,   # 401 Unauthorized
    not_found,      # 404 Not Found
    conflict,       # 409 Conflict
    internal_error,  # 500 Internal Server Error
)
from .context import (
    RequestContext,
    get_value,
    set_value,
    get_user_id,
    set_user_id,
    get_path_param,
    get_path_params,
)
from .matcher import match
from .router import Router, Route, RouteMatch

__all__ = [
    "HTTPStatus",

    # Requests
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    # Responses
    "HTTPResponse",
    "ResponseBuilder",
    "json_response",
    "error_response",
    "ok",
    "created",
    "no_content",
    "bad_request",
    "unauthorized",
    "not_found",
    "conflict",
    "internal_error",

    # Context
    "RequestContext",
    "get_value",
    "set_value",
    "get_user_id",
    "set_user_id",
    "get_path_param",
    "get_path_params",

    # Routing
    "match",
    "Router",
    "Route",
    "RouteMatch",
]
