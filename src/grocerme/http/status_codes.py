"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The subset of RFC 7231 status codes the grocerme API actually emits.

    ┌────────┬────────────────────────────────────────────────────────────┐
    │  Code  │ Where it comes from                                        │
    ├────────┼────────────────────────────────────────────────────────────┤
    │  200   │ /health, /signin, /me, /logout                             │
    │  201   │ /signup                                                    │
    │  204   │ CORS preflight (OPTIONS) short-circuit                     │
    │  400   │ malformed wire request or JSON body                        │
    │  401   │ authentication gate rejections                             │
    │  404   │ no route matched / user not found                          │
    │  405   │ parser: unknown method token                               │
    │  408   │ transport: client too slow                                 │
    │  409   │ /signup with an email that already exists                  │
    │  413   │ request larger than max_request_size                       │
    │  500   │ handler raised                                             │
    │  505   │ parser: HTTP version other than 1.0 / 1.1                  │
    └────────┴────────────────────────────────────────────────────────────┘

Q: "What's the difference between 401 and 403?"
A: "401 means 'I don't know who you are' (authentication). 403 means
   'I know who you are, but you can't do this' (authorization). Every
   rejection the auth gate produces is a 401."

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes with reason phrases.

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    CONFLICT = 409
    PAYLOAD_TOO_LARGE = 413

    # 5xx
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      └── phrase
                      └───────── code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.CONFLICT: "Conflict",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}


def phrase_for(code: int) -> str:
    """Reason phrase for an arbitrary integer code ("Unknown" if unlisted)."""
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"
