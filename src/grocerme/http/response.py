"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Constructs and serializes HTTP/1.1 responses.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 201 Created\r\n                     ← status line        │
    │   Content-Type: application/json; charset=utf-8\r\n                 │
    │   Access-Control-Allow-Origin: https://grocer.me\r\n                │
    │   Set-Cookie: jwt_token=eyJ...; Path=/; Max-Age=86400; HttpOnly\r\n │
    │   Content-Length: 131\r\n                      ← auto-calculated    │
    │   Date: Sun, 18 Oct 2026 12:00:00 GMT\r\n      ← auto-added         │
    │   Server: grocerme/1.0\r\n                     ← auto-added         │
    │   \r\n                                                              │
    │   {"token": "eyJ...", "user": {...}}                                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every error the API produces has the same body shape:

    {"error": "<human-readable message>"}

Use error_response(status, message) (or one of the named shortcuts
below) so that shape never drifts.

=============================================================================
COOKIES
=============================================================================

Set-Cookie is the one response header that may legitimately repeat, so
cookies are kept in their own list instead of the headers dict:

    response.set_cookie("jwt_token", token, max_age=86400, http_only=True)
    response.delete_cookie("jwt_token")        # value "", Max-Age=0

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Union
import json

from .status_codes import HTTPStatus, phrase_for


@dataclass
class HTTPResponse:
    """
    An HTTP response to be sent to the client.

        Handler returns        to_bytes()            Socket sends
        HTTPResponse  ──────►  serializes  ──────►   raw bytes
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"
    cookies: List[str] = field(default_factory=list)

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 200 OK"."""
        return f"{self.version} {int(self.status)} {phrase_for(int(self.status))}"

    @property
    def json(self) -> Any:
        """The body decoded as JSON (None when empty)."""
        if not self.body:
            return None
        return json.loads(self.body.decode("utf-8"))

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def set_cookie(
        self,
        name: str,
        value: str,
        max_age: Optional[int] = None,
        path: str = "/",
        domain: str = "",
        secure: bool = False,
        http_only: bool = True,
        same_site: str = "",
    ) -> "HTTPResponse":
        """
        Append a Set-Cookie header.

        A negative max_age means "delete now" and is sent as Max-Age=0.

        Example:
            response.set_cookie("jwt_token", token, max_age=86400)
            # Set-Cookie: jwt_token=<token>; Path=/; Max-Age=86400; HttpOnly
        """
        parts = [f"{name}={value}"]
        if path:
            parts.append(f"Path={path}")
        if domain:
            parts.append(f"Domain={domain}")
        if max_age is not None:
            parts.append(f"Max-Age={max(max_age, 0)}")
        if http_only:
            parts.append("HttpOnly")
        if secure:
            parts.append("Secure")
        if same_site:
            parts.append(f"SameSite={same_site}")
        self.cookies.append("; ".join(parts))
        return self

    def delete_cookie(
        self,
        name: str,
        path: str = "/",
        domain: str = "",
        secure: bool = False,
        http_only: bool = True,
    ) -> "HTTPResponse":
        """Tell the client to drop a cookie (empty value, Max-Age=0)."""
        return self.set_cookie(
            name, "", max_age=-1, path=path, domain=domain,
            secure=secure, http_only=http_only,
        )

    def to_bytes(self, server_name: str = "grocerme/1.0") -> bytes:
        """
        Serialize the response for socket.sendall().

        Content-Length, Date and Server are added when missing.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))
        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        for cookie in self.cookies:
            lines.append(f"Set-Cookie: {cookie}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.CREATED)
            .json({"id": "42"})
            .header("Location", "/lists/42")
            .build())

    Each method returns self except build().
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: int) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """Serialize data as the JSON body and set Content-Type."""
        self._body = json.dumps(data, ensure_ascii=False, default=_json_default).encode("utf-8")
        self._headers["Content-Type"] = "application/json; charset=utf-8"
        return self

    def no_cache(self) -> "ResponseBuilder":
        self._headers["Cache-Control"] = "no-store"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an RFC 7231 HTTP-date.

    Example: "Sun, 18 Oct 2026 12:00:00 GMT". Always GMT, never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def _json_default(value: Any) -> Any:
    # datetimes (user created_at etc.) go out as RFC 3339 strings
    if isinstance(value, datetime):
        return value.isoformat().replace("+00:00", "Z")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
#     return json_response(200, {"status": "ok"})
#     return error_response(409, "Email already exists")
#     return not_found()
#
# =============================================================================

def json_response(status: int, data: Any) -> HTTPResponse:
    """A JSON response with the given status."""
    return ResponseBuilder().status(status).json(data).build()


def error_response(status: int, message: str) -> HTTPResponse:
    """A JSON error response: {"error": message}."""
    return json_response(status, {"error": message})


def ok(data: Any = None) -> HTTPResponse:
    return json_response(HTTPStatus.OK, data if data is not None else {})


def created(data: Any, location: Optional[str] = None) -> HTTPResponse:
    response = json_response(HTTPStatus.CREATED, data)
    if location:
        response.set_header("Location", location)
    return response


def no_content() -> HTTPResponse:
    """204 with an empty body."""
    return HTTPResponse(status=HTTPStatus.NO_CONTENT)


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    return error_response(HTTPStatus.BAD_REQUEST, message)


def unauthorized(message: str = "Unauthorized") -> HTTPResponse:
    """
    401 Unauthorized.

    Despite the name, 401 means "not authenticated" (identity unknown).
    """
    response = error_response(HTTPStatus.UNAUTHORIZED, message)
    response.set_header("WWW-Authenticate", "Bearer")
    return response


def not_found(message: str = "Not Found") -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND, message)


def conflict(message: str) -> HTTPResponse:
    return error_response(HTTPStatus.CONFLICT, message)


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """500. Keep the message generic; details belong in the log."""
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
