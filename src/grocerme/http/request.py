"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses raw HTTP/1.1 request bytes into HTTPRequest values.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   POST /signin?next=/lists HTTP/1.1\r\n        ← request line       │
    │   Host: api.grocer.me\r\n                      ← headers            │
    │   Origin: https://grocer.me\r\n                                     │
    │   Content-Type: application/json\r\n                                │
    │   Content-Length: 44\r\n                                            │
    │   Cookie: jwt_token=eyJhbGciOi...\r\n                               │
    │   \r\n                                         ← separator          │
    │   {"email": "a@b.c", "password": "hunter22"}   ← body               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The parsed request is a plain dataclass that the rest of the system
treats as a VALUE: nobody assigns to its fields after parsing. Anything a
gate or the router wants to attach (the verified user id, bound path
parameters) goes into `request.context`, and attaching produces a new
request (see grocerme.http.context).

=============================================================================
INTERVIEW QUESTIONS ABOUT HTTP PARSING
=============================================================================

Q: "How do you know when the HTTP headers end?"
A: "Headers end with an empty line (\r\n\r\n). We scan for this
   delimiter, then split the request into header section and body."

Q: "How do you handle very large requests?"
A: "We set a max_request_size limit and reject requests that exceed it
   with a 413 Payload Too Large response. This prevents memory exhaustion."

Q: "Why store headers with lowercase keys?"
A: "Header names are case-insensitive (RFC 7230). Normalizing once at
   parse time avoids .lower() at every lookup."

=============================================================================
"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Optional, Dict, Any, Mapping
from urllib.parse import parse_qs, urlparse, unquote
import re
import json

from .context import RequestContext, get_path_params


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the status code that should be returned to the client:

        400 Bad Request                - malformed syntax / JSON
        405 Method Not Allowed         - unknown method token
        413 Payload Too Large          - request exceeds size limit
        505 HTTP Version Not Supported - not HTTP/1.0 or HTTP/1.1
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method:         HTTP method ("GET", "POST", ...)
        path:           Request path without query string
        version:        "HTTP/1.1" or "HTTP/1.0"
        headers:        Header name (lowercase) → value
        query_params:   "?a=1&a=2" → {"a": ["1", "2"]}
        body:           Raw body bytes (exactly Content-Length long)
        client_address: (ip, port) of the peer
        context:        Request-scoped values (user id, path params)
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list] = field(default_factory=dict)
    body: bytes = b""

    client_address: tuple = ("", 0)

    context: RequestContext = field(default_factory=RequestContext)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type without parameters ("application/json; charset=utf-8" → "application/json")."""
        ct = self.headers.get("content-type", "")
        return ct.split(";")[0].strip().lower() or None

    @property
    def content_length(self) -> int:
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def origin(self) -> str:
        """The Origin header, or "" for same-origin / non-browser clients."""
        return self.headers.get("origin", "")

    @property
    def is_json(self) -> bool:
        return self.content_type == "application/json"

    @cached_property
    def json(self) -> Any:
        """
        The body parsed as JSON (None for an empty body).

        Parsed once on first access and cached on this request value.

        Raises:
            HTTPParseError: If the body is not valid JSON.
        """
        if not self.body:
            return None
        try:
            return json.loads(self.body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise HTTPParseError(f"Invalid JSON body: {e}")

    @cached_property
    def cookies(self) -> Dict[str, str]:
        """
        Cookies from the Cookie header.

            Cookie: jwt_token=abc; theme=dark
                    → {"jwt_token": "abc", "theme": "dark"}

        Pairs without "=" are skipped. When a name repeats, the first
        occurrence wins (browsers send the most specific path first).
        """
        cookies: Dict[str, str] = {}
        for pair in self.headers.get("cookie", "").split(";"):
            name, sep, value = pair.strip().partition("=")
            if not sep or not name:
                continue
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] == '"':
                value = value[1:-1]
            cookies.setdefault(name.strip(), value)
        return cookies

    @property
    def path_params(self) -> Mapping:
        """Parameters bound by the router, e.g. {"id": "42"} for /lists/:id."""
        return get_path_params(self)

    @property
    def is_keep_alive(self) -> bool:
        """
        Should the connection stay open after this request?

            HTTP/1.1: keep alive unless "Connection: close"
            HTTP/1.0: close unless "Connection: keep-alive"
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    def get_cookie(self, name: str) -> Optional[str]:
        return self.cookies.get(name)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a query parameter, or default."""
        values = self.query_params.get(name, [])
        return values[0] if values else default


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

        raw bytes
          │
          ├─ 1. size check                 → 413
          ├─ 2. split at \r\n\r\n          → 400 if missing
          ├─ 3. request line               → 400 / 405 / 505
          ├─ 4. headers (lowercased names)
          ├─ 5. body by Content-Length     → 400 if short
          ▼
        HTTPRequest
    """

    VALID_METHODS = {
        "GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest.

        Args:
            data: Raw request bytes from the socket.
            client_address: Client's (ip, port) for logging.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query_params, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")
        if content_length < 0:
            raise HTTPParseError("Invalid Content-Length header")
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        # Anything past Content-Length belongs to the next pipelined request
        body = body[:content_length]

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_params=query_params,
            body=body,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple:
        """
        Parse "METHOD SP REQUEST-URI SP HTTP-VERSION".

        Returns:
            (method, path, query_params, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505
            )

        parsed = urlparse(uri)
        path = unquote(parsed.path) or "/"
        query_params = parse_qs(parsed.query, keep_blank_values=True)

        return method, path, query_params, version

    def _parse_headers(self, lines: list) -> Dict[str, str]:
        """
        Parse "Name: Value" lines into a dict keyed by lowercase name.

        Repeated headers are joined with ", " (RFC 7230 section 3.2.2),
        except Cookie, which is joined with "; " so it stays parseable.
        """
        headers: Dict[str, str] = {}
        for line in lines:
            if not line:
                continue
            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue  # lenient: skip malformed header lines

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()

            if name in headers:
                separator = "; " if name == "cookie" else ", "
                headers[name] += separator + value
            else:
                headers[name] = value
        return headers


def parse_request(
    data: bytes,
    client_address: tuple = ("", 0),
    max_size: int = 1024 * 1024
) -> HTTPRequest:
    """Parse one request with a throwaway RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
