"""
Unit tests for HTTP request parsing.
"""

import pytest

from grocerme.http.context import get_path_param
from grocerme.http.request import (
    HTTPParseError,
    HTTPRequest,
    RequestParser,
    parse_request,
)
from grocerme.http.response import ok
from grocerme.http.router import Router
from grocerme.http.status_codes import HTTPStatus


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /lists?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample sign-in POST with a JSON body."""
    body = b'{"email": "ana@example.com", "password": "hunter22"}'
    return (
        b"POST /signin HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json; charset=utf-8\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
    ) + body


class TestRequestParser:
    """Tests for RequestParser."""

    def test_parse_simple_get(self, sample_get_request):
        """Request line and client address are captured."""
        request = RequestParser().parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/lists"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)
        assert len(request.context) == 0

    def test_parse_headers(self, sample_get_request):
        """Header names are lowercased."""
        request = parse_request(sample_get_request)

        assert request.host == "localhost:8080"
        assert request.headers["user-agent"] == "pytest"
        assert request.get_header("Accept") == "application/json"
        assert request.is_keep_alive is True

    def test_parse_query_params(self, sample_get_request):
        """Query strings are parsed; get_query returns the first value."""
        request = parse_request(sample_get_request)

        assert request.get_query("page") == "1"
        assert request.get_query("limit") == "10"
        assert request.get_query("missing") is None
        assert request.get_query("missing", "default") == "default"

    def test_parse_post_with_body(self, sample_post_request):
        """JSON bodies are read by Content-Length and decoded on demand."""
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.content_type == "application/json"
        assert request.is_json is True
        assert request.json == {"email": "ana@example.com", "password": "hunter22"}
        assert request.is_keep_alive is False

    def test_path_is_url_decoded(self):
        """Percent-escapes in the path are decoded before routing."""
        request = parse_request(b"GET /lists/weekly%20shop HTTP/1.1\r\nHost: t\r\n\r\n")
        assert request.path == "/lists/weekly shop"

    def test_invalid_method(self):
        """Unknown methods are 405."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"BREW /pot HTTP/1.1\r\nHost: t\r\n\r\n")
        assert exc_info.value.status_code == 405

    def test_invalid_request_line(self):
        """A malformed request line is 400."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"GET\r\nHost: t\r\n\r\n")
        assert exc_info.value.status_code == 400

    def test_missing_terminator(self):
        """Headers without the blank line are incomplete."""
        with pytest.raises(HTTPParseError):
            parse_request(b"GET / HTTP/1.1\r\nHost: t\r\n")

    def test_dots_inside_segment_kept(self):
        """A segment containing ".." is an ordinary value the router can bind."""
        request = parse_request(b"GET /lists/v1..2 HTTP/1.1\r\nHost: x\r\n\r\n")
        router = Router()
        router.get("/lists/:id", lambda r: ok({"id": get_path_param(r, "id")}))

        response = router.handle(request)

        assert request.path == "/lists/v1..2"
        assert response.status == HTTPStatus.OK
        assert response.json == {"id": "v1..2"}

    def test_request_too_large(self):
        """Requests over the limit are 413."""
        raw = b"POST / HTTP/1.1\r\nContent-Length: 100\r\n\r\n" + b"x" * 100
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw, max_size=50)
        assert exc_info.value.status_code == 413

    def test_unsupported_version(self):
        """HTTP/2.0 on the request line is 505."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"GET / HTTP/2.0\r\n\r\n")
        assert exc_info.value.status_code == 505

    def test_http10_keep_alive(self):
        """HTTP/1.0 closes unless it asks for keep-alive."""
        assert parse_request(b"GET / HTTP/1.0\r\n\r\n").is_keep_alive is False
        assert parse_request(b"GET / HTTP/1.0\r\nConnection: keep-alive\r\n\r\n").is_keep_alive is True

    def test_short_body(self):
        """Fewer body bytes than Content-Length is a 400."""
        with pytest.raises(HTTPParseError):
            parse_request(b"POST / HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc")

    @pytest.mark.parametrize("value", ["abc", "-1"])
    def test_bad_content_length(self, value):
        """Non-numeric or negative Content-Length is a 400."""
        raw = f"POST / HTTP/1.1\r\nContent-Length: {value}\r\n\r\n".encode()
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)
        assert exc_info.value.status_code == 400

    def test_extra_bytes_not_in_body(self):
        """Bytes past Content-Length are not part of this request's body."""
        request = parse_request(b"POST / HTTP/1.1\r\nContent-Length: 3\r\n\r\nabcGET")
        assert request.body == b"abc"

    def test_repeated_cookie_headers_joined(self):
        """Two Cookie headers are merged with '; '."""
        raw = b"GET / HTTP/1.1\r\nCookie: a=1\r\nCookie: jwt_token=t\r\n\r\n"
        request = parse_request(raw)
        assert request.headers["cookie"] == "a=1; jwt_token=t"
        assert request.get_cookie("jwt_token") == "t"


class TestHTTPRequest:
    """Tests for HTTPRequest accessors."""

    def test_get_header_default(self):
        """Missing headers give the default."""
        request = HTTPRequest(method="GET", path="/")
        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "fallback") == "fallback"

    def test_origin(self):
        """origin reads the Origin header, "" when absent."""
        assert HTTPRequest(method="GET", path="/", headers={"origin": "http://a"}).origin == "http://a"
        assert HTTPRequest(method="GET", path="/").origin == ""

    def test_cookies(self):
        """Cookie header pairs are split; quotes stripped; junk skipped."""
        request = HTTPRequest(
            method="GET", path="/",
            headers={"cookie": 'jwt_token="abc"; theme=dark; junk; =x'},
        )
        assert request.cookies == {"jwt_token": "abc", "theme": "dark"}

    def test_first_cookie_wins(self):
        """A repeated cookie name keeps its first value."""
        request = HTTPRequest(method="GET", path="/", headers={"cookie": "a=1; a=2"})
        assert request.get_cookie("a") == "1"

    def test_no_cookies(self):
        """No Cookie header means no cookies."""
        request = HTTPRequest(method="GET", path="/")
        assert request.cookies == {}
        assert request.get_cookie("jwt_token") is None

    def test_invalid_json(self):
        """A non-JSON body raises a 400 parse error on access."""
        request = HTTPRequest(method="POST", path="/", body=b"{not json")
        with pytest.raises(HTTPParseError) as exc_info:
            request.json
        assert exc_info.value.status_code == 400

    def test_empty_json(self):
        """An empty body is JSON None."""
        assert HTTPRequest(method="POST", path="/").json is None

    def test_content_length_property(self):
        """Bad Content-Length values read as 0."""
        assert HTTPRequest(method="GET", path="/", headers={"content-length": "12"}).content_length == 12
        assert HTTPRequest(method="GET", path="/", headers={"content-length": "x"}).content_length == 0
