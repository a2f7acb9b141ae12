"""
Unit tests for the middleware chain and access logging.
"""

import json
import logging

import pytest

from grocerme.http.context import get_value
from grocerme.http.response import ok
from grocerme.middleware.base import (
    FunctionMiddleware,
    Middleware,
    MiddlewarePipeline,
    as_middleware,
    compose,
    function_middleware,
)
from grocerme.middleware.logging import REQUEST_ID_HEADER, LoggingMiddleware, RequestLog


class Tag(Middleware):
    """Appends its label to a shared list before and after next()."""

    def __init__(self, label, log):
        self.label = label
        self.log = log

    def __call__(self, request, next):
        self.log.append(f">{self.label}")
        response = next(request)
        self.log.append(f"<{self.label}")
        return response


class TestMiddlewarePipeline:
    """Tests for composition order and bookkeeping."""

    def test_compose_order(self, make_request):
        """N middleware: each called once, in registration order, around one handler call."""
        log = []

        def handler(request):
            log.append("handler")
            return ok()

        wrapped = compose([Tag("a", log), Tag("b", log), Tag("c", log)], handler)
        wrapped(make_request())

        assert log == [">a", ">b", ">c", "handler", "<c", "<b", "<a"]

    def test_empty_pipeline(self, make_request):
        """With no middleware the handler is returned as-is."""
        def handler(request):
            return ok()

        assert MiddlewarePipeline().wrap(handler) is handler

    def test_plain_function_accepted(self, make_request):
        """A bare (request, next) function is wrapped as FunctionMiddleware."""
        def stamp(request, next):
            return next(request).set_header("X-Stamp", "1")

        pipeline = MiddlewarePipeline([stamp])

        assert isinstance(list(pipeline)[0], FunctionMiddleware)
        assert list(pipeline)[0].name == "stamp"
        assert pipeline.wrap(lambda r: ok())(make_request()).headers["X-Stamp"] == "1"

    def test_function_middleware_decorator(self):
        """@function_middleware produces a Middleware."""
        @function_middleware
        def passthrough(request, next):
            return next(request)

        assert isinstance(passthrough, Middleware)
        assert passthrough.name == "passthrough"

    def test_as_middleware_rejects_non_callables(self):
        """Anything that can't be called is a TypeError."""
        with pytest.raises(TypeError):
            as_middleware(42)

    def test_freeze(self):
        """Frozen pipelines refuse new middleware."""
        pipeline = MiddlewarePipeline()
        pipeline.use(lambda r, n: n(r))
        pipeline.freeze()

        assert pipeline.frozen
        assert len(pipeline) == 1
        with pytest.raises(RuntimeError):
            pipeline.add(lambda r, n: n(r))

    def test_single_wrap(self, make_request):
        """Middleware.wrap binds one middleware to one handler."""
        log = []
        wrapped = Tag("x", log).wrap(lambda r: ok())
        wrapped(make_request())
        assert log == [">x", "<x"]


class TestLoggingMiddleware:
    """Tests for the access-log middleware."""

    def test_logs_request(self, make_request, caplog):
        """One access line per request with method, path and status."""
        with caplog.at_level(logging.INFO, logger="grocerme.access"):
            LoggingMiddleware()(make_request("GET", "/health"), lambda r: ok())

        assert len(caplog.records) == 1
        assert '"GET /health" 200' in caplog.records[0].getMessage()

    def test_json_format(self, make_request, caplog):
        """JSON lines parse and carry the same fields."""
        with caplog.at_level(logging.INFO, logger="grocerme.access"):
            LoggingMiddleware(log_format="json")(make_request("POST", "/signin"), lambda r: ok())

        entry = json.loads(caplog.records[0].getMessage())
        assert entry["method"] == "POST"
        assert entry["path"] == "/signin"
        assert entry["status_code"] == 200
        assert entry["client_ip"] == "127.0.0.1"

    def test_invalid_format(self):
        """Unknown formats are rejected at construction."""
        with pytest.raises(ValueError):
            LoggingMiddleware(log_format="xml")

    def test_generates_request_id(self, make_request):
        """A request id is put in the context and on the response."""
        seen = {}

        def handler(request):
            seen["id"], _ = get_value(request, "request_id")
            return ok()

        response = LoggingMiddleware()(make_request(), handler)

        assert len(seen["id"]) == 8
        assert response.headers[REQUEST_ID_HEADER] == seen["id"]

    def test_reuses_incoming_request_id(self, make_request):
        """A well-formed X-Request-ID from the client is kept."""
        request = make_request(headers={"X-Request-ID": "abc-123"})
        response = LoggingMiddleware()(request, lambda r: ok())
        assert response.headers[REQUEST_ID_HEADER] == "abc-123"

    def test_rejects_malformed_request_id(self, make_request):
        """An incoming id with unsafe characters is replaced."""
        request = make_request(headers={"X-Request-ID": "bad id\r\ninjected"})
        response = LoggingMiddleware()(request, lambda r: ok())
        assert response.headers[REQUEST_ID_HEADER] != "bad id\r\ninjected"

    def test_skip_paths(self, make_request, caplog):
        """Skipped paths are served but not logged."""
        with caplog.at_level(logging.INFO, logger="grocerme.access"):
            response = LoggingMiddleware(skip_paths=["/health"])(make_request("GET", "/health"), lambda r: ok())

        assert response.status == 200
        assert caplog.records == []

    def test_exception_logged_and_reraised(self, make_request, caplog):
        """Handler errors are logged at ERROR and propagate."""
        def boom(request):
            raise RuntimeError("kaboom")

        with caplog.at_level(logging.INFO, logger="grocerme.access"):
            with pytest.raises(RuntimeError):
                LoggingMiddleware()(make_request("GET", "/boom"), boom)

        assert caplog.records[0].levelno == logging.ERROR
        assert "kaboom" in caplog.records[0].getMessage()

    def test_request_log_text(self):
        """to_text renders an Apache-style line."""
        entry = RequestLog(
            request_id="r1", method="GET", path="/me", client_ip="10.0.0.1",
            user_agent="-", status_code=401, content_length=50,
            duration_ms=1.234, timestamp="18/Oct/2026:10:00:00 +0000",
        )
        assert entry.to_text() == (
            '10.0.0.1 - - [18/Oct/2026:10:00:00 +0000] "GET /me" 401 50 1.23ms [r1]'
        )
        assert entry.to_dict()["duration_ms"] == 1.23
