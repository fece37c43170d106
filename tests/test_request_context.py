"""
Tests for RequestContext and Endpoint internals that are not driver-specific.
"""

import json
import logging
from datetime import datetime

import pytest

from restcookies import (
    CookieConfig,
    CookieJarFinalizedError,
    Endpoint,
    EndpointHalt,
    HTTPMethod,
    Request,
    RequestContext,
    Response,
)


def make_request(cookie_header=None, **headers):
    if cookie_header is not None:
        headers["Cookie"] = cookie_header
    return Request(HTTPMethod.GET, "/test", headers)


class TestRequestContext:
    """Test per-request state."""

    def test_jar_is_built_lazily(self):
        """The Cookie header is not parsed until cookies are used."""
        context = RequestContext(make_request("a=1"))

        assert context._cookies is None
        assert context.cookies["a"] == "1"
        assert context.cookies is context.cookies

    def test_finalize_untouched_jar_adds_nothing(self):
        """A request that never used cookies sends no Set-Cookie."""
        context = RequestContext(make_request("a=1"))

        response = context.finalize(Response(200, "ok"))

        assert "Set-Cookie" not in response.headers

    def test_finalize_joins_lines(self):
        """By default all lines share one newline-joined header."""
        context = RequestContext(make_request())
        context.cookies["a"] = "1"
        context.cookies["b"] = "2"

        response = context.finalize(Response(200, "ok"))

        assert response.headers.get_all("Set-Cookie") == ["a=1\nb=2"]

    def test_finalize_separate_headers(self):
        """join_set_cookie=False adds one header per line."""
        context = RequestContext(make_request(), CookieConfig(join_set_cookie=False))
        context.cookies["a"] = "1"
        context.cookies["b"] = "2"

        response = context.finalize(Response(200, "ok"))

        assert response.headers.get_all("Set-Cookie") == ["a=1", "b=2"]

    def test_finalize_only_once(self):
        """Set-Cookie headers are emitted exactly once per request."""
        context = RequestContext(make_request())
        context.cookies["a"] = "1"
        context.finalize(Response(200))

        with pytest.raises(CookieJarFinalizedError):
            context.finalize(Response(200))

    def test_set_status_validates_range(self):
        """Status codes must be real HTTP codes."""
        context = RequestContext(make_request())

        context.set_status(206)
        assert context.status == 206

        with pytest.raises(ValueError):
            context.set_status(42)

    def test_error_raises_halt(self):
        """error() stops processing with a 403 unless told otherwise."""
        context = RequestContext(make_request())

        with pytest.raises(EndpointHalt) as exc_info:
            context.error("nope")

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "nope"

    def test_error_status_code_keyword(self):
        """The status is passed as status_code, matching EndpointHalt."""
        context = RequestContext(make_request())

        with pytest.raises(EndpointHalt) as exc_info:
            context.error("Unauthorized.", status_code=401)

        assert exc_info.value.status_code == 401

    def test_contexts_do_not_share_state(self):
        """Every request gets its own env, headers and jar."""
        request = make_request("a=1")
        first = RequestContext(request)
        second = RequestContext(request)

        first.env["memoized"] = "x"
        first.header("X-A", "1")
        first.cookies["a"] = "2"

        assert second.env == {}
        assert "X-A" not in second.headers
        assert second.cookies["a"] == "1"


class TestEndpointErrors:
    """Test how Endpoint turns failures into responses."""

    def test_unhandled_exception_returns_500(self, caplog):
        """Unexpected handler errors are logged and hidden from the client."""
        def handler(ctx):
            raise RuntimeError("boom")

        endpoint = Endpoint(handler)

        with caplog.at_level(logging.ERROR, logger="restcookies.context"):
            response = endpoint.execute(make_request(**{"X-Request-ID": "req-1"}))

        assert response.status_code == 500
        assert json.loads(response.body) == {"error": "Internal server error", "request_id": "req-1"}
        assert "boom" in caplog.text

    def test_invalid_cookie_value_is_a_server_error(self):
        """Bad cookie assignments are handler bugs, not client errors."""
        def handler(ctx):
            ctx.cookies["c"] = object()

        response = Endpoint(handler).execute(make_request())

        assert response.status_code == 500
        assert json.loads(response.body) == {"error": "Internal server error"}

    def test_cookies_dropped_on_unhandled_error(self):
        """A failed request does not half-apply its cookie changes."""
        def handler(ctx):
            ctx.cookies["a"] = "1"
            raise RuntimeError("boom")

        response = Endpoint(handler).execute(make_request())

        assert "Set-Cookie" not in response.headers

    def test_invalid_config_rejected_at_construction(self):
        """Endpoint validates its configuration up front."""
        with pytest.raises(ValueError):
            Endpoint(lambda ctx: "ok", CookieConfig(default_path="relative"))

    def test_handler_content_type_wins(self):
        """A Content-Type header set by the handler is kept."""
        def handler(ctx):
            ctx.header("Content-Type", "text/html")
            return "<p>hi</p>"

        response = Endpoint(handler).execute(make_request())

        assert response.headers["Content-Type"] == "text/html"
        assert response.body == "<p>hi</p>"

    def test_unserializable_body_returns_500(self, caplog):
        """Rendering failures are handled like handler failures."""
        def handler(ctx):
            ctx.cookies["a"] = "1"
            return {"when": datetime(2030, 1, 1)}

        with caplog.at_level(logging.ERROR, logger="restcookies.context"):
            response = Endpoint(handler).execute(make_request())

        assert response.status_code == 500
        assert json.loads(response.body) == {"error": "Internal server error"}
        assert "Set-Cookie" not in response.headers
        assert "not JSON serializable" in caplog.text

    def test_unserializable_error_message_returns_500(self):
        """A halt whose message cannot be rendered also becomes a 500."""
        def handler(ctx):
            ctx.error({"at": datetime(2030, 1, 1)}, 401)

        response = Endpoint(handler).execute(make_request())

        assert response.status_code == 500
