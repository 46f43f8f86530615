from wsgiref.util import setup_testing_defaults

import pytest

from mcpgw.cors import CORSMiddleware, build_cors_middleware


def _ok_app(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [b"ok"]


def _run(app, method="GET", origin=None):
    environ = {}
    setup_testing_defaults(environ)
    environ["REQUEST_METHOD"] = method
    if origin is not None:
        environ["HTTP_ORIGIN"] = origin
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = headers
        return lambda data: None

    body = b"".join(app(environ, start_response))
    return captured["status"], captured["headers"], body


def _header(headers, name):
    for key, value in headers:
        if key.lower() == name.lower():
            return value
    return ""


def test_build_returns_none_without_origins():
    assert build_cors_middleware(None) is None
    assert build_cors_middleware([]) is None


def test_constructor_rejects_empty_origins():
    with pytest.raises(ValueError):
        CORSMiddleware([])


def test_allowed_origin():
    app = build_cors_middleware(["http://example.com", "http://other.com"]).wrap(_ok_app)
    status, headers, body = _run(app, origin="http://example.com")
    assert _header(headers, "Access-Control-Allow-Origin") == "http://example.com"
    assert "Content-Type" in _header(headers, "Access-Control-Allow-Headers")
    assert "X-Request-Id" in _header(headers, "Access-Control-Expose-Headers")
    assert _header(headers, "Vary") == "Origin"
    assert status.startswith("200")
    assert body == b"ok"


def test_disallowed_origin():
    app = CORSMiddleware(["http://example.com"]).wrap(_ok_app)
    status, headers, _ = _run(app, origin="http://evil.com")
    assert _header(headers, "Access-Control-Allow-Origin") == ""
    assert status.startswith("200")


def test_wildcard():
    app = CORSMiddleware(["*"]).wrap(_ok_app)
    _, headers, _ = _run(app, origin="http://anything.com")
    assert _header(headers, "Access-Control-Allow-Origin") == "http://anything.com"


def test_preflight():
    def failing_app(environ, start_response):
        raise AssertionError("next app should not be called for OPTIONS")

    app = CORSMiddleware(["http://example.com"]).wrap(failing_app)
    status, headers, body = _run(app, method="OPTIONS", origin="http://example.com")
    assert status.startswith("204")
    assert _header(headers, "Access-Control-Allow-Origin") == "http://example.com"
    assert body == b""


def test_preflight_disallowed_calls_next():
    calls = []

    def recording_app(environ, start_response):
        calls.append(environ["REQUEST_METHOD"])
        return _ok_app(environ, start_response)

    app = CORSMiddleware(["http://example.com"]).wrap(recording_app)
    _, headers, _ = _run(app, method="OPTIONS", origin="http://evil.com")
    assert _header(headers, "Access-Control-Allow-Origin") == ""
    assert calls == ["OPTIONS"]


def test_no_origin():
    app = CORSMiddleware(["http://example.com"]).wrap(_ok_app)
    status, headers, _ = _run(app)
    assert _header(headers, "Access-Control-Allow-Origin") == ""
    assert _header(headers, "Vary") == ""
    assert status.startswith("200")


def test_is_allowed():
    m = CORSMiddleware(["http://example.com"])
    assert m.is_allowed("http://example.com") is True
    assert m.is_allowed("http://evil.com") is False