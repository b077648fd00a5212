"""Tests for CORS header computation."""

import pytest

from bridge.app.services.cors_policy import (
    ALLOW_HEADERS,
    ALLOW_METHODS,
    EXPOSE_HEADERS,
    MAX_AGE,
    compute_cors_headers,
    is_origin_allowed,
    parse_allowed_origins,
)

ALLOW_LIST = "https://app.example.com,http://localhost:3000"

STATIC_HEADERS = {
    "Access-Control-Allow-Methods": ALLOW_METHODS,
    "Access-Control-Allow-Headers": ALLOW_HEADERS,
    "Access-Control-Expose-Headers": EXPOSE_HEADERS,
    "Access-Control-Max-Age": MAX_AGE,
}


def test_allowed_origin_is_echoed_with_credentials():
    headers = compute_cors_headers("https://app.example.com", ALLOW_LIST)

    assert headers["Access-Control-Allow-Origin"] == "https://app.example.com"
    assert headers["Access-Control-Allow-Credentials"] == "true"
    for name, value in STATIC_HEADERS.items():
        assert headers[name] == value


def test_disallowed_origin_gets_static_headers_only():
    headers = compute_cors_headers("https://evil.example.com", ALLOW_LIST)

    assert headers == STATIC_HEADERS


def test_absent_origin_gets_static_headers_only():
    assert compute_cors_headers(None, ALLOW_LIST) == STATIC_HEADERS
    assert compute_cors_headers("", "*") == STATIC_HEADERS


def test_static_header_values():
    headers = compute_cors_headers(None, "")

    assert headers["Access-Control-Allow-Methods"] == "GET, POST, PUT, PATCH, DELETE, OPTIONS"
    assert headers["Access-Control-Expose-Headers"] == "Content-Range, Range"
    assert headers["Access-Control-Max-Age"] == "86400"
    assert "apikey" in headers["Access-Control-Allow-Headers"]


def test_wildcard_allows_any_origin_and_echoes_it():
    headers = compute_cors_headers("https://anything.example.org", "https://app.example.com, *")

    assert headers["Access-Control-Allow-Origin"] == "https://anything.example.org"
    assert headers["Access-Control-Allow-Credentials"] == "true"


@pytest.mark.parametrize(
    "origin",
    [
        "http://foo.localhost:4321",
        "http://localhost:5173",
        "http://preview_1.localhost:80",
    ],
)
def test_localhost_pattern_allowed_when_list_mentions_localhost(origin):
    assert is_origin_allowed(origin, ALLOW_LIST) is True


@pytest.mark.parametrize(
    "origin",
    [
        "https://localhost:4321",     # scheme must be http
        "http://localhost",           # port required
        "http://a.b.localhost:4321",  # single subdomain label only
        "http://localhost:4321/path",
        "http://evil-localhost:4321",
    ],
)
def test_localhost_pattern_is_strict(origin):
    assert is_origin_allowed(origin, ALLOW_LIST) is False


def test_localhost_pattern_requires_localhost_entry():
    assert is_origin_allowed("http://foo.localhost:4321", "https://app.example.com") is False


def test_accepts_pre_parsed_list():
    assert is_origin_allowed("https://app.example.com", ["https://app.example.com"]) is True


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("https://a.com, https://b.com", ["https://a.com", "https://b.com"]),
        (" * ", ["*"]),
        ("https://a.com,,", ["https://a.com"]),
        ("", []),
        (None, []),
        ([" https://a.com ", ""], ["https://a.com"]),
    ],
)
def test_parse_allowed_origins(raw, expected):
    assert parse_allowed_origins(raw) == expected
