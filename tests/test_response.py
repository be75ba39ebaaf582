import pytest
import requests

from scrapegoat.request import Request
from scrapegoat.response import Response, browser_response

HTML = b"<html><head><title>Test Page</title></head><body><h1>Hello World</h1></body></html>"


def make_resp(status=200, body=HTML):
    return Response(request=Request("https://example.com"), status_code=status, body=body)


@pytest.mark.parametrize(
    "status, success, redirect, client, server",
    [
        (200, True, False, False, False),
        (299, True, False, False, False),
        (301, False, True, False, False),
        (404, False, False, True, False),
        (503, False, False, False, True),
        (600, False, False, False, False),
    ],
)
def test_status_predicates(status, success, redirect, client, server):
    resp = make_resp(status)
    assert resp.is_success() is success
    assert resp.is_redirect() is redirect
    assert resp.is_client_error() is client
    assert resp.is_server_error() is server


def test_content_length_defaults_to_body_size():
    assert make_resp().content_length == len(HTML)


def test_document_parses_and_caches():
    resp = make_resp()
    doc = resp.document()
    assert doc.title.get_text() == "Test Page"
    assert doc.find("h1").get_text() == "Hello World"
    assert resp.document() is doc


def test_document_of_empty_body():
    assert make_resp(body=b"").document().find("h1") is None


def test_from_http():
    raw = requests.Response()
    raw.status_code = 201
    raw.headers["Content-Type"] = "text/html; charset=utf-8"
    raw.url = "https://example.com/final"
    req = Request("https://example.com/start")
    resp = Response.from_http(req, raw, HTML, 0.25)
    assert resp.status_code == 201
    assert resp.content_type == "text/html; charset=utf-8"
    assert resp.final_url == "https://example.com/final"
    assert resp.content_length == len(HTML)
    assert resp.fetch_duration == 0.25
    assert resp.request is req


def test_browser_response():
    req = Request("https://example.com")
    resp = browser_response(req, 200, HTML, "https://example.com/after", 1.5)
    assert resp.content_type == "text/html"
    assert resp.final_url == "https://example.com/after"
    assert resp.headers == {}
    assert resp.content_length == len(HTML)
    assert resp.is_success()