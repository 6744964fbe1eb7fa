from html.parser import HTMLParser

import pytest

from linesets import create_app
from linesets.config import Config


class CsrfExtractor(HTMLParser):
    def __init__(self):
        super().__init__()
        self.token = None

    def handle_starttag(self, tag, attrs):
        if tag != "input":
            return
        attr_map = dict(attrs)
        if attr_map.get("name") == "csrf_token":
            self.token = attr_map.get("value")


def extract_csrf_token(html: str) -> str:
    parser = CsrfExtractor()
    parser.feed(html)
    if not parser.token:
        raise AssertionError("csrf token missing from response")
    return parser.token


class LiveConfig(Config):
    TESTING = True
    SECRET_KEY = "integration-secret"


@pytest.fixture
def app():
    return create_app(LiveConfig)


@pytest.fixture
def client(app):
    return app.test_client()


def test_full_flow_with_csrf(client):
    resp = client.get("/")
    token = extract_csrf_token(resp.get_data(as_text=True))

    resp = client.post(
        "/",
        data={
            "csrf_token": token,
            "submitted": "1",
            "text_a": "  a \n\nb\n",
            "text_b": "a\nb  \nc",
            "trim": "1",
            "ignore_empty": "1",
        },
    )
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "<code>c</code>" in body

    token = extract_csrf_token(body)
    resp = client.post(
        "/export/intersection",
        data={
            "csrf_token": token,
            "submitted": "1",
            "text_a": "  a \n\nb\n",
            "text_b": "a\nb  \nc",
            "trim": "1",
            "ignore_empty": "1",
        },
    )
    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == "a\nb"


def test_missing_csrf_token_redirects(client):
    resp = client.post("/", data={"text_a": "a", "text_b": "b"})

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/")


def test_missing_csrf_token_on_ajax_export_returns_json(client):
    resp = client.post(
        "/export/union",
        data={"text_a": "a"},
        headers={"X-Requested-With": "XMLHttpRequest"},
    )

    assert resp.status_code == 400
    assert resp.get_json()["status"] == "error"


def test_api_is_exempt_from_csrf(client):
    resp = client.post("/api/compare", json={"text_a": "a\nb", "text_b": "b"})

    assert resp.status_code == 200
    assert resp.get_json()["intersection"] == ["b"]
