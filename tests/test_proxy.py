import logging

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from config.settings import Settings
from conftest import FakeSearchTool


@pytest.fixture
def client(settings, fake_search):
    return TestClient(create_app(settings, search_tool=fake_search))


def test_missing_query_is_400(client, fake_search):
    response = client.post("/search", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "Query parameter is required"}
    assert fake_search.queries == []


@pytest.mark.parametrize("body", [{"query": ""}, {"query": None}, {"query": "   "}])
def test_empty_query_is_400(client, body):
    response = client.post("/search", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "Query parameter is required"}


def test_no_body_is_400(client):
    response = client.post("/search")
    assert response.status_code == 400


def test_query_forwarded_unmodified(client, fake_search):
    response = client.post("/search", json={"query": "scrap dealers near 12.9,77.6"})
    assert response.status_code == 200
    assert response.json() == {"results": fake_search.results}
    assert fake_search.queries == ["scrap dealers near 12.9,77.6"]


def test_results_are_passed_through_opaque(settings):
    tool = FakeSearchTool(results="snippet: not json, title: whatever")
    client = TestClient(create_app(settings, search_tool=tool))
    response = client.post("/search", json={"query": "x"})
    assert response.json() == {"results": "snippet: not json, title: whatever"}


def test_search_failure_is_generic_500(settings, caplog):
    tool = FakeSearchTool(error=RuntimeError("ddg rate limited: secret detail"))
    client = TestClient(create_app(settings, search_tool=tool))
    with caplog.at_level(logging.ERROR, logger="ecoshield"):
        response = client.post("/search", json={"query": "scrap dealers near 1,2"})
    assert response.status_code == 500
    assert response.json() == {"error": "An error occurred during the search"}
    assert "secret detail" not in response.text
    assert "secret detail" in caplog.text


def test_each_call_hits_the_tool(client, fake_search):
    client.post("/search", json={"query": "a"})
    client.post("/search", json={"query": "a"})
    assert fake_search.queries == ["a", "a"]


def test_root_is_liveness_text(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "/search" in response.text
    assert response.headers["content-type"].startswith("text/plain")


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_cors_wildcard_allows_any_origin(client):
    response = client.options(
        "/search",
        headers={"Origin": "https://anywhere.example", "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_explicit_origin_list(tmp_path, fake_search):
    settings = Settings(cors_allow_origins=["https://ecoshield.example"], data_dir=tmp_path)
    client = TestClient(create_app(settings, search_tool=fake_search))
    allowed = client.options(
        "/search",
        headers={"Origin": "https://ecoshield.example", "Access-Control-Request-Method": "POST"},
    )
    assert allowed.headers["access-control-allow-origin"] == "https://ecoshield.example"
    denied = client.options(
        "/search",
        headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "POST"},
    )
    assert denied.status_code == 400
    assert "access-control-allow-origin" not in denied.headers


def test_default_tool_built_lazily(settings, monkeypatch):
    built = []

    def fake_build(s):
        built.append(s)
        return FakeSearchTool(results="[]")

    monkeypatch.setattr("app.main.build_search_tool", fake_build)
    client = TestClient(create_app(settings))
    assert built == []
    client.post("/search", json={"query": "a"})
    client.post("/search", json={"query": "b"})
    assert built == [settings]


@pytest.mark.parametrize(
    "content",
    [b"{", b'["x"]', b'{"query": 123}', b'{"query": ["a", "b"]}', b'"scrap dealers"'],
)
def test_unreadable_body_is_400(client, fake_search, content):
    response = client.post("/search", content=content, headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Query parameter is required"}
    assert fake_search.queries == []


def test_create_app_configures_logging(settings, fake_search, monkeypatch):
    calls = []
    monkeypatch.setattr("app.main.logging.basicConfig", lambda **kwargs: calls.append(kwargs))
    create_app(settings, search_tool=fake_search)
    assert calls and calls[0]["level"] == settings.log_level.upper()
