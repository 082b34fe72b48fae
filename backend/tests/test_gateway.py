from dataclasses import replace

import pytest

from backend.gateway.server import create_app

EVIL_ORIGIN = "https://evil.example"
FRONTEND_ORIGIN = "http://localhost:5500"


@pytest.fixture
def make_client(config, user_store, event_store):
    def _make(**overrides):
        app = create_app(replace(config, **overrides), user_store=user_store, event_store=event_store)
        return app.test_client()

    return _make


def test_wildcard_origin_never_gets_credentials(client):
    response = client.get("/events/", headers={"Origin": EVIL_ORIGIN})

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "*"
    assert "Access-Control-Allow-Credentials" not in response.headers


def test_listed_origin_gets_credentials(make_client):
    client = make_client(cors_origins=(FRONTEND_ORIGIN,))

    response = client.get("/events/", headers={"Origin": FRONTEND_ORIGIN})

    assert response.headers.get("Access-Control-Allow-Origin") == FRONTEND_ORIGIN
    assert response.headers.get("Access-Control-Allow-Credentials") == "true"


def test_unlisted_origin_is_not_echoed(make_client):
    client = make_client(cors_origins=(FRONTEND_ORIGIN,))

    response = client.get("/events/", headers={"Origin": EVIL_ORIGIN})

    assert "Access-Control-Allow-Origin" not in response.headers
    assert "Access-Control-Allow-Credentials" not in response.headers


def test_preflight_allows_authorization_header(make_client):
    client = make_client(cors_origins=(FRONTEND_ORIGIN,))

    response = client.options("/events/", headers={
        "Origin": FRONTEND_ORIGIN,
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "Authorization",
    })

    assert response.headers.get("Access-Control-Allow-Origin") == FRONTEND_ORIGIN
    assert "authorization" in response.headers.get("Access-Control-Allow-Headers", "").lower()


def test_security_headers_on_every_response(client):
    for response in (client.get("/health"), client.get("/nope")):
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "no-referrer"
        assert "Strict-Transport-Security" not in response.headers


def test_hsts_only_in_production(make_client):
    response = make_client(app_env="production").get("/health")

    assert response.headers["Strict-Transport-Security"].startswith("max-age=31536000")
    assert response.headers["X-Frame-Options"] == "DENY"


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}
    assert client.get("/").get_json() == {"status": "gateway_ok"}
