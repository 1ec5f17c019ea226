import re

import pytest

from app.db.Models.models import ShortLink


def test_create_short_url_success(client):
    """Test successful URL shortening."""
    response = client.post(
        "/api/shorten",
        json={"url": "https://example.com/test"}
    )
    assert response.status_code == 201
    data = response.json()
    assert data["url"] == "https://example.com/test"
    assert re.fullmatch(r"[0-9A-Za-z]{7}", data["code"])
    assert data["short_url"] == f"http://localhost:8080/{data['code']}"
    assert data["hits"] == 0
    assert data["expires_at"] is None
    assert data["expired"] is False


def test_create_short_url_not_idempotent(client):
    """The same URL shortened twice gets two codes."""
    url = "https://example.com/twice"
    code1 = client.post("/api/shorten", json={"url": url}).json()["code"]
    code2 = client.post("/api/shorten", json={"url": url}).json()["code"]
    assert code1 != code2


def test_create_short_url_with_custom_alias(client):
    """Test URL shortening with custom alias."""
    response = client.post(
        "/api/shorten",
        json={"url": "https://example.com/custom", "custom": "my-brand_1"}
    )
    assert response.status_code == 201
    assert response.json()["code"] == "my-brand_1"


def test_create_short_url_custom_alias_collision(client):
    """Test that duplicate custom alias returns error."""
    first = client.post(
        "/api/shorten",
        json={"url": "https://x.test", "custom": "abc"}
    )
    assert first.status_code == 201

    response = client.post(
        "/api/shorten",
        json={"url": "https://y.test", "custom": "abc"}
    )
    assert response.status_code == 409
    assert "already exists" in response.json()["detail"].lower()


@pytest.mark.parametrize("alias", ["ab", "a" * 65, "has space", "bad!", "emojié"])
def test_create_short_url_invalid_alias(client, alias):
    response = client.post(
        "/api/shorten",
        json={"url": "https://example.com/test", "custom": alias}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "invalid code"


def test_create_short_url_invalid_url(client):
    """Test that invalid URL format is rejected."""
    invalid_urls = [
        "not-a-url",
        "ftp://example.com",  # Wrong protocol
        "http://",  # Missing domain
        "",
        "https://example.com/" + "a" * 2100,
    ]

    for invalid_url in invalid_urls:
        response = client.post("/api/shorten", json={"url": invalid_url})
        assert response.status_code == 400, f"Should reject: {invalid_url}"
        assert response.json()["detail"] == "invalid url"


def test_create_short_url_missing_url(client):
    response = client.post("/api/shorten", json={"custom": "abc"})
    assert response.status_code == 422


def test_create_short_url_past_expiry(clocked_client):
    response = clocked_client.post(
        "/api/shorten",
        json={"url": "https://example.com", "expires_at": "2025-12-31T00:00:00Z"}
    )
    assert response.status_code == 400


def test_redirect_success(client):
    """Test successful redirect."""
    create_response = client.post(
        "/api/shorten",
        json={"url": "https://example.com/redirect-test"}
    )
    code = create_response.json()["code"]

    response = client.get(f"/{code}", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com/redirect-test"


def test_redirect_not_found(client):
    """Test redirect with non-existent short code."""
    response = client.get("/nonexistent", follow_redirects=False)
    assert response.status_code == 404


def test_redirect_invalid_code(client):
    response = client.get("/ab", follow_redirects=False)
    assert response.status_code == 400


def test_redirect_increments_hits(client):
    """Test that redirects increment the hit count."""
    code = client.post(
        "/api/shorten",
        json={"url": "https://example.com/clicks"}
    ).json()["code"]

    assert client.get(f"/api/{code}").json()["hits"] == 0

    for _ in range(3):
        client.get(f"/{code}", follow_redirects=False)

    assert client.get(f"/api/{code}").json()["hits"] == 3


def test_metadata_endpoint(client):
    code = client.post(
        "/api/shorten",
        json={"url": "https://example.com/a", "custom": "meta"}
    ).json()["code"]

    response = client.get(f"/api/{code}")
    assert response.status_code == 200
    data = response.json()
    assert data["code"] == "meta"
    assert data["url"] == "https://example.com/a"
    assert data["hits"] == 0
    assert data["expired"] is False
    assert "created_at" in data


def test_metadata_not_found(client):
    assert client.get("/api/nothere").status_code == 404


def test_expired_link_redirect_gone_but_metadata_visible(clocked_client, clock):
    code = clocked_client.post(
        "/api/shorten",
        json={"url": "https://example.com/soon", "expires_at": "2026-01-01T12:00:05Z"}
    ).json()["code"]

    assert clocked_client.get(f"/{code}", follow_redirects=False).status_code == 302

    clock.advance(seconds=10)
    response = clocked_client.get(f"/{code}", follow_redirects=False)
    assert response.status_code == 410
    assert response.json()["detail"] == "link expired"

    meta = clocked_client.get(f"/api/{code}")
    assert meta.status_code == 200
    assert meta.json()["expired"] is True


def test_redirect_served_from_cache(client, fake_redis, session_factory):
    from app.db.Connection import database
    from app.main import app

    app.dependency_overrides[database.get_redis] = lambda: fake_redis
    code = client.post("/api/shorten", json={"url": "https://example.com/cached"}).json()["code"]

    # First redirect fills the cache
    client.get(f"/{code}", follow_redirects=False)
    assert f"url:{code}" in fake_redis.store

    # Drop the row; the cached entry still redirects
    db = session_factory()
    db.query(ShortLink).delete()
    db.commit()
    db.close()

    response = client.get(f"/{code}", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com/cached"


def test_shorten_rate_limited(client):
    from app.main import app
    from app.RateLimitHelper import TokenBucketLimiter

    app.state.rate_limiter = TokenBucketLimiter(rps=1, burst=2, clock=lambda: 0.0)

    statuses = [
        client.post("/api/shorten", json={"url": "https://example.com"}).status_code
        for _ in range(3)
    ]
    assert statuses == [201, 201, 429]

    # Other routes are never limited
    assert client.get("/health").status_code == 200


def test_forwarded_for_ignored_from_untrusted_peer(client):
    from app.main import app
    from app.RateLimitHelper import TokenBucketLimiter

    app.state.rate_limiter = TokenBucketLimiter(rps=1, burst=1, clock=lambda: 0.0)

    statuses = [
        client.post("/api/shorten", json={"url": "https://example.com"},
                    headers={"X-Forwarded-For": f"10.0.0.{i}"}).status_code
        for i in range(5)
    ]
    assert statuses == [201, 429, 429, 429, 429]
    assert len(app.state.rate_limiter) == 1


def test_rate_limit_is_per_client_behind_trusted_proxy(client):
    from app.main import app
    from app.RateLimitHelper import TokenBucketLimiter

    app.state.rate_limiter = TokenBucketLimiter(rps=1, burst=1, clock=lambda: 0.0)
    # TestClient connects from "testclient"
    app.state.trusted_proxies = frozenset({"testclient"})

    first = client.post("/api/shorten", json={"url": "https://example.com"},
                        headers={"X-Forwarded-For": "10.0.0.1"})
    second = client.post("/api/shorten", json={"url": "https://example.com"},
                         headers={"X-Forwarded-For": "10.0.0.1"})
    other = client.post("/api/shorten", json={"url": "https://example.com"},
                        headers={"X-Forwarded-For": "10.0.0.2"})
    assert first.status_code == 201
    assert second.status_code == 429
    assert second.headers["retry-after"] == "1"
    assert other.status_code == 201


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.parametrize("alias", ["docs", "redoc", "health", "ready"])
def test_alias_shadowed_by_route_is_refused(client, alias):
    response = client.post(
        "/api/shorten",
        json={"url": "https://example.com/shadow", "custom": alias}
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "code is reserved"
    assert client.get(f"/api/{alias}").status_code == 404


def test_reserved_codes_cover_top_level_routes():
    from app.api.deps import RESERVED_CODES
    from app.main import app
    from app.utils.validation import is_valid_code

    top_level = {
        route.path.strip("/")
        for route in app.routes
        if route.path.count("/") == 1 and "{" not in route.path
    }
    assert {path for path in top_level if is_valid_code(path)} == RESERVED_CODES
