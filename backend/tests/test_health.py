"""Health endpoint tests."""


def test_health_returns_ok(api_client):
    """Health endpoint should always answer 200."""
    response = api_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"
