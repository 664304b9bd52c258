def test_health_endpoint(client):
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["pricing"]["default_currency"] == "USD"
    assert data["pricing"]["quote_expiry_days"] == 30
    assert "email_dry_run" in data


def test_ready_endpoint(client):
    """Test the readiness endpoint against the test database."""
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "database": "connected"}
