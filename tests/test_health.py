from unittest.mock import AsyncMock, patch


def test_health_endpoint(client):
    """Health reports ok with a reachable database"""
    with patch('app.main.check_db', new_callable=AsyncMock) as mock_check:
        mock_check.return_value = "connected"
        response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "connected"
    assert body["app_name"] == "Cafe POS Ledger"
    assert body["timestamp"]


def test_health_endpoint_degraded(client):
    with patch('app.main.check_db', new_callable=AsyncMock) as mock_check:
        mock_check.return_value = "error"
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
