"""
Tests for the main application endpoints.
"""
import logging


def test_root_endpoint(client):
    """
    Test the root endpoint returns a welcome message.
    """
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "message" in data
    assert data["version"] == "1.0.0"


def test_health_check(client):
    """
    Test the health check endpoint returns a healthy status.
    """
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "store" in data


def test_request_id_is_echoed(client):
    """
    Test the logging middleware tags responses with the request id.
    """
    response = client.get("/health", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"
    assert "X-Process-Time" in response.headers


def test_request_id_is_generated(client):
    response = client.get("/")
    assert response.headers["X-Request-ID"]


def test_validation_errors_are_reported(client):
    """
    Test malformed request bodies get the standard validation error shape.
    """
    response = client.post("/api/v1/auth/login", json={"patientId": "PAT001"})
    assert response.status_code == 422
    data = response.json()
    assert data["detail"] == "Validation error"
    assert any("password" in error["loc"] for error in data["errors"])


def test_health_checks_are_not_logged(client, caplog):
    """
    Test successful health checks stay out of the request log.
    """
    with caplog.at_level(logging.INFO, logger="medicloud.core.middleware"):
        client.get("/health")
        client.get("/")

    messages = [record.getMessage() for record in caplog.records if record.name == "medicloud.core.middleware"]
    assert not any("/health" in message for message in messages)
    assert any("GET / " in message for message in messages)
