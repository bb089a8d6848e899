def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "UP"


def test_request_id_header(client):
    response = client.get("/health")
    assert response.headers.get("X-Request-ID")


def test_unknown_route_uses_envelope(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["data"] is None
    assert body["error"]["code"] == "NOT_FOUND"
    assert "timestamp" in body


def test_register_user(client):
    response = client.post("/api/auth/register", json={
        "username": "testuser", "email": "test@test.com", "password": "password123",
    })
    assert response.status_code == 201
    assert response.json()["message"] == "User registered successfully"
