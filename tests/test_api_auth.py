from app.config import settings

PASSWORD = "password123"


def test_signup_sets_cookie_and_returns_token(client):
    response = client.post(
        "/auth/signup",
        json={"name": "New Person", "email": "New@Example.com", "password": PASSWORD},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "new@example.com"
    assert settings.auth_cookie_name in response.cookies

    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["name"] == "New Person"


def test_signup_duplicate_email(client, person):
    response = client.post(
        "/auth/signup",
        json={"name": "Copy", "email": person.email, "password": PASSWORD},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "http_409"


def test_signin_and_signout(client, person):
    response = client.post(
        "/auth/signin", json={"email": person.email.upper(), "password": PASSWORD}
    )
    assert response.status_code == 200
    assert response.json()["user"]["id"] == str(person.id)
    assert client.get("/auth/me").status_code == 200

    assert client.post("/auth/signout").json() == {"success": True}
    client.cookies.clear()
    assert client.get("/auth/me").status_code == 401


def test_signin_wrong_password(client, person):
    response = client.post(
        "/auth/signin", json={"email": person.email, "password": "wrong-password"}
    )
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


def test_bearer_token(client, person, auth_headers):
    response = client.get("/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["id"] == str(person.id)


def test_missing_and_garbage_tokens(client):
    assert client.get("/auth/me").status_code == 401
    response = client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized", "code": "http_401", "details": None}


def test_permissions_endpoint(client, auth_headers):
    response = client.get("/auth/permissions", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == []


def test_validation_error_shape(client):
    response = client.post("/auth/signup", json={"name": "x"})
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert isinstance(body["details"], list)


def test_health_metrics_and_request_id(client):
    response = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"] == "abc123"
    assert client.get("/health").headers["X-Request-ID"]

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "docassign_http_requests_total" in metrics.text


def test_versioned_prefix(client, auth_headers):
    assert client.get("/api/v1/auth/me", headers=auth_headers).status_code == 200
