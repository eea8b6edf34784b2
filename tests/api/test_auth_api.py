"""HTTP tests for registration, login, the current user and health."""

from campus_library.api.dependencies import get_database_manager
from campus_library.database.session import DatabaseManager


class TestRegisterEndpoint:
    def test_register_student(self, client):
        response = client.post(
            "/api/auth/register",
            json={"name": "Ada Lovelace", "email": "ada@campus.edu", "password": "secret123"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["user"]["role"] == "Student"
        assert body["data"]["user"]["email"] == "ada@campus.edu"
        assert "createdAt" in body["data"]["user"]
        assert "passwordHash" not in body["data"]["user"]
        assert body["data"]["token"]

    def test_register_validation_errors(self, client):
        response = client.post(
            "/api/auth/register",
            json={"name": "", "email": "not-an-email", "password": "123"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        fields = {error["field"] for error in body["errors"]}
        assert {"name", "email", "password"} <= fields

    def test_register_invalid_role(self, client):
        response = client.post(
            "/api/auth/register",
            json={
                "name": "Mallory",
                "email": "mallory@campus.edu",
                "password": "secret123",
                "role": "Admin",
            },
        )
        assert response.status_code == 400

    def test_register_duplicate_email(self, client, student):
        response = client.post(
            "/api/auth/register",
            json={"name": "Copy", "email": student.user.email, "password": "secret123"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "User already exists with this email"


class TestLoginEndpoint:
    def test_login(self, client, student):
        response = client.post(
            "/api/auth/login", json={"email": student.user.email, "password": "secret123"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["user"]["id"] == student.user.id
        assert body["data"]["token"] != student.token

    def test_login_wrong_password(self, client, student):
        response = client.post(
            "/api/auth/login", json={"email": student.user.email, "password": "nope-nope"}
        )
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid credentials"}


class TestMeEndpoint:
    def test_me(self, client, student, student_headers):
        response = client.get("/api/auth/me", headers=student_headers)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == student.user.id
        assert response.json()["data"]["name"] == "Sam Student"

    def test_me_without_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, no token"

    def test_me_with_unknown_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer deadbeef"})
        assert response.status_code == 401


class TestHealthEndpoint:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] is True
        assert body["name"] == "campus-library"

    def test_health_reports_unreachable_database(self, app, client, tmp_path):
        unreachable = DatabaseManager(f"sqlite:///{tmp_path / 'missing' / 'library.db'}")
        app.dependency_overrides[get_database_manager] = lambda: unreachable

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] is False

    def test_unknown_route_uses_envelope(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json()["success"] is False
