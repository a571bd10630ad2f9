"""Integration tests for API routes."""
from fastapi import status


def register_payload(**overrides):
    payload = {
        "email": "alice@example.com",
        "password": "Password1",
        "role": "STUDENT",
        "name": "Alice Smith",
    }
    payload.update(overrides)
    return payload


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, **overrides):
    response = client.post("/api/auth/register", json=register_payload(**overrides))
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()["data"]


class TestRegisterRoute:
    """Test POST /api/auth/register."""

    def test_register_student(self, client):
        response = client.post("/api/auth/register", json=register_payload())

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["success"] is True
        user = body["data"]["user"]
        assert user["email"] == "alice@example.com"
        assert user["role"] == "STUDENT"
        assert user["profile"]["kind"] == "student"
        assert user["profile"]["student_id"].startswith("ST")
        assert "password_hash" not in user
        assert "failed_login_count" not in user
        assert "locked_until" not in user
        assert body["data"]["token"]

    def test_register_normalizes_email(self, client):
        data = register(client, email="Alice@Example.COM")

        assert data["user"]["email"] == "alice@example.com"

    def test_duplicate_email(self, client):
        register(client)

        response = client.post(
            "/api/auth/register", json=register_payload(email="ALICE@example.com")
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "DUPLICATE_EMAIL"

    def test_duplicate_student_id(self, client):
        register(client, student_id="CS1001")

        response = client.post(
            "/api/auth/register",
            json=register_payload(email="bob@example.com", student_id="CS1001"),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "DUPLICATE_STUDENT_ID"

    def test_weak_password_fails_validation(self, client):
        response = client.post("/api/auth/register", json=register_payload(password="password"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["errors"]

    def test_admin_role_not_allowed(self, client):
        response = client.post("/api/auth/register", json=register_payload(role="ADMIN"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_invalid_email(self, client):
        response = client.post("/api/auth/register", json=register_payload(email="not-an-email"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestLoginRoute:
    """Test POST /api/auth/login."""

    def test_login(self, client):
        register(client)

        response = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "Password1"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["user"]["last_login_at"] is not None
        assert data["token"]

    def test_wrong_password(self, client):
        register(client)

        response = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "WrongPass1"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    def test_unknown_email_matches_wrong_password(self, client):
        register(client)

        unknown = client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": "Password1"}
        )
        wrong = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "WrongPass1"}
        )

        assert unknown.status_code == wrong.status_code == status.HTTP_401_UNAUTHORIZED
        assert unknown.json() == wrong.json()

    def test_lockout_after_five_failures(self, client):
        register(client)
        bad = {"email": "alice@example.com", "password": "WrongPass1"}

        codes = [client.post("/api/auth/login", json=bad).status_code for _ in range(5)]
        assert codes == [status.HTTP_401_UNAUTHORIZED] * 5

        response = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "Password1"}
        )
        assert response.status_code == 423
        assert response.json()["code"] == "ACCOUNT_LOCKED"


class TestProfileRoutes:
    """Test the current-account endpoints."""

    def test_get_profile(self, client):
        data = register(client)

        response = client.get("/api/auth/profile", headers=auth_header(data["token"]))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["user"]["id"] == data["user"]["id"]

    def test_profile_without_token(self, client):
        response = client.get("/api/auth/profile")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_profile_with_bad_token(self, client):
        response = client.get("/api/auth/profile", headers=auth_header("not.a.valid.jwt"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_update_profile(self, client):
        data = register(client, role="TEACHER")

        response = client.put(
            "/api/auth/profile",
            json={"phone": "555-0100"},
            headers=auth_header(data["token"]),
        )

        assert response.status_code == status.HTTP_200_OK
        profile = response.json()["data"]["user"]["profile"]
        assert profile == {
            "kind": "teacher",
            "name": "Alice Smith",
            "phone": "555-0100",
            "address": None,
        }

    def test_change_password(self, client):
        data = register(client)

        response = client.put(
            "/api/auth/change-password",
            json={"current_password": "Password1", "new_password": "NewPassword2"},
            headers=auth_header(data["token"]),
        )
        assert response.status_code == status.HTTP_200_OK

        old = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "Password1"}
        )
        new = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "NewPassword2"}
        )
        assert old.status_code == status.HTTP_401_UNAUTHORIZED
        assert new.status_code == status.HTTP_200_OK

    def test_change_password_too_short(self, client):
        data = register(client)

        response = client.put(
            "/api/auth/change-password",
            json={"current_password": "Password1", "new_password": "short"},
            headers=auth_header(data["token"]),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "WEAK_PASSWORD"

    def test_change_password_wrong_current(self, client):
        data = register(client)

        response = client.put(
            "/api/auth/change-password",
            json={"current_password": "WrongPass1", "new_password": "NewPassword2"},
            headers=auth_header(data["token"]),
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "INVALID_CREDENTIALS"


class TestAdminRoutes:
    """Test account administration and role enforcement."""

    def test_student_is_forbidden(self, client):
        data = register(client)

        response = client.get("/api/admin/users", headers=auth_header(data["token"]))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "FORBIDDEN"

    def test_list_users(self, client, admin_token):
        register(client)
        register(client, email="sarah@example.com", role="TEACHER", name="Sarah Johnson")

        response = client.get(
            "/api/admin/users", params={"role": "TEACHER"}, headers=auth_header(admin_token)
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert [u["email"] for u in data["users"]] == ["sarah@example.com"]
        assert data["pagination"] == {"page": 1, "limit": 20, "total": 1, "pages": 1}

    def test_create_admin_user(self, client, admin_token):
        response = client.post(
            "/api/admin/users",
            json=register_payload(email="ops@rsams.edu", role="ADMIN", name="Ops"),
            headers=auth_header(admin_token),
        )

        assert response.status_code == status.HTTP_201_CREATED
        user = response.json()["data"]["user"]
        assert user["role"] == "ADMIN"
        assert user["profile"] is None
        assert "token" not in response.json()["data"]

    def test_deactivate_user_invalidates_token_use(self, client, admin_token):
        data = register(client)
        user_id = data["user"]["id"]

        response = client.delete(f"/api/admin/users/{user_id}", headers=auth_header(admin_token))
        assert response.status_code == status.HTTP_200_OK

        profile = client.get("/api/auth/profile", headers=auth_header(data["token"]))
        assert profile.status_code == status.HTTP_401_UNAUTHORIZED

        login = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "Password1"}
        )
        assert login.json()["code"] == "ACCOUNT_DEACTIVATED"

    def test_update_user_reactivates(self, client, admin_token):
        user_id = register(client)["user"]["id"]
        client.delete(f"/api/admin/users/{user_id}", headers=auth_header(admin_token))

        response = client.put(
            f"/api/admin/users/{user_id}",
            json={"is_active": True, "name": "Alice Cooper"},
            headers=auth_header(admin_token),
        )

        assert response.status_code == status.HTTP_200_OK
        user = response.json()["data"]["user"]
        assert user["is_active"] is True
        assert user["profile"]["name"] == "Alice Cooper"

    def test_unlock_user(self, client, admin_token):
        user_id = register(client)["user"]["id"]
        bad = {"email": "alice@example.com", "password": "WrongPass1"}
        for _ in range(5):
            client.post("/api/auth/login", json=bad)

        response = client.post(
            f"/api/admin/users/{user_id}/unlock", headers=auth_header(admin_token)
        )
        assert response.status_code == status.HTTP_200_OK

        login = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "Password1"}
        )
        assert login.status_code == status.HTTP_200_OK

    def test_unknown_user(self, client, admin_token):
        response = client.delete("/api/admin/users/missing", headers=auth_header(admin_token))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == "NOT_FOUND"


class TestInfoRoutes:
    """Test unauthenticated informational endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "ok"}
