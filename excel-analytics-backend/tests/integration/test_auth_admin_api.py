from __future__ import annotations


def _upload(client, headers, content: bytes, name: str = "people.xlsx") -> dict:
    response = client.post(
        "/api/upload",
        files={"file": (name, content, "application/octet-stream")},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestAuth:
    def test_first_user_becomes_admin(self, admin_auth, user_auth):
        assert admin_auth["user"]["isAdmin"] is True
        assert user_auth["user"]["isAdmin"] is False
        assert "password" not in admin_auth["user"]

    def test_duplicate_registration(self, client, user_auth):
        response = client.post(
            "/api/auth/register",
            json={"name": "Ana", "email": "ana@example.com", "password": "x"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "User already exists"

    def test_login_and_me(self, client, user_auth, auth_headers):
        response = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "s3cret-pass"})
        assert response.status_code == 200
        token = response.json()["token"]
        me = client.get("/api/auth/me", headers=auth_headers(token)).json()
        assert me["email"] == "ana@example.com"

    def test_wrong_password(self, client, user_auth):
        response = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "nope"})
        assert response.status_code == 401
        assert response.json() == {"message": "Invalid credentials", "error": "AUTHORIZATION_ERROR"}

    def test_malformed_register_body(self, client):
        response = client.post("/api/auth/register", json={"name": "Ana"})
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid data provided", "error": "VALIDATION_ERROR"}

    def test_me_without_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["message"] == "No token, authorization denied"


class TestAdmin:
    def test_non_admin_is_forbidden(self, client, user_auth, auth_headers):
        for path in ("/api/admin/users", "/api/admin/files", "/api/admin/stats"):
            response = client.get(path, headers=auth_headers(user_auth["token"]))
            assert response.status_code == 403
            assert response.json()["message"] == "Access denied. Admin privileges required."

    def test_stats(self, client, admin_auth, user_auth, auth_headers, people_xlsx):
        _upload(client, auth_headers(user_auth["token"]), people_xlsx)
        stats = client.get("/api/admin/stats", headers=auth_headers(admin_auth["token"])).json()
        assert stats == {
            "totalUsers": 2,
            "totalFiles": 1,
            "activeUsers": 2,
            "adminUsers": 1,
            "recentFiles": 1,
        }

    def test_list_users_hides_passwords(self, client, admin_auth, user_auth, auth_headers):
        users = client.get("/api/admin/users", headers=auth_headers(admin_auth["token"])).json()
        assert {u["email"] for u in users} == {"admin@example.com", "ana@example.com"}
        assert all("password" not in u for u in users)

    def test_deactivated_user_is_locked_out(self, client, admin_auth, user_auth, auth_headers):
        admin = auth_headers(admin_auth["token"])
        user_id = user_auth["user"]["id"]

        response = client.put(f"/api/admin/users/{user_id}", json={"isActive": False}, headers=admin)
        assert response.status_code == 200
        assert response.json()["isActive"] is False

        login = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "s3cret-pass"})
        assert login.status_code == 403
        assert client.get("/api/auth/me", headers=auth_headers(user_auth["token"])).status_code == 403

    def test_update_unknown_user(self, client, admin_auth, auth_headers):
        response = client.put("/api/admin/users/missing", json={"isActive": False}, headers=auth_headers(admin_auth["token"]))
        assert response.status_code == 404

    def test_delete_user_removes_their_files(self, client, store, admin_auth, user_auth, auth_headers, people_xlsx, upload_dir):
        admin = auth_headers(admin_auth["token"])
        _upload(client, auth_headers(user_auth["token"]), people_xlsx)
        _upload(client, admin, people_xlsx, "mine.xlsx")
        assert len(list(upload_dir.iterdir())) == 2

        response = client.delete(f"/api/admin/users/{user_auth['user']['id']}", headers=admin)
        assert response.status_code == 200
        assert store.get_user_by_id(user_auth["user"]["id"]) is None
        files = client.get("/api/admin/files", headers=admin).json()
        assert [f["originalName"] for f in files] == ["mine.xlsx"]
        assert files[0]["user"] == {"name": "Admin", "email": "admin@example.com"}
        assert [p.name.endswith("_mine.xlsx") for p in upload_dir.iterdir()] == [True]

    def test_delete_file(self, client, admin_auth, user_auth, auth_headers, people_xlsx, upload_dir):
        admin = auth_headers(admin_auth["token"])
        uploaded = _upload(client, auth_headers(user_auth["token"]), people_xlsx)
        assert len(list(upload_dir.iterdir())) == 1

        assert client.delete(f"/api/admin/files/{uploaded['id']}", headers=admin).status_code == 200
        assert client.delete(f"/api/admin/files/{uploaded['id']}", headers=admin).status_code == 404
        assert client.get("/api/upload/history", headers=auth_headers(user_auth["token"])).json() == []
        assert list(upload_dir.iterdir()) == []

    def test_raw_uploads_are_not_served(self, client, user_auth, auth_headers, people_xlsx, upload_dir):
        _upload(client, auth_headers(user_auth["token"]), people_xlsx)
        stored = next(upload_dir.iterdir())
        assert client.get(f"/uploads/{stored.name}").status_code == 404


class TestService:
    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["status"] == "OK"
        assert body["environment"]["JWT_SECRET"] == "SET"
        assert body["environment"]["STORAGE_BACKEND"] == "memory"

    def test_root(self, client):
        assert client.get("/").json()["message"] == "Excel Analytics API is running!"

    def test_openapi_marks_protected_routes(self, client):
        schema = client.get("/openapi.json").json()
        assert "Bearer" in schema["components"]["securitySchemes"]
        assert schema["paths"]["/api/upload"]["post"]["security"] == [{"Bearer": []}]
        assert "security" not in schema["paths"]["/api/upload/simple"]["post"]
        assert "security" not in schema["paths"]["/api/health"]["get"]
