"""
Authentication endpoint tests for Taskboard API
"""
import io

import pytest
from fastapi import UploadFile
from httpx import AsyncClient
from starlette.datastructures import Headers

from app.exceptions.auth import AuthError
from app.exceptions.storage import InvalidUploadError
from app.integrations.storage import LocalImageStorage, image_storage

TEST_PASSWORD = "TestPassword123!"


class TestUserRegistration:
    """Test user registration functionality"""

    async def test_successful_registration(self, client: AsyncClient, test_user_data):
        """Test successful user registration"""
        response = await client.post("/api/v1/auth/register", json=test_user_data)

        assert response.status_code == 201
        data = response.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"
        assert data["name"] == test_user_data["name"]
        assert data["email"] == test_user_data["email"]
        assert data["role"] == "member"
        assert "password" not in data
        assert "hashed_password" not in data

    async def test_registration_with_invite_token_grants_admin(self, client: AsyncClient, test_user_data):
        response = await client.post(
            "/api/v1/auth/register",
            json={**test_user_data, "admin_invite_token": "test-admin-invite"}
        )

        assert response.status_code == 201
        assert response.json()["role"] == "admin"

    async def test_registration_with_wrong_invite_token_is_member(self, client: AsyncClient, test_user_data):
        response = await client.post(
            "/api/v1/auth/register",
            json={**test_user_data, "admin_invite_token": "guess"}
        )

        assert response.status_code == 201
        assert response.json()["role"] == "member"

    async def test_duplicate_email_registration(self, client: AsyncClient, test_user_data):
        """Test registration with duplicate email"""
        response1 = await client.post("/api/v1/auth/register", json=test_user_data)
        assert response1.status_code == 201

        response2 = await client.post("/api/v1/auth/register", json=test_user_data)
        assert response2.status_code == 409
        assert "already exists" in response2.json()["detail"]

    async def test_weak_password_registration(self, client: AsyncClient):
        """Test registration with weak password"""
        weak_password_data = {
            "name": "Weak",
            "email": "test@example.com",
            "password": "weak",
            "password_confirm": "weak"
        }

        response = await client.post("/api/v1/auth/register", json=weak_password_data)
        assert response.status_code == 400
        assert response.json()["detail"] == "Validation error"

    async def test_password_mismatch_registration(self, client: AsyncClient):
        """Test registration with password mismatch"""
        mismatch_data = {
            "name": "Mismatch",
            "email": "test@example.com",
            "password": "StrongPassword123!",
            "password_confirm": "DifferentPassword123!"
        }

        response = await client.post("/api/v1/auth/register", json=mismatch_data)
        assert response.status_code == 400


class TestUserLogin:
    """Test user login functionality"""

    async def test_oauth2_login_success(self, client: AsyncClient, authenticated_user):
        """Test successful OAuth2 login"""
        login_data = {
            "username": authenticated_user["user_data"]["email"],
            "password": authenticated_user["user_data"]["password"]
        }

        response = await client.post(
            "/api/v1/auth/login",
            data=login_data,
            headers={"Content-Type": "application/x-www-form-urlencoded"}
        )

        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert data["email"] == login_data["username"]

    async def test_json_login_success(self, client: AsyncClient, authenticated_user):
        """Test successful JSON login"""
        login_data = {
            "username": authenticated_user["user_data"]["email"],
            "password": authenticated_user["user_data"]["password"]
        }

        response = await client.post("/api/v1/auth/login-json", json=login_data)

        assert response.status_code == 200
        assert "access_token" in response.json()

    async def test_invalid_credentials_login(self, client: AsyncClient, authenticated_user):
        """Test login with invalid credentials"""
        login_data = {
            "username": authenticated_user["user_data"]["email"],
            "password": "WrongPassword123!"
        }

        response = await client.post("/api/v1/auth/login-json", json=login_data)
        assert response.status_code == 401
        assert "Incorrect username or password" in response.json()["detail"]

    async def test_unknown_user_login(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/login-json",
            json={"username": "nobody@example.com", "password": TEST_PASSWORD}
        )
        assert response.status_code == 401

    async def test_inactive_user_login(self, client: AsyncClient, make_user):
        await make_user("Gone", "gone@example.com", is_active=False)
        response = await client.post(
            "/api/v1/auth/login-json",
            json={"username": "gone@example.com", "password": TEST_PASSWORD}
        )
        assert response.status_code == 403


class TestProfile:
    """Profile read and update"""

    async def test_get_profile(self, client: AsyncClient, authenticated_user):
        headers = {"Authorization": f"Bearer {authenticated_user['access_token']}"}

        response = await client.get("/api/v1/auth/profile", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == authenticated_user["user_data"]["email"]
        assert "id" in data
        assert "created_at" in data
        assert "updated_at" in data

    async def test_get_profile_without_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/profile")
        assert response.status_code == 401

    async def test_get_profile_with_garbage_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/profile", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    async def test_update_profile_name_only(self, client: AsyncClient, authenticated_user):
        headers = {"Authorization": f"Bearer {authenticated_user['access_token']}"}

        response = await client.put("/api/v1/auth/profile", json={"name": "Renamed"}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Renamed"
        assert data["email"] == authenticated_user["user_data"]["email"]

    async def test_update_profile_password_allows_new_login(self, client: AsyncClient, authenticated_user):
        headers = {"Authorization": f"Bearer {authenticated_user['access_token']}"}
        new_password = "AnotherPassword456?"

        response = await client.put("/api/v1/auth/profile", json={"password": new_password}, headers=headers)
        assert response.status_code == 200

        login = await client.post(
            "/api/v1/auth/login-json",
            json={"username": authenticated_user["user_data"]["email"], "password": new_password}
        )
        assert login.status_code == 200

    async def test_update_profile_to_taken_email(self, client: AsyncClient, authenticated_user, member_user):
        headers = {"Authorization": f"Bearer {authenticated_user['access_token']}"}

        response = await client.put("/api/v1/auth/profile", json={"email": member_user.email}, headers=headers)
        assert response.status_code == 409


class TestImageUpload:
    """Profile image upload"""

    async def test_upload_png(self, client: AsyncClient):
        files = {"image": ("avatar.png", b"\x89PNG\r\n\x1a\nfake-image-bytes", "image/png")}

        response = await client.post("/api/v1/auth/upload-image", files=files)

        assert response.status_code == 200
        image_url = response.json()["image_url"]
        assert image_url.startswith("http://test/uploads/")
        assert image_url.endswith("avatar.png")

        served = await client.get(image_url.replace("http://test", ""))
        assert served.status_code == 200
        assert served.content == b"\x89PNG\r\n\x1a\nfake-image-bytes"

    async def test_upload_rejects_other_types(self, client: AsyncClient):
        files = {"image": ("notes.txt", b"plain text", "text/plain")}

        response = await client.post("/api/v1/auth/upload-image", files=files)

        assert response.status_code == 400
        assert "Invalid file type" in response.json()["detail"]

    async def test_upload_rejects_empty_file(self, client: AsyncClient):
        files = {"image": ("empty.png", b"", "image/png")}

        response = await client.post("/api/v1/auth/upload-image", files=files)
        assert response.status_code == 400

    async def test_upload_rejects_oversized_file(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(image_storage, "max_size", 8)
        files = {"image": ("big.png", b"0123456789", "image/png")}

        response = await client.post("/api/v1/auth/upload-image", files=files)

        assert response.status_code == 400
        assert response.json()["detail"] == "File too large. Maximum size is 8 bytes."


class TestLocalImageStorage:
    """Size limits and errors of the disk storage"""

    @staticmethod
    def upload(content: bytes, filename: str = "photo.png", content_type: str = "image/png") -> UploadFile:
        return UploadFile(file=io.BytesIO(content), filename=filename, headers=Headers({"content-type": content_type}))

    async def test_reads_at_most_one_byte_past_limit(self, tmp_path):
        storage = LocalImageStorage(str(tmp_path), max_size=4)
        upload = self.upload(b"0123456789")

        with pytest.raises(InvalidUploadError) as exc_info:
            await storage.save(upload)

        assert exc_info.value.status_code == 400
        assert upload.file.tell() == 5
        assert list(tmp_path.iterdir()) == []

    async def test_file_at_limit_is_stored(self, tmp_path):
        storage = LocalImageStorage(str(tmp_path), max_size=4)

        filename = await storage.save(self.upload(b"0123"))

        assert (tmp_path / filename).read_bytes() == b"0123"

    def test_upload_error_is_not_an_auth_error(self):
        error = InvalidUploadError("No file uploaded")

        assert not isinstance(error, AuthError)
        assert error.status_code == 400
        assert error.headers is None
