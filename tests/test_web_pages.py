"""
Tests for the server-rendered admin pages.

The pages talk to the REST API in-process (see the client fixture), so these
tests exercise the full page -> API -> database path.
"""

import uuid

import httpx
import pytest

from main import app
from usermanager.web.api_client import ApiClient, ApiError, get_api_client


def create_via_api(client, username="alice", email="alice@example.com") -> str:
    response = client.post(
        "/api/users",
        json={"username": username, "email": email, "password": "Password1", "role": "User"},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestIndexPage:

    def test_empty_list(self, client):
        response = client.get("/users")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "No users found." in response.text

    def test_lists_users(self, client):
        user_id = create_via_api(client)

        response = client.get("/users")

        assert "alice@example.com" in response.text
        assert f"/users/{user_id}/edit" in response.text
        assert "Page 1 of 1 (1 users)" in response.text

    def test_pagination_links(self, client):
        for n in range(3):
            create_via_api(client, username=f"user_{n}", email=f"user{n}@example.com")

        response = client.get("/users", params={"page_number": 2, "page_size": 1})

        assert "page_number=1&page_size=1" in response.text
        assert "page_number=3&page_size=1" in response.text

    def test_flash_messages(self, client):
        response = client.get("/users", params={"success": "Saved.", "error": "Oops."})

        assert "Saved." in response.text
        assert "Oops." in response.text

    def test_api_failure_shows_error(self, client):
        response = client.get("/users", params={"page_size": 1000})

        assert response.status_code == 200
        assert "Unable to load the user list." in response.text


class TestCreatePages:

    def test_create_form(self, client):
        response = client.get("/users/create")

        assert response.status_code == 200
        assert 'name="password"' in response.text

    def test_create_submit_redirects(self, client):
        response = client.post(
            "/users/create",
            data={"username": "bob", "email": "bob@example.com", "password": "Password1", "role": "Admin"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/users?success=User+created+successfully."
        users = client.get("/api/users").json()["items"]
        assert [(u["username"], u["role"]) for u in users] == [("bob", "Admin")]

    def test_create_invalid_rerenders_with_errors(self, client):
        response = client.post(
            "/users/create",
            data={"username": "bob", "email": "not-an-email", "password": "Secret99x", "role": "User"},
        )

        assert response.status_code == 200
        assert "Failed to create user: Validation failed" in response.text
        assert "Email address is not valid" in response.text
        assert 'value="bob"' in response.text
        assert "Secret99x" not in response.text
        assert client.get("/api/users").json()["total_count"] == 0

    def test_create_duplicate(self, client):
        create_via_api(client, username="bob", email="bob@example.com")

        response = client.post(
            "/users/create",
            data={"username": "bob", "email": "new@example.com", "password": "Password1", "role": "User"},
        )

        assert "Failed to create user: Username or email already exists" in response.text


class TestEditPages:

    def test_edit_form_prefilled(self, client):
        user_id = create_via_api(client)

        response = client.get(f"/users/{user_id}/edit")

        assert response.status_code == 200
        assert f'name="user_id" value="{user_id}"' in response.text
        assert 'value="alice"' in response.text

    def test_edit_unknown_user_redirects(self, client):
        response = client.get(f"/users/{uuid.uuid4()}/edit", follow_redirects=False)

        assert response.status_code == 303
        assert "error=User+not+found." in response.headers["location"]

    def test_edit_submit(self, client):
        user_id = create_via_api(client)

        response = client.post(
            f"/users/{user_id}/edit",
            data={"user_id": user_id, "username": "alice2", "email": "alice@example.com", "role": "Admin"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/users?success=User+updated+successfully."
        data = client.get(f"/api/users/{user_id}").json()
        assert data["username"] == "alice2"
        assert data["role"] == "Admin"
        # Unchecked checkbox is not submitted
        assert data["is_active"] is False

    def test_edit_submit_keeps_active_when_checked(self, client):
        user_id = create_via_api(client)

        client.post(
            f"/users/{user_id}/edit",
            data={
                "user_id": user_id,
                "username": "alice",
                "email": "alice@example.com",
                "role": "User",
                "is_active": "true",
            },
        )

        assert client.get(f"/api/users/{user_id}").json()["is_active"] is True

    def test_edit_id_mismatch(self, client):
        user_id = create_via_api(client)

        response = client.post(
            f"/users/{user_id}/edit",
            data={"user_id": str(uuid.uuid4()), "username": "x_x", "email": "x@example.com", "role": "User"},
        )

        assert response.status_code == 400
        assert response.text == "User ID mismatch"
        assert client.get(f"/api/users/{user_id}").json()["username"] == "alice"

    def test_edit_invalid_rerenders(self, client):
        user_id = create_via_api(client)

        response = client.post(
            f"/users/{user_id}/edit",
            data={"user_id": user_id, "username": "a", "email": "alice@example.com", "role": "User"},
        )

        assert response.status_code == 200
        assert "Failed to update user: Validation failed" in response.text
        assert "Username must be between 3 and 50 characters" in response.text


class TestDetailsAndDelete:

    def test_details_page(self, client):
        user_id = create_via_api(client)

        response = client.get(f"/users/{user_id}")

        assert response.status_code == 200
        assert "alice@example.com" in response.text
        assert "Never" in response.text

    def test_details_unknown_user(self, client):
        response = client.get(f"/users/{uuid.uuid4()}", follow_redirects=False)

        assert response.status_code == 303

    def test_delete(self, client):
        user_id = create_via_api(client)

        response = client.post(f"/users/{user_id}/delete", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/users?success=User+deleted+successfully."
        assert client.get(f"/api/users/{user_id}").status_code == 404

    def test_delete_unknown_user(self, client):
        response = client.post(f"/users/{uuid.uuid4()}/delete", follow_redirects=False)

        assert response.headers["location"] == "/users?error=Failed+to+delete+user."


class TestApiClient:
    """ApiClient error mapping, against a stubbed transport."""

    @staticmethod
    def client_for(handler) -> ApiClient:
        return ApiClient(httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://api"))

    @pytest.mark.asyncio
    async def test_error_body_parsed(self):
        def handler(request):
            return httpx.Response(400, json={"detail": "Validation failed", "errors": {"email": ["bad"]}})

        with pytest.raises(ApiError) as exc_info:
            await self.client_for(handler).create_user({})

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Validation failed"
        assert exc_info.value.errors == {"email": ["bad"]}

    @pytest.mark.asyncio
    async def test_non_json_error(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(ApiError) as exc_info:
            await self.client_for(handler).get_user("x")

        assert exc_info.value.status_code == 502
        assert exc_info.value.errors == {}

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ApiError) as exc_info:
            await self.client_for(handler).list_users(1, 10)

        assert exc_info.value.status_code == 0

    def test_unreachable_api_page(self, client):
        """The list page degrades to an error message when the API is down."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async def unreachable_api():
            yield self.client_for(handler)

        app.dependency_overrides[get_api_client] = unreachable_api

        response = client.get("/users")

        assert response.status_code == 200
        assert "Unable to load the user list." in response.text
