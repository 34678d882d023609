from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app import crud
from app.core.config import settings
from app.core.session import ClaimBundle, issue_token
from tests.utils.utils import (
    create_user_with_headers,
    random_email,
    random_lower_string,
    register_user,
)


class TestProfile:
    def test_read_profile(self, fresh_client: TestClient, client: TestClient) -> None:
        user, _ = create_user_with_headers(client)
        r = fresh_client.get(f"{settings.API_V1_STR}/users/{user['id']}")
        assert r.status_code == 200
        data = r.json()
        assert data["id"] == user["id"]
        assert data["username"] == user["username"]
        assert data["counts"] == {"posts": 0, "followers": 0, "following": 0}

    def test_read_unknown_profile(self, client: TestClient) -> None:
        r = client.get(f"{settings.API_V1_STR}/users/does-not-exist")
        assert r.status_code == 404

    def test_update_own_profile(self, client: TestClient) -> None:
        user, headers = create_user_with_headers(client)
        new_username = random_lower_string(12)
        r = client.patch(
            f"{settings.API_V1_STR}/users/{user['id']}",
            headers=headers,
            json={"bio": "Building in public", "username": new_username},
        )
        assert r.status_code == 200
        assert r.json()["bio"] == "Building in public"
        assert r.json()["username"] == new_username
        assert r.json()["name"] == user["name"]

    def test_update_own_profile_by_email(self, client: TestClient) -> None:
        user, headers = create_user_with_headers(client)
        r = client.patch(
            f"{settings.API_V1_STR}/users/{user['email']}",
            headers=headers,
            json={"name": "Renamed"},
        )
        assert r.status_code == 200
        assert r.json()["name"] == "Renamed"

    def test_update_someone_else(self, client: TestClient) -> None:
        other, _ = create_user_with_headers(client)
        _, headers = create_user_with_headers(client)
        r = client.patch(
            f"{settings.API_V1_STR}/users/{other['id']}",
            headers=headers,
            json={"bio": "hijacked"},
        )
        assert r.status_code == 401

    def test_update_taken_username(self, client: TestClient) -> None:
        other, _ = create_user_with_headers(client)
        user, headers = create_user_with_headers(client)
        r = client.patch(
            f"{settings.API_V1_STR}/users/{user['id']}",
            headers=headers,
            json={"username": other["username"].upper()},
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Username is already taken"

    def test_update_keeping_own_username(self, client: TestClient) -> None:
        user, headers = create_user_with_headers(client)
        r = client.patch(
            f"{settings.API_V1_STR}/users/{user['id']}",
            headers=headers,
            json={"username": user["username"], "bio": "same name"},
        )
        assert r.status_code == 200

    def test_update_rejects_markup(self, client: TestClient) -> None:
        user, headers = create_user_with_headers(client)
        r = client.patch(
            f"{settings.API_V1_STR}/users/{user['id']}",
            headers=headers,
            json={"name": "<script>"},
        )
        assert r.status_code == 422

    def test_update_provisions_missing_row(
        self, client: TestClient, db: Session
    ) -> None:
        email = random_email()
        token, _ = issue_token(ClaimBundle(id=None, email=email, name="Ghost"))
        r = client.patch(
            f"{settings.API_V1_STR}/users/{email}",
            headers={"Authorization": f"Bearer {token}"},
            json={"username": "ghostwriter"},
        )
        assert r.status_code == 200
        assert r.json()["username"] == "ghostwriter"
        assert r.json()["bio"] == "Welcome to my profile!"

        db.expire_all()
        assert crud.user.get_by_email(db, email=email) is not None

    def test_provisioning_with_taken_username_gets_suffix(
        self, client: TestClient
    ) -> None:
        taken, _ = create_user_with_headers(client)
        email = random_email()
        token, _ = issue_token(ClaimBundle(id=None, email=email, name="Ghost"))
        r = client.patch(
            f"{settings.API_V1_STR}/users/{email}",
            headers={"Authorization": f"Bearer {token}"},
            json={"username": taken["username"]},
        )
        assert r.status_code == 200
        assert r.json()["username"].startswith(f"{taken['username']}_")


class TestUsernameAndSearch:
    def test_check_username(self, client: TestClient) -> None:
        user, headers = create_user_with_headers(client)
        r = client.get(
            f"{settings.API_V1_STR}/users/check-username",
            headers=headers,
            params={"username": user["username"].upper()},
        )
        assert r.status_code == 200
        assert r.json()["available"] is False

        free = random_lower_string(14)
        r = client.get(
            f"{settings.API_V1_STR}/users/check-username",
            headers=headers,
            params={"username": free},
        )
        assert r.json() == {"available": True, "username": free}

    def test_check_username_requires_value(self, client: TestClient) -> None:
        _, headers = create_user_with_headers(client)
        r = client.get(f"{settings.API_V1_STR}/users/check-username", headers=headers)
        assert r.status_code == 400

    def test_search(self, client: TestClient) -> None:
        marker = random_lower_string(10)
        register_user(client, name=f"Grace {marker}")
        me, headers = create_user_with_headers(client)

        r = client.get(
            f"{settings.API_V1_STR}/users/search",
            headers=headers,
            params={"q": marker.upper()},
        )
        assert r.status_code == 200
        results = r.json()
        assert len(results) == 1
        assert results[0]["name"] == f"Grace {marker}"

    def test_search_excludes_caller(self, client: TestClient) -> None:
        me, headers = create_user_with_headers(client)
        r = client.get(
            f"{settings.API_V1_STR}/users/search",
            headers=headers,
            params={"q": me["email"]},
        )
        assert r.json() == []

    def test_search_caps_results(self, client: TestClient) -> None:
        marker = random_lower_string(10)
        for i in range(12):
            register_user(client, name=f"{marker} {i}")
        _, headers = create_user_with_headers(client)
        r = client.get(
            f"{settings.API_V1_STR}/users/search",
            headers=headers,
            params={"q": marker},
        )
        assert len(r.json()) == 10

    def test_empty_search(self, client: TestClient) -> None:
        _, headers = create_user_with_headers(client)
        r = client.get(f"{settings.API_V1_STR}/users/search", headers=headers)
        assert r.json() == []


class TestFollow:
    def test_toggle_twice(self, client: TestClient) -> None:
        target, _ = create_user_with_headers(client)
        _, headers = create_user_with_headers(client)
        url = f"{settings.API_V1_STR}/users/{target['id']}/follow"

        r = client.post(url, headers=headers)
        assert r.status_code == 200
        assert r.json() == {"following": True}
        assert client.get(url, headers=headers).json() == {"following": True}
        profile = client.get(f"{settings.API_V1_STR}/users/{target['id']}").json()
        assert profile["counts"]["followers"] == 1

        r = client.post(url, headers=headers)
        assert r.json() == {"following": False}
        assert client.get(url, headers=headers).json() == {"following": False}
        profile = client.get(f"{settings.API_V1_STR}/users/{target['id']}").json()
        assert profile["counts"]["followers"] == 0

    def test_following_count(self, client: TestClient) -> None:
        a, _ = create_user_with_headers(client)
        b, _ = create_user_with_headers(client)
        me, headers = create_user_with_headers(client)
        client.post(f"{settings.API_V1_STR}/users/{a['id']}/follow", headers=headers)
        client.post(f"{settings.API_V1_STR}/users/{b['id']}/follow", headers=headers)
        profile = client.get(f"{settings.API_V1_STR}/users/{me['id']}").json()
        assert profile["counts"]["following"] == 2

    def test_self_follow(self, client: TestClient) -> None:
        me, headers = create_user_with_headers(client)
        r = client.post(
            f"{settings.API_V1_STR}/users/{me['id']}/follow", headers=headers
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Cannot follow yourself"

    def test_follow_unknown_user(self, client: TestClient) -> None:
        _, headers = create_user_with_headers(client)
        r = client.post(
            f"{settings.API_V1_STR}/users/nobody/follow", headers=headers
        )
        assert r.status_code == 404

    def test_anonymous_follow_state(self, fresh_client: TestClient, client: TestClient) -> None:
        target, _ = create_user_with_headers(client)
        r = fresh_client.get(f"{settings.API_V1_STR}/users/{target['id']}/follow")
        assert r.status_code == 200
        assert r.json() == {"following": False}

    def test_anonymous_toggle(self, fresh_client: TestClient, client: TestClient) -> None:
        target, _ = create_user_with_headers(client)
        r = fresh_client.post(f"{settings.API_V1_STR}/users/{target['id']}/follow")
        assert r.status_code == 401


class TestRole:
    def test_admin_grants_role(
        self, client: TestClient, superuser_token_headers: dict
    ) -> None:
        user, headers = create_user_with_headers(client)
        r = client.patch(
            f"{settings.API_V1_STR}/users/{user['id']}/role",
            headers=superuser_token_headers,
            json={"role": "ADMIN"},
        )
        assert r.status_code == 200
        assert r.json()["role"] == "ADMIN"

        # The old token sees the new role on its next request
        r = client.get(f"{settings.API_V1_STR}/auth/session", headers=headers)
        assert r.json()["user"]["role"] == "ADMIN"

    def test_non_admin_cannot_grant(self, client: TestClient) -> None:
        user, headers = create_user_with_headers(client)
        r = client.patch(
            f"{settings.API_V1_STR}/users/{user['id']}/role",
            headers=headers,
            json={"role": "ADMIN"},
        )
        assert r.status_code == 403

    def test_invalid_role(self, client: TestClient, superuser_token_headers: dict) -> None:
        user, _ = create_user_with_headers(client)
        r = client.patch(
            f"{settings.API_V1_STR}/users/{user['id']}/role",
            headers=superuser_token_headers,
            json={"role": "OWNER"},
        )
        assert r.status_code == 422
