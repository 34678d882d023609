from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app import crud
from app.core.config import settings
from app.core.session import ClaimBundle, issue_token
from tests.utils.utils import (
    create_user_with_headers,
    random_email,
    random_lower_string,
)


def _answers(username: str, **overrides) -> dict:
    data = {
        "name": "Ada Lovelace",
        "username": username,
        "country": "UK",
        "current_project": "Analytical engines",
        "hear_about_us": "twitter",
    }
    data.update(overrides)
    return data


def test_status_before_onboarding(client: TestClient) -> None:
    user, headers = create_user_with_headers(client)
    r = client.get(f"{settings.API_V1_STR}/users/onboarding", headers=headers)
    assert r.status_code == 200
    status = r.json()["user"]
    assert status["id"] == user["id"]
    assert status["onboarding_completed"] is False
    assert status["country"] is None


def test_complete_onboarding(client: TestClient) -> None:
    _, headers = create_user_with_headers(client)
    username = random_lower_string(12)
    r = client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=headers,
        json=_answers(username),
    )
    assert r.status_code == 200
    data = r.json()
    assert data["username"] == username
    assert data["onboarding_completed"] is True
    assert data["country"] == "UK"

    r = client.get(f"{settings.API_V1_STR}/users/onboarding", headers=headers)
    status = r.json()["user"]
    assert status["onboarding_completed"] is True
    assert status["current_project"] == "Analytical engines"
    assert status["hear_about_us"] == "twitter"


def test_onboarding_username_taken_case_insensitive(client: TestClient) -> None:
    _, first = create_user_with_headers(client)
    second_user, second = create_user_with_headers(client)
    username = random_lower_string(12)
    client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=first,
        json=_answers(username),
    )

    r = client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=second,
        json=_answers(username.upper()),
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Username is already taken"

    r = client.get(f"{settings.API_V1_STR}/users/onboarding", headers=second)
    status = r.json()["user"]
    assert status["onboarding_completed"] is False
    assert status["name"] == second_user["name"]
    assert status["username"] == second_user["username"]
    assert status["country"] is None
    assert status["current_project"] is None
    assert status["hear_about_us"] is None


def test_rejected_resubmission_keeps_every_field(client: TestClient) -> None:
    _, first = create_user_with_headers(client)
    _, second = create_user_with_headers(client)
    taken = random_lower_string(12)
    client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=first,
        json=_answers(taken),
    )
    own = random_lower_string(12)
    client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=second,
        json=_answers(own, name="Grace Hopper", country="US"),
    )
    before = client.get(
        f"{settings.API_V1_STR}/users/onboarding", headers=second
    ).json()["user"]

    r = client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=second,
        json={
            "name": "Someone Else",
            "username": taken.upper(),
            "country": "France",
            "current_project": "Something new",
            "hear_about_us": "friend",
        },
    )
    assert r.status_code == 400

    after = client.get(
        f"{settings.API_V1_STR}/users/onboarding", headers=second
    ).json()["user"]
    assert after == before
    assert after["name"] == "Grace Hopper"
    assert after["username"] == own
    assert after["country"] == "US"
    assert after["current_project"] == "Analytical engines"
    assert after["hear_about_us"] == "twitter"
    assert after["onboarding_completed"] is True


def test_onboarding_resubmission_rewrites_fields(client: TestClient) -> None:
    _, headers = create_user_with_headers(client)
    client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=headers,
        json=_answers(random_lower_string(12)),
    )
    new_username = random_lower_string(12)
    r = client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=headers,
        json=_answers(new_username, country="France"),
    )
    assert r.status_code == 200
    assert r.json()["username"] == new_username
    assert r.json()["country"] == "France"


def test_onboarding_resubmitting_own_username_is_rejected(
    client: TestClient,
) -> None:
    """The availability check counts the caller's own current username."""
    _, headers = create_user_with_headers(client)
    username = random_lower_string(12)
    client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=headers,
        json=_answers(username),
    )
    r = client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=headers,
        json=_answers(username),
    )
    assert r.status_code == 400


def test_onboarding_validation(client: TestClient) -> None:
    _, headers = create_user_with_headers(client)
    r = client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=headers,
        json=_answers("ab"),
    )
    assert r.status_code == 422

    r = client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=headers,
        json={"username": random_lower_string(12)},
    )
    assert r.status_code == 422


def test_onboarding_requires_session(fresh_client: TestClient) -> None:
    r = fresh_client.get(f"{settings.API_V1_STR}/users/onboarding")
    assert r.status_code == 401


def test_onboarding_provisions_missing_row(client: TestClient, db: Session) -> None:
    """A valid session whose email has no row gets one on first use."""
    email = random_email()
    token, _ = issue_token(ClaimBundle(id=None, email=email, name="Late Comer"))
    headers = {"Authorization": f"Bearer {token}"}

    r = client.get(f"{settings.API_V1_STR}/users/onboarding", headers=headers)
    assert r.status_code == 200
    assert r.json()["user"]["onboarding_completed"] is False

    db.expire_all()
    user = crud.user.get_by_email(db, email=email)
    assert user is not None
    assert user.name == "Late Comer"
    assert r.json()["user"]["id"] == user.id


def test_submission_without_row_creates_nothing(client: TestClient, db: Session) -> None:
    """Posting answers never creates the caller's row, accepted or not."""
    _, first = create_user_with_headers(client)
    taken = random_lower_string(12)
    client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers=first,
        json=_answers(taken),
    )

    email = random_email()
    token, _ = issue_token(ClaimBundle(id=None, email=email, name="Late Comer"))
    r = client.post(
        f"{settings.API_V1_STR}/users/onboarding",
        headers={"Authorization": f"Bearer {token}"},
        json=_answers(taken),
    )
    assert r.status_code == 401

    db.expire_all()
    assert crud.user.get_by_email(db, email=email) is None
