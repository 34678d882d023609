import random
import string
from typing import Dict, Optional, Tuple

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app import crud, models
from app.core.config import settings
from app.core.oauth import OAuthProfile
from app.core.session import ClaimBundle, issue_token

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "adminpassword"


def random_lower_string(k: int = 32) -> str:
    return "".join(random.choices(string.ascii_lowercase, k=k))


def random_email() -> str:
    return f"{random_lower_string()}@{random_lower_string(12)}.com"


def register_user(
    client: TestClient,
    email: Optional[str] = None,
    password: str = "password123",
    name: str = "Test Founder",
) -> dict:
    """Register through the API and return the created user."""
    r = client.post(
        f"{settings.API_V1_STR}/auth/register",
        json={"name": name, "email": email or random_email(), "password": password},
    )
    if r.status_code != 201:
        raise ValueError(f"Registration failed: {r.status_code} - {r.text}")
    return r.json()


def get_user_token_headers(
    client: TestClient, email: str, password: str
) -> Dict[str, str]:
    """Sign in with credentials and return auth headers."""
    login_data = {
        "username": email,
        "password": password,
    }
    r = client.post(f"{settings.API_V1_STR}/auth/login", data=login_data)
    if r.status_code != 200:
        raise ValueError(f"Login failed: {r.status_code} - {r.text}")
    tokens = r.json()
    if "access_token" not in tokens:
        raise ValueError(f"No access_token in response: {tokens}")
    a_token = tokens["access_token"]
    headers = {"Authorization": f"Bearer {a_token}"}
    return headers


def create_user_with_headers(client: TestClient) -> Tuple[dict, Dict[str, str]]:
    """Register a fresh user and sign in as them."""
    email = random_email()
    user = register_user(client, email=email, password="password123")
    return user, get_user_token_headers(client, email, "password123")


def create_oauth_user(
    db: Session,
    email: Optional[str] = None,
    provider: str = "google",
    image: Optional[str] = "https://example.com/avatar.png",
) -> models.User:
    profile = OAuthProfile(
        provider=provider,
        provider_account_id=random_lower_string(10),
        email=email or random_email(),
        name="OAuth Founder",
        image=image,
    )
    return crud.user.provision_oauth_user(db, profile=profile)


def token_headers_for(user: models.User) -> Dict[str, str]:
    """Headers carrying a token issued straight from ``user``."""
    token, _ = issue_token(ClaimBundle.from_user(user))
    return {"Authorization": f"Bearer {token}"}
