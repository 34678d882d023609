"""
OAuth client registry for GitHub and Google, plus helpers that normalise each
provider's profile payload into the fields the user provisioning needs.
"""
from typing import Any, Dict, List, Optional

from authlib.integrations.starlette_client import OAuth
from pydantic import BaseModel

from app.core.config import settings

oauth = OAuth()

oauth.register(
    name="google",
    client_id=settings.GOOGLE_CLIENT_ID,
    client_secret=settings.GOOGLE_CLIENT_SECRET,
    server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
    client_kwargs={"scope": "openid email profile"},
    authorize_params={"prompt": "consent", "access_type": "offline"},
)

oauth.register(
    name="github",
    client_id=settings.GITHUB_CLIENT_ID,
    client_secret=settings.GITHUB_CLIENT_SECRET,
    access_token_url="https://github.com/login/oauth/access_token",
    authorize_url="https://github.com/login/oauth/authorize",
    api_base_url="https://api.github.com/",
    client_kwargs={"scope": "read:user user:email"},
)

PROVIDERS = ("github", "google")


class OAuthProfile(BaseModel):
    """What a provider callback tells us about the person signing in."""

    provider: str
    provider_account_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None


def redirect_uri_for(provider: str) -> str:
    if provider == "google":
        return settings.GOOGLE_REDIRECT_URI
    return settings.GITHUB_REDIRECT_URI


def is_configured(provider: str) -> bool:
    if provider == "google":
        return bool(settings.GOOGLE_CLIENT_ID and settings.GOOGLE_CLIENT_SECRET)
    if provider == "github":
        return bool(settings.GITHUB_CLIENT_ID and settings.GITHUB_CLIENT_SECRET)
    return False


def extract_profile_google(user_info: Dict[str, Any]) -> OAuthProfile:
    return OAuthProfile(
        provider="google",
        provider_account_id=str(user_info.get("sub") or ""),
        email=user_info.get("email"),
        name=user_info.get("name"),
        image=user_info.get("picture"),
    )


def extract_profile_github(
    user_info: Dict[str, Any], emails: Optional[List[Dict[str, Any]]] = None
) -> OAuthProfile:
    # The public profile email is often null; fall back to the primary
    # verified address from /user/emails.
    email = user_info.get("email")
    if not email and emails:
        for entry in emails:
            if entry.get("primary") and entry.get("verified"):
                email = entry.get("email")
                break
    return OAuthProfile(
        provider="github",
        provider_account_id=str(user_info.get("id") or ""),
        email=email,
        name=user_info.get("name") or user_info.get("login"),
        image=user_info.get("avatar_url"),
    )


async def fetch_profile(provider: str, request: Any) -> OAuthProfile:
    """Finish the authorization-code exchange and return the caller's profile."""
    client = oauth.create_client(provider)
    token = await client.authorize_access_token(request)
    if provider == "google":
        user_info = token.get("userinfo")
        if not user_info:
            user_info = await client.userinfo(token=token)
        return extract_profile_google(dict(user_info))

    resp = await client.get("user", token=token)
    resp.raise_for_status()
    user_info = resp.json()
    emails = None
    if not user_info.get("email"):
        emails_resp = await client.get("user/emails", token=token)
        emails_resp.raise_for_status()
        emails = emails_resp.json()
    return extract_profile_github(user_info, emails)
