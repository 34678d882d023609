"""
Domain errors raised by the CRUD layer.

Endpoints translate these into HTTP responses; each carries the user-facing
reason string.
"""

from typing import Optional

OAUTH_PROVIDERS = ("github", "google")


class StartupNationError(Exception):
    """Base class for expected, user-facing failures."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidCredentials(StartupNationError):
    def __init__(self) -> None:
        # Same message for unknown email and wrong password
        super().__init__("Invalid email or password")


class OAuthAccountOnly(StartupNationError):
    """The account has no password and must sign in through its provider."""

    def __init__(self, provider: Optional[str]):
        if provider in OAUTH_PROVIDERS:
            label = provider_label(provider)
            detail = (
                f"This account was created with {label}. "
                f"Please use 'Sign in with {label}' instead."
            )
        else:
            detail = (
                "This account was created with an OAuth provider. "
                "Please sign in with GitHub or Google instead."
            )
        super().__init__(detail)
        self.provider = provider


class EmailTaken(StartupNationError):
    def __init__(self) -> None:
        super().__init__("User already exists")


class UsernameTaken(StartupNationError):
    def __init__(self) -> None:
        super().__init__("Username is already taken")


class SelfFollow(StartupNationError):
    def __init__(self) -> None:
        super().__init__("Cannot follow yourself")


class OAuthProfileIncomplete(StartupNationError):
    """The provider did not hand back an email address."""

    def __init__(self, provider: str):
        super().__init__(f"{provider_label(provider)} did not provide an email address")
        self.provider = provider


def provider_label(provider: str) -> str:
    return {"github": "GitHub", "google": "Google"}.get(provider, provider.title())
