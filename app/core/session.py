"""
Session claim bundle.

The signed token carries a small, immutable set of identity fields. The user
row stays the system of record: every authenticated request re-derives
``id``, ``username`` and ``role`` from it by email, so changes to those fields
reach existing sessions without a fresh sign-in.
"""
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from app.core import security
from app.core.config import settings
from app.models.user import User


@dataclass(frozen=True)
class ClaimBundle:
    id: Optional[str]
    email: Optional[str]
    name: Optional[str] = None
    image: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "ClaimBundle":
        """Claims for a first issuance, taken straight from the resolved user."""
        return cls(
            id=str(user.id),
            email=user.email,
            name=user.name,
            image=user.image,
            username=user.username,
            role=user.role,
        )

    @classmethod
    def from_token(cls, payload: Dict[str, Any]) -> "ClaimBundle":
        return cls(
            id=payload.get("id") or payload.get("sub"),
            email=payload.get("email"),
            name=payload.get("name"),
            image=payload.get("picture"),
            username=payload.get("username"),
            role=payload.get("role"),
        )

    def refreshed(self, user: Optional[User]) -> "ClaimBundle":
        """Return a bundle whose id/username/role reflect ``user``.

        A missing row leaves the claims as they are.
        """
        if user is None:
            return self
        return replace(self, id=str(user.id), username=user.username, role=user.role)

    def to_token_claims(self) -> Dict[str, Any]:
        claims: Dict[str, Any] = {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "picture": self.image,
            "username": self.username,
            "role": self.role,
        }
        if self.id:
            claims["sub"] = self.id
        return claims

    def to_session(self, expires: datetime) -> Dict[str, Any]:
        """Project the claims onto the session shape handed to clients."""
        return {
            "user": {
                "id": self.id,
                "name": self.name,
                "email": self.email,
                "image": self.image,
                "username": self.username,
                "role": self.role,
            },
            "expires": expires.astimezone(timezone.utc).isoformat(),
        }


def issue_token(claims: ClaimBundle) -> Tuple[str, datetime]:
    """Sign ``claims`` and return the token with its expiry."""
    expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expires = datetime.now(timezone.utc) + expires_delta
    token = security.create_access_token(
        claims.to_token_claims(), expires_delta=expires_delta
    )
    return token, expires
