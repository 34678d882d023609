from pydantic import BaseModel, EmailStr, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime


def _reject_markup(v: Optional[str], label: str) -> Optional[str]:
    # Remove potential XSS characters
    if v and ("<" in v or ">" in v or '"' in v):
        raise ValueError(f"{label} contains invalid characters")
    return v


class UserCreate(BaseModel):
    """Self-service registration payload."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def sanitize_name(cls, v: str) -> str:
        return _reject_markup(v, "Name").strip()  # type: ignore[union-attr]


class UserUpdate(BaseModel):
    """Profile edit. Only the fields that are sent are written."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    bio: Optional[str] = Field(None, max_length=500)
    image: Optional[str] = Field(None, max_length=500)

    @field_validator("name", "username")
    @classmethod
    def sanitize(cls, v: Optional[str]) -> Optional[str]:
        return _reject_markup(v, "Value")


class OnboardingIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=3, max_length=50)
    country: str = Field(..., min_length=1, max_length=100)
    current_project: str = Field(..., min_length=1, max_length=1000)
    hear_about_us: str = Field(..., min_length=1, max_length=100)

    @field_validator("username")
    @classmethod
    def sanitize_username(cls, v: str) -> str:
        return _reject_markup(v, "Username")  # type: ignore[return-value]


class OnboardingStatus(BaseModel):
    id: str
    onboarding_completed: bool
    name: Optional[str] = None
    username: Optional[str] = None
    country: Optional[str] = None
    current_project: Optional[str] = None
    hear_about_us: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OnboardingStatusResponse(BaseModel):
    user: OnboardingStatus


class UserSummary(BaseModel):
    """Public card used in feeds, comments and chat membership lists."""

    id: str
    name: Optional[str] = None
    username: Optional[str] = None
    image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class User(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    username: Optional[str] = None
    image: Optional[str] = None
    bio: Optional[str] = None
    role: str = "USER"
    onboarding_completed: bool = False
    country: Optional[str] = None
    current_project: Optional[str] = None
    hear_about_us: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserCounts(BaseModel):
    posts: int = 0
    followers: int = 0
    following: int = 0


class UserProfile(BaseModel):
    id: str
    name: Optional[str] = None
    username: Optional[str] = None
    email: str
    image: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    counts: UserCounts

    model_config = ConfigDict(from_attributes=True)


class UserSearchResult(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UsernameAvailability(BaseModel):
    available: bool
    username: str


class FollowState(BaseModel):
    following: bool
