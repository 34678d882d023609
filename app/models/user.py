from sqlalchemy import Boolean, Column, DateTime, String, func
from app.db.base_class import Base
import uuid
import enum


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class AuthProvider(str, enum.Enum):
    """Where the account was first created."""

    credentials = "credentials"
    github = "github"
    google = "google"


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=True)  # Null for OAuth-only users
    name = Column(String, nullable=True)
    username = Column(String, unique=True, index=True, nullable=True)
    image = Column(String, nullable=True)
    bio = Column(String, nullable=True)
    role = Column(String, default=UserRole.USER.value, nullable=False)
    auth_provider = Column(String, nullable=True)

    # Onboarding
    onboarding_completed: bool = Column(Boolean(), default=False, nullable=False)  # type: ignore
    country = Column(String, nullable=True)
    current_project = Column(String, nullable=True)
    hear_about_us = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
