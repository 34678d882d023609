import logging
import re
import time
from typing import Any, Dict, List, Optional, Union

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    EmailTaken,
    InvalidCredentials,
    OAuthAccountOnly,
    OAuthProfileIncomplete,
    UsernameTaken,
)
from app.core.oauth import OAuthProfile
from app.core.security import get_password_hash, verify_password
from app.core.session import ClaimBundle
from app.crud.base import CRUDBase
from app.models.follow import Follow
from app.models.post import Post
from app.models.user import AuthProvider, User
from app.schemas.user import OnboardingIn, UserCounts, UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """The form EmailStr stores: domain lowercased, local part kept as typed."""
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError:
        # Cannot match a stored address; look it up as given
        return email


def username_from_email(email: str) -> str:
    """Lowercased local part with everything but [a-z0-9] stripped."""
    local = email.split("@")[0].lower()
    return re.sub(r"[^a-z0-9]", "", local) or "user"


class CRUDUser(CRUDBase[User, UserCreate, UserUpdate]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        return (
            db.query(User).filter(User.email == normalize_email(email)).first()
        )

    def get_by_username(self, db: Session, *, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    def get_by_username_insensitive(
        self, db: Session, *, username: str, exclude_id: Optional[str] = None
    ) -> Optional[User]:
        query = db.query(User).filter(func.lower(User.username) == username.lower())
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first()

    def is_username_available(self, db: Session, *, username: str) -> bool:
        return self.get_by_username_insensitive(db, username=username) is None

    def unique_username(self, db: Session, *, base: str) -> str:
        """First free name of ``base``, ``base1``, ``base2``, ..."""
        username = base
        counter = 1
        while not self.is_username_available(db, username=username):
            username = f"{base}{counter}"
            counter += 1
        return username

    def create(self, db: Session, *, obj_in: UserCreate) -> User:
        """Register a credentials user. Raises EmailTaken for a known email."""
        if self.get_by_email(db, email=obj_in.email):
            raise EmailTaken()
        db_obj = User(
            email=obj_in.email,
            name=obj_in.name,
            username=self.unique_username(db, base=username_from_email(obj_in.email)),
            hashed_password=get_password_hash(obj_in.password),
            auth_provider=AuthProvider.credentials.value,
            onboarding_completed=False,
        )
        db.add(db_obj)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            db.rollback()
            raise EmailTaken()
        db.refresh(db_obj)
        logger.info("Registered user %s", db_obj.email)
        return db_obj

    def update(
        self, db: Session, *, db_obj: User, obj_in: Union[UserUpdate, Dict[str, Any]]
    ) -> User:
        if isinstance(obj_in, dict):
            update_data = dict(obj_in)
        else:
            update_data = obj_in.model_dump(exclude_unset=True)
        if "password" in update_data:
            update_data["hashed_password"] = get_password_hash(
                update_data.pop("password")
            )
        username = update_data.get("username")
        if username and self.get_by_username_insensitive(
            db, username=username, exclude_id=str(db_obj.id)
        ):
            raise UsernameTaken()
        return super().update(db, db_obj=db_obj, obj_in=update_data)

    def authenticate(self, db: Session, *, email: str, password: str) -> User:
        """
        Credentials sign-in.

        Unknown emails and wrong passwords raise the same InvalidCredentials.
        Accounts without a password raise OAuthAccountOnly so the caller can
        point the user at the provider they signed up with.
        """
        user = self.get_by_email(db, email=email)
        if not user:
            logger.info("Credentials sign-in for unknown email")
            raise InvalidCredentials()
        if not user.hashed_password:
            logger.info("Credentials sign-in for OAuth-only account %s", email)
            raise OAuthAccountOnly(user.auth_provider)
        if not verify_password(password, str(user.hashed_password)):
            logger.info("Invalid password for %s", email)
            raise InvalidCredentials()
        return user

    def provision_oauth_user(self, db: Session, *, profile: OAuthProfile) -> User:
        """
        Resolve an OAuth sign-in to a user row, creating it on first sight.

        Email is the identity key across providers. For a known user only the
        image is synced; nothing else is touched.
        """
        if not profile.email:
            raise OAuthProfileIncomplete(profile.provider)
        try:
            user = self.get_by_email(db, email=profile.email)
            if user is None:
                user = User(
                    email=normalize_email(profile.email),
                    name=profile.name or "",
                    image=profile.image,
                    username=self.unique_username(
                        db, base=username_from_email(profile.email)
                    ),
                    auth_provider=profile.provider,
                    onboarding_completed=False,
                )
                db.add(user)
                db.commit()
                db.refresh(user)
                logger.info(
                    "New user created: %s via %s", user.email, profile.provider
                )
            else:
                logger.info(
                    "Existing user signed in: %s via %s", user.email, profile.provider
                )
                if profile.image and user.image != profile.image:
                    user.image = profile.image
                    db.add(user)
                    db.commit()
                    db.refresh(user)
        except Exception:
            db.rollback()
            logger.exception("OAuth sign in error for %s", profile.email)
            raise
        return user

    def provision_from_session(
        self,
        db: Session,
        *,
        claims: ClaimBundle,
        username: Optional[str] = None,
        name: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> User:
        """
        Create the row backing a session that has none yet.

        A requested ``username`` that is taken gets a millisecond timestamp
        suffix; otherwise the name is derived from the email.
        """
        if username:
            if not self.is_username_available(db, username=username):
                username = f"{username}_{int(time.time() * 1000)}"
        else:
            username = self.unique_username(
                db, base=username_from_email(str(claims.email))
            )
        user = User(
            email=normalize_email(str(claims.email)),
            name=name or claims.name or "",
            image=claims.image,
            username=username,
            bio=bio,
            onboarding_completed=False,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Provisioned user %s from an existing session", user.email)
        return user

    def complete_onboarding(
        self, db: Session, *, db_obj: User, obj_in: OnboardingIn
    ) -> User:
        # Any match counts, the caller's own current username included
        if self.get_by_username_insensitive(db, username=obj_in.username):
            raise UsernameTaken()
        update_data = obj_in.model_dump()
        update_data["onboarding_completed"] = True
        return super().update(db, db_obj=db_obj, obj_in=update_data)

    def search(
        self, db: Session, *, query: str, exclude_id: str, limit: int = 10
    ) -> List[User]:
        pattern = f"%{query.lower()}%"
        return (
            db.query(User)
            .filter(
                User.id != exclude_id,
                or_(
                    func.lower(User.name).like(pattern),
                    func.lower(User.email).like(pattern),
                ),
            )
            .limit(limit)
            .all()
        )

    def get_counts(self, db: Session, *, user_id: str) -> UserCounts:
        return UserCounts(
            posts=db.query(Post).filter(Post.author_id == user_id).count(),
            followers=db.query(Follow).filter(Follow.following_id == user_id).count(),
            following=db.query(Follow).filter(Follow.follower_id == user_id).count(),
        )


user = CRUDUser(User)
