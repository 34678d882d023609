from typing import Generator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app import crud, models
from app.core import security
from app.core.config import settings
from app.core.session import ClaimBundle
from app.db.session import SessionLocal

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False
)


def get_db() -> Generator:
    try:
        db = SessionLocal()
        yield db
    finally:
        db.close()


def get_token(
    request: Request, bearer: Optional[str] = Depends(reusable_oauth2)
) -> Optional[str]:
    """Bearer header first, then the session cookie set by the OAuth callback."""
    return bearer or request.cookies.get(settings.SESSION_COOKIE_NAME)


def _claims_from_token(db: Session, token: str) -> Optional[ClaimBundle]:
    payload = security.decode_access_token(token)
    if payload is None:
        return None
    claims = ClaimBundle.from_token(payload)
    if claims.email:
        claims = claims.refreshed(crud.user.get_by_email(db, email=claims.email))
    return claims


def get_current_claims(
    db: Session = Depends(get_db), token: Optional[str] = Depends(get_token)
) -> ClaimBundle:
    """
    Decode the session token and refresh id/username/role from the user row,
    so renamed users or role changes show up without signing in again.
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    claims = _claims_from_token(db, token)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims


def get_optional_claims(
    db: Session = Depends(get_db), token: Optional[str] = Depends(get_token)
) -> Optional[ClaimBundle]:
    if not token:
        return None
    return _claims_from_token(db, token)


def get_current_user(
    db: Session = Depends(get_db),
    claims: ClaimBundle = Depends(get_current_claims),
) -> models.User:
    user = crud.user.get(db, id=claims.id) if claims.id else None
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def get_current_user_or_provision(
    db: Session = Depends(get_db),
    claims: ClaimBundle = Depends(get_current_claims),
) -> models.User:
    """Like get_current_user, but creates the row for a session that has none."""
    if not claims.email:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = crud.user.get_by_email(db, email=claims.email)
    if user is None:
        user = crud.user.provision_from_session(db, claims=claims)
    return user


def get_current_active_superuser(
    current_user: models.User = Depends(get_current_user),
) -> models.User:
    if current_user.role != models.UserRole.ADMIN.value:
        raise HTTPException(
            status_code=403, detail="The user doesn't have enough privileges"
        )
    return current_user
