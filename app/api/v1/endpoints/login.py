import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app import crud, schemas
from app.api import deps
from app.core import oauth
from app.core.config import settings
from app.core.errors import EmailTaken, InvalidCredentials, OAuthAccountOnly
from app.core.session import ClaimBundle, issue_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=schemas.Token)
def login_access_token(
    db: Session = Depends(deps.get_db), form_data: OAuth2PasswordRequestForm = Depends()
) -> Any:
    """
    OAuth2 compatible credentials sign-in. The form's ``username`` field
    carries the email address.
    """
    try:
        user = crud.user.authenticate(
            db, email=form_data.username, password=form_data.password
        )
    except OAuthAccountOnly as e:
        raise HTTPException(status_code=400, detail=e.detail)
    except InvalidCredentials as e:
        raise HTTPException(
            status_code=401,
            detail=e.detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
    logger.info("User signed in: %s via credentials", user.email)
    access_token, _ = issue_token(ClaimBundle.from_user(user))
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/register", response_model=schemas.User, status_code=201)
def register(
    *,
    db: Session = Depends(deps.get_db),
    user_in: schemas.UserCreate,
) -> Any:
    """
    Register a new credentials user. The username is derived from the email.
    """
    try:
        user = crud.user.create(db, obj_in=user_in)
    except EmailTaken as e:
        raise HTTPException(status_code=409, detail=e.detail)
    return user


@router.get("/session", response_model=schemas.Session)
def read_session(
    claims: ClaimBundle = Depends(deps.get_current_claims),
) -> Any:
    """
    Current session, projected from freshly refreshed claims, with a renewed
    token carrying the same claims.
    """
    access_token, expires = issue_token(claims)
    session = claims.to_session(expires)
    session["access_token"] = access_token
    return session


@router.post("/logout", status_code=204, response_class=Response)
def logout() -> Response:
    """
    Drop the session cookie. Bearer tokens are stateless and simply expire.
    """
    response = Response(status_code=204)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get("/providers")
def read_providers() -> dict:
    """Which sign-in providers this deployment can offer."""
    providers = {"credentials": True}
    for name in oauth.PROVIDERS:
        providers[name] = oauth.is_configured(name)
    return providers
