from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from app import crud, models, schemas
from app.api import deps
from app.api.v1.endpoints.posts import serialize_post
from app.core.errors import SelfFollow, UsernameTaken
from app.core.session import ClaimBundle
from app.models.user import UserRole

router = APIRouter()


def _profile(db: Session, user: models.User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "username": user.username,
        "email": user.email,
        "image": user.image,
        "bio": user.bio,
        "created_at": user.created_at,
        "counts": crud.user.get_counts(db, user_id=str(user.id)),
    }


@router.get("/onboarding", response_model=schemas.OnboardingStatusResponse)
def read_onboarding_status(
    current_user: models.User = Depends(deps.get_current_user_or_provision),
) -> Any:
    """
    Onboarding flag and profile fields of the caller. The web client calls
    this to decide whether to send the user to the onboarding form.
    """
    return {"user": current_user}


@router.post("/onboarding", response_model=schemas.User)
def complete_onboarding(
    *,
    db: Session = Depends(deps.get_db),
    onboarding_in: schemas.OnboardingIn,
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Store the onboarding answers and mark onboarding as completed.
    Submitting again simply rewrites the fields. The caller must already have
    a row; reading the status is what creates one for a bare session.
    """
    try:
        user = crud.user.complete_onboarding(
            db, db_obj=current_user, obj_in=onboarding_in
        )
    except UsernameTaken as e:
        raise HTTPException(status_code=400, detail=e.detail)
    return user


@router.get("/check-username", response_model=schemas.UsernameAvailability)
def check_username(
    *,
    db: Session = Depends(deps.get_db),
    username: Optional[str] = None,
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Case-insensitive username availability.
    """
    if not username:
        raise HTTPException(status_code=400, detail="Username is required")
    return {
        "available": crud.user.is_username_available(db, username=username),
        "username": username,
    }


@router.get("/search", response_model=List[schemas.UserSearchResult])
def search_users(
    *,
    db: Session = Depends(deps.get_db),
    q: Optional[str] = None,
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Find other users by name or email, ten at most.
    """
    if not q:
        return []
    return crud.user.search(db, query=q, exclude_id=str(current_user.id))


@router.get("/{user_id}", response_model=schemas.UserProfile)
def read_user_profile(
    user_id: str,
    db: Session = Depends(deps.get_db),
) -> Any:
    """
    Public profile with post, follower and following counts.
    """
    user = crud.user.get(db, id=user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return _profile(db, user)


@router.patch("/{user_id}", response_model=schemas.UserProfile)
def update_user_profile(
    *,
    db: Session = Depends(deps.get_db),
    user_id: str,
    user_in: schemas.UserUpdate,
    claims: ClaimBundle = Depends(deps.get_current_claims),
) -> Any:
    """
    Edit your own profile. ``user_id`` may be the user id or the session
    email. A session without a backing row gets one created from the
    submitted fields.
    """
    if user_id != claims.id and user_id != claims.email:
        raise HTTPException(
            status_code=401, detail="Unauthorized - can only edit your own profile"
        )

    user = crud.user.get_by_email(db, email=claims.email) if claims.email else None
    if user is None:
        if not claims.email:
            raise HTTPException(
                status_code=404, detail="User not found and cannot be created"
            )
        user = crud.user.provision_from_session(
            db,
            claims=claims,
            username=user_in.username,
            name=user_in.name,
            bio=user_in.bio if user_in.bio is not None else "Welcome to my profile!",
        )
        return _profile(db, user)

    try:
        user = crud.user.update(db, db_obj=user, obj_in=user_in)
    except UsernameTaken as e:
        raise HTTPException(status_code=400, detail=e.detail)
    return _profile(db, user)


@router.patch("/{user_id}/role", response_model=schemas.User)
def update_user_role(
    *,
    db: Session = Depends(deps.get_db),
    user_id: str,
    role: UserRole = Body(..., embed=True),
    current_user: models.User = Depends(deps.get_current_active_superuser),
) -> Any:
    """
    Grant or revoke admin. Existing sessions pick the new role up on their
    next request.
    """
    user = crud.user.get(db, id=user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return crud.user.update(db, db_obj=user, obj_in={"role": role.value})


@router.get("/{user_id}/posts", response_model=List[schemas.Post])
def read_user_posts(
    user_id: str,
    db: Session = Depends(deps.get_db),
) -> Any:
    """
    A user's published posts, newest first.
    """
    posts = crud.post.get_multi_by_author(db, author_id=user_id)
    return [serialize_post(db, p) for p in posts]


@router.get("/{user_id}/follow", response_model=schemas.FollowState)
def read_follow_state(
    user_id: str,
    db: Session = Depends(deps.get_db),
    claims: Optional[ClaimBundle] = Depends(deps.get_optional_claims),
) -> Any:
    """
    Whether the caller follows ``user_id``. Anonymous callers never do.
    """
    if claims is None or not claims.id:
        return {"following": False}
    return {
        "following": crud.follow.is_following(
            db, follower_id=claims.id, following_id=user_id
        )
    }


@router.post("/{user_id}/follow", response_model=schemas.FollowState)
def toggle_follow(
    user_id: str,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Follow ``user_id`` if not following yet, otherwise unfollow.
    """
    if not crud.user.get(db, id=user_id):
        raise HTTPException(status_code=404, detail="User not found")
    try:
        following = crud.follow.toggle(
            db, follower_id=str(current_user.id), following_id=user_id
        )
    except SelfFollow as e:
        raise HTTPException(status_code=400, detail=e.detail)
    return {"following": following}
