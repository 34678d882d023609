import math
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app import crud, models, schemas
from app.api import deps
from app.core.session import ClaimBundle

router = APIRouter()


def serialize_post(
    db: Session, post: models.Post, viewer_id: Optional[str] = None
) -> dict:
    """Post with author card, counts and, for a signed-in viewer, their vote."""
    user_vote = None
    if viewer_id:
        vote = crud.post.get_user_vote(db, post_id=str(post.id), user_id=viewer_id)
        if vote is not None:
            user_vote = {"type": vote.type}
    return {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "url": post.url,
        "type": post.type,
        "tags": post.tags or [],
        "slug": post.slug,
        "published": post.published,
        "vote_count": post.vote_count,
        "comment_count": post.comment_count,
        "created_at": post.created_at,
        "author": post.author,
        "counts": {
            "comments": len(post.comments),
            "votes": crud.post.vote_total(db, post_id=str(post.id)),
        },
        "user_vote": user_vote,
    }


@router.get("/", response_model=schemas.PostPage)
def read_posts(
    db: Session = Depends(deps.get_db),
    type: Optional[str] = None,
    tags: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    claims: Optional[ClaimBundle] = Depends(deps.get_optional_claims),
) -> Any:
    """
    Published posts, newest first.

    Args:
        type: RESOURCE, STRATEGY, STORY or ALL.
        tags: Comma-separated; a post matches if it carries any of them.
        search: Case-insensitive match on title or content.
    """
    tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
    posts, total = crud.post.get_multi_published(
        db,
        type=type,
        tags=tag_list,
        search=search,
        skip=(page - 1) * limit,
        limit=limit,
    )
    viewer_id = claims.id if claims else None
    return {
        "posts": [serialize_post(db, p, viewer_id) for p in posts],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    }


@router.post("/", response_model=schemas.Post, status_code=201)
def create_post(
    *,
    db: Session = Depends(deps.get_db),
    post_in: schemas.PostCreate,
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Create new post.
    """
    post = crud.post.create_with_author(
        db, obj_in=post_in, author_id=str(current_user.id)
    )
    return serialize_post(db, post, str(current_user.id))


@router.get("/slug/{slug}", response_model=schemas.Post)
def read_post_by_slug(
    slug: str,
    db: Session = Depends(deps.get_db),
    claims: Optional[ClaimBundle] = Depends(deps.get_optional_claims),
) -> Any:
    """
    Get post by slug.
    """
    post = crud.post.get_by_slug(db, slug=slug)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return serialize_post(db, post, claims.id if claims else None)


@router.get("/{post_id}/comments", response_model=List[schemas.Comment])
def read_comments(
    post_id: str,
    db: Session = Depends(deps.get_db),
) -> Any:
    """
    Top-level comments, newest first, each with its replies oldest first.
    """
    return crud.comment.get_top_level_by_post(db, post_id=post_id)


@router.post("/{post_id}/comments", response_model=schemas.Comment, status_code=201)
def create_comment(
    *,
    db: Session = Depends(deps.get_db),
    post_id: str,
    comment_in: schemas.CommentCreate,
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Comment on a post, or reply to a comment with ``parent_id``.
    """
    post = crud.post.get(db, id=post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    if comment_in.parent_id:
        parent = crud.comment.get(db, id=comment_in.parent_id)
        if not parent or parent.post_id != post.id:
            raise HTTPException(status_code=404, detail="Parent comment not found")
    return crud.comment.create_with_post(
        db, obj_in=comment_in, post=post, author_id=str(current_user.id)
    )


@router.post("/{post_id}/vote", response_model=schemas.VoteResult)
def vote_post(
    *,
    db: Session = Depends(deps.get_db),
    post_id: str,
    vote_in: schemas.VoteIn,
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Up- or down-vote a post. Voting the same way twice withdraws the vote.
    """
    post = crud.post.get(db, id=post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    vote = crud.post.vote(
        db, post=post, user_id=str(current_user.id), vote_type=vote_in.type.value
    )
    db.refresh(post)
    return {
        "vote_count": post.vote_count,
        "user_vote": {"type": vote.type} if vote else None,
    }
