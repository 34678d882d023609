import re
import time
from typing import List, Optional, Tuple

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.post import Comment, Post, Vote, VoteType
from app.schemas.post import CommentCreate, PostCreate


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return f"{slug}-{int(time.time() * 1000)}"


class CRUDPost(CRUDBase[Post, PostCreate, PostCreate]):
    def get_by_slug(self, db: Session, *, slug: str) -> Optional[Post]:
        return db.query(Post).filter(Post.slug == slug).first()

    def get_multi_published(
        self,
        db: Session,
        *,
        type: Optional[str] = None,
        tags: Optional[List[str]] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Post], int]:
        """Feed query. Returns one page plus the total number of matches."""
        query = db.query(Post).filter(Post.published.is_(True))
        if type and type != "ALL":
            query = query.filter(Post.type == type)
        if tags:
            # tags is a JSON array; match any of the quoted values
            tags_text = cast(Post.tags, String)
            query = query.filter(
                or_(*[tags_text.like(f'%"{tag}"%') for tag in tags])
            )
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Post.title).like(pattern),
                    func.lower(Post.content).like(pattern),
                )
            )
        total = query.count()
        posts = (
            query.order_by(Post.created_at.desc()).offset(skip).limit(limit).all()
        )
        return posts, total

    def unique_slug(self, db: Session, *, title: str) -> str:
        base = slugify(title)
        slug = base
        counter = 1
        while self.get_by_slug(db, slug=slug):
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    def get_multi_by_author(self, db: Session, *, author_id: str) -> List[Post]:
        return (
            db.query(Post)
            .filter(Post.author_id == author_id, Post.published.is_(True))
            .order_by(Post.created_at.desc())
            .all()
        )

    def create_with_author(
        self, db: Session, *, obj_in: PostCreate, author_id: str
    ) -> Post:
        db_obj = Post(
            title=obj_in.title,
            content=obj_in.content,
            url=str(obj_in.url) if obj_in.url else None,
            type=obj_in.type.value,
            tags=list(obj_in.tags),
            slug=self.unique_slug(db, title=obj_in.title),
            author_id=author_id,
        )
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def get_user_vote(
        self, db: Session, *, post_id: str, user_id: str
    ) -> Optional[Vote]:
        return (
            db.query(Vote)
            .filter(Vote.post_id == post_id, Vote.user_id == user_id)
            .first()
        )

    def vote(
        self, db: Session, *, post: Post, user_id: str, vote_type: str
    ) -> Optional[Vote]:
        """
        Cast, switch or withdraw a vote. Repeating the same type withdraws it.
        Returns the caller's vote after the change, if any.
        """
        existing = self.get_user_vote(db, post_id=str(post.id), user_id=user_id)
        result: Optional[Vote]
        if existing is None:
            result = Vote(post_id=post.id, user_id=user_id, type=vote_type)
            db.add(result)
        elif existing.type == vote_type:
            db.delete(existing)
            result = None
        else:
            existing.type = vote_type
            result = existing
        db.flush()
        post.vote_count = self._score(db, post_id=str(post.id))
        db.add(post)
        db.commit()
        if result is not None:
            db.refresh(result)
        return result

    def _score(self, db: Session, *, post_id: str) -> int:
        up = (
            db.query(Vote)
            .filter(Vote.post_id == post_id, Vote.type == VoteType.UP.value)
            .count()
        )
        down = (
            db.query(Vote)
            .filter(Vote.post_id == post_id, Vote.type == VoteType.DOWN.value)
            .count()
        )
        return up - down

    def vote_total(self, db: Session, *, post_id: str) -> int:
        return db.query(Vote).filter(Vote.post_id == post_id).count()


class CRUDComment(CRUDBase[Comment, CommentCreate, CommentCreate]):
    def get_top_level_by_post(self, db: Session, *, post_id: str) -> List[Comment]:
        return (
            db.query(Comment)
            .filter(Comment.post_id == post_id, Comment.parent_id.is_(None))
            .order_by(Comment.created_at.desc())
            .all()
        )

    def create_with_post(
        self, db: Session, *, obj_in: CommentCreate, post: Post, author_id: str
    ) -> Comment:
        db_obj = Comment(
            content=obj_in.content,
            post_id=post.id,
            parent_id=obj_in.parent_id,
            author_id=author_id,
        )
        db.add(db_obj)
        post.comment_count = (post.comment_count or 0) + 1
        db.add(post)
        db.commit()
        db.refresh(db_obj)
        return db_obj


post = CRUDPost(Post)
comment = CRUDComment(Comment)
