from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.schemas.user import UserSummary


class PostTypeEnum(str, Enum):
    RESOURCE = "RESOURCE"
    STRATEGY = "STRATEGY"
    STORY = "STORY"


class VoteTypeEnum(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: Optional[str] = None
    url: Optional[HttpUrl] = None
    type: PostTypeEnum
    tags: List[str] = Field(default_factory=list, max_length=5)

    @field_validator("title")
    @classmethod
    def sanitize_title(cls, v: str) -> str:
        if "<" in v or ">" in v:
            raise ValueError("Title contains invalid characters")
        return v.strip()

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: List[str]) -> List[str]:
        return [t.strip().lower() for t in v if t.strip()]


class PostCounts(BaseModel):
    comments: int = 0
    votes: int = 0


class UserVote(BaseModel):
    type: VoteTypeEnum


class Post(BaseModel):
    id: str
    title: str
    content: Optional[str] = None
    url: Optional[str] = None
    type: PostTypeEnum
    tags: List[str] = []
    slug: str
    published: bool = True
    vote_count: int = 0
    comment_count: int = 0
    created_at: datetime
    author: UserSummary
    counts: PostCounts = PostCounts()
    user_vote: Optional[UserVote] = None

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PostPage(BaseModel):
    posts: List[Post]
    pagination: Pagination


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: Optional[str] = None


class CommentReply(BaseModel):
    id: str
    content: str
    post_id: str
    parent_id: Optional[str] = None
    created_at: datetime
    author: UserSummary

    model_config = ConfigDict(from_attributes=True)


class Comment(CommentReply):
    replies: List[CommentReply] = []


class VoteIn(BaseModel):
    type: VoteTypeEnum


class VoteResult(BaseModel):
    vote_count: int
    user_vote: Optional[UserVote] = None
