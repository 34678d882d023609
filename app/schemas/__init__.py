from .user import (  # noqa: F401
    User,
    UserCreate,
    UserUpdate,
    UserProfile,
    UserCounts,
    UserSummary,
    UserSearchResult,
    UsernameAvailability,
    FollowState,
    OnboardingIn,
    OnboardingStatus,
    OnboardingStatusResponse,
)
from .post import (  # noqa: F401
    Post,
    PostCreate,
    PostPage,
    PostCounts,
    Pagination,
    Comment,
    CommentCreate,
    VoteIn,
    VoteResult,
    UserVote,
)
from .chat import ChatRoom, ChatRoomCreate, Message, MessageCreate  # noqa: F401
from .token import Token, Session, SessionUser  # noqa: F401
