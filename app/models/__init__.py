from .user import User, UserRole, AuthProvider  # noqa: F401
from .follow import Follow  # noqa: F401
from .post import Post, PostType, Comment, Vote, VoteType  # noqa: F401
from .chat import ChatRoom, ChatRoomType, Message, chat_room_members  # noqa: F401
