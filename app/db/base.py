# Import all the models, so that Base has them before being
# imported by Alembic
from app.db.base_class import Base  # noqa
from app.models.user import User  # noqa
from app.models.follow import Follow  # noqa
from app.models.post import Post, Comment, Vote  # noqa
from app.models.chat import ChatRoom, Message, chat_room_members  # noqa
