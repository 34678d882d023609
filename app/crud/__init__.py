from .crud_user import user  # noqa: F401
from .crud_follow import follow  # noqa: F401
from .crud_post import post, comment  # noqa: F401
from .crud_chat import chat_room, message  # noqa: F401
