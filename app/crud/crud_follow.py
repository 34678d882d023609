import logging
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import SelfFollow
from app.crud.base import CRUDBase
from app.models.follow import Follow

logger = logging.getLogger(__name__)


class CRUDFollow(CRUDBase[Follow, BaseModel, BaseModel]):
    def get_edge(
        self, db: Session, *, follower_id: str, following_id: str
    ) -> Optional[Follow]:
        return (
            db.query(Follow)
            .filter(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
            )
            .first()
        )

    def is_following(self, db: Session, *, follower_id: str, following_id: str) -> bool:
        return (
            self.get_edge(db, follower_id=follower_id, following_id=following_id)
            is not None
        )

    def toggle(self, db: Session, *, follower_id: str, following_id: str) -> bool:
        """
        Flip the follower -> following edge and return the new state.

        The read and the write are separate statements. If a concurrent toggle
        creates the edge first, the unique constraint rejects ours and the
        edge exists either way, so that is reported as following.
        """
        if follower_id == following_id:
            raise SelfFollow()

        edge = self.get_edge(db, follower_id=follower_id, following_id=following_id)
        if edge is not None:
            db.delete(edge)
            db.commit()
            return False

        db.add(Follow(follower_id=follower_id, following_id=following_id))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Concurrent follow of %s by %s, edge already present",
                following_id,
                follower_id,
            )
        return True


follow = CRUDFollow(Follow)
