import logging
from typing import Any, Dict

from sqlalchemy import select, update

from src.model import User, Tier
from src.model.base import utcnow
from src.model.database import Database
from src.utils.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


def require_user_id(user_id) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise InvalidInputError("userId is required")
    return user_id


class UserService:
    """Lazily created anonymous users and their tier"""

    def __init__(self, db: Database):
        self.db = db

    def ensure_user(self, user_id: str) -> None:
        """Create the user on the free tier; existing users are left untouched"""
        require_user_id(user_id)
        with self.db.session_scope() as session:
            result = session.execute(
                self.db.insert(User)
                .values(id=user_id, tier=Tier.FREE.value, created_at=utcnow())
                .on_conflict_do_nothing(index_elements=["id"])
            )
            if result.rowcount:
                logger.info(f"User created: {user_id}")

    def get_user(self, user_id: str) -> Dict[str, Any]:
        require_user_id(user_id)
        with self.db.session_scope() as session:
            user = session.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
            if user is None:
                raise NotFoundError("User not found")
            return user.to_dict()

    def upgrade(self, user_id: str) -> None:
        """Move the user to pro. Unknown ids are created already upgraded."""
        require_user_id(user_id)
        with self.db.session_scope() as session:
            session.execute(
                self.db.insert(User)
                .values(id=user_id, tier=Tier.PRO.value, created_at=utcnow())
                .on_conflict_do_update(index_elements=["id"], set_={"tier": Tier.PRO.value})
            )
        logger.info(f"User {user_id} tier updated to {Tier.PRO.value}")

    def reset(self, user_id: str) -> None:
        require_user_id(user_id)
        with self.db.session_scope() as session:
            result = session.execute(
                update(User).where(User.id == user_id).values(tier=Tier.FREE.value)
            )
            matched = bool(result.rowcount)
        if matched:
            logger.info(f"User {user_id} tier updated to {Tier.FREE.value}")
