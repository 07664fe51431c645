import logging

from sqlalchemy import select, update

from src.model import GlobalStat, SAVINGS_COUNT_KEY
from src.model.database import Database

logger = logging.getLogger(__name__)


class StatsService:
    """The global savings counter shown on the landing page"""

    def __init__(self, db: Database, key: str = SAVINGS_COUNT_KEY):
        self.db = db
        self.key = key

    def get(self) -> int:
        with self.db.session_scope() as session:
            value = session.execute(
                select(GlobalStat.value).where(GlobalStat.key == self.key)
            ).scalar_one_or_none()
        return value or 0

    def increment(self) -> None:
        # Single UPDATE so concurrent increments are never lost
        with self.db.session_scope() as session:
            session.execute(
                update(GlobalStat)
                .where(GlobalStat.key == self.key)
                .values(value=GlobalStat.value + 1)
            )
