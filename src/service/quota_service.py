"""
Daily search quota.

Consumption is the number of search_logs rows for (user, UTC date), so a new
day starts from zero without any reset job. A search is counted when it is
attempted: callers consume quota before calling the deal finder, and a
failed search is not refunded.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import func, select

from src.model import SearchLog, User
from src.model.base import utcnow
from src.model.database import Database
from src.service.user_service import require_user_id
from src.utils.config import Config
from src.utils.errors import NotFoundError, QuotaExceededError

logger = logging.getLogger(__name__)

UNLIMITED = -1


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class QuotaService:
    def __init__(self, db: Database, plan_limits: Optional[dict] = None):
        self.db = db
        self.plan_limits = plan_limits or Config.PLAN_LIMITS

    def limit_for(self, tier: str) -> int:
        """Daily search cap for a tier, -1 for unlimited"""
        limits = self.plan_limits.get(tier, self.plan_limits["free"])
        return limits.get("daily_searches", UNLIMITED)

    def daily_count(self, user_id: str, today: Optional[date] = None) -> int:
        today = today or utc_today()
        with self.db.session_scope() as session:
            return session.execute(
                select(func.count(SearchLog.id)).where(
                    SearchLog.user_id == user_id, SearchLog.search_date == today
                )
            ).scalar_one()

    def log_search(self, user_id: str, search_date: Optional[date] = None) -> None:
        with self.db.session_scope() as session:
            session.add(
                SearchLog(
                    user_id=user_id,
                    search_date=search_date or utc_today(),
                    created_at=utcnow(),
                )
            )

    def consume(self, user_id: str) -> int:
        """Check the user's cap and, if allowed, log one search.

        Returns the user's count for today including this search.
        """
        require_user_id(user_id)
        today = utc_today()

        with self.db.session_scope() as session:
            tier = session.execute(select(User.tier).where(User.id == user_id)).scalar_one_or_none()
        if tier is None:
            raise NotFoundError("User not found")

        count = self.daily_count(user_id, today)
        limit = self.limit_for(tier)
        if limit != UNLIMITED and count >= limit:
            logger.warning(f"Daily limit reached for user {user_id} ({count}/{limit})")
            raise QuotaExceededError()

        self.log_search(user_id, today)
        return count + 1
