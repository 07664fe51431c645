import logging
from typing import Any, Dict, List

from sqlalchemy import delete, select

from src.model import Subscription
from src.model.base import utcnow
from src.model.database import Database
from src.utils.errors import InvalidInputError

logger = logging.getLogger(__name__)


def _require(value, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(message)
    return value.strip()


class SubscriptionService:
    """Email alerts per store, one row per (email, store)"""

    def __init__(self, db: Database):
        self.db = db

    def subscribe(self, email: str, store_name: str) -> bool:
        """Returns True when a new row was written, False for a repeat"""
        email = _require(email, "Email and Store Name are required")
        store_name = _require(store_name, "Email and Store Name are required")
        with self.db.session_scope() as session:
            result = session.execute(
                self.db.insert(Subscription)
                .values(email=email, store_name=store_name, created_at=utcnow())
                .on_conflict_do_nothing(index_elements=["email", "store_name"])
            )
            created = bool(result.rowcount)
        if created:
            logger.info(f"Subscribed {email} to {store_name}")
        return created

    def unsubscribe(self, email: str, store_name: str) -> None:
        if not email or not store_name:
            return
        with self.db.session_scope() as session:
            result = session.execute(
                delete(Subscription).where(
                    Subscription.email == email.strip(),
                    Subscription.store_name == store_name.strip(),
                )
            )
            removed = bool(result.rowcount)
        if removed:
            logger.info(f"Unsubscribed {email} from {store_name}")

    def list_by_email(self, email: str) -> List[Dict[str, Any]]:
        email = _require(email, "Email is required")
        with self.db.session_scope() as session:
            rows = session.execute(
                select(Subscription).where(Subscription.email == email)
            ).scalars().all()
            return [row.to_dict() for row in rows]

    def list_all(self) -> List[Dict[str, Any]]:
        with self.db.session_scope() as session:
            rows = session.execute(select(Subscription)).scalars().all()
            return [row.to_dict() for row in rows]
