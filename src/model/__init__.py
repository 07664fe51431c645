from src.model.base import Base
from src.model.users import User, SearchLog, Tier
from src.model.subscriptions import Subscription
from src.model.stats import GlobalStat, SchemaVersion, SAVINGS_COUNT_KEY

__all__ = [
    "Base",
    "User",
    "SearchLog",
    "Tier",
    "Subscription",
    "GlobalStat",
    "SchemaVersion",
    "SAVINGS_COUNT_KEY",
]
