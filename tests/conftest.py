import os
import sys

import pytest
from fastapi.testclient import TestClient

# Ensure the project root is on path so `src` resolves
CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from src.api_server import create_app
from src.model.database import Database
from src.service.quota_service import QuotaService
from src.service.stats_service import StatsService
from src.service.subscription_service import SubscriptionService
from src.service.user_service import UserService
from src.utils.errors import MalformedResponseError, UpstreamError


class FakeDealFinder:
    """Stands in for DealFinderService without calling Gemini"""

    def __init__(self):
        self.searched = []
        self.failing_stores = set()
        self.malformed_stores = set()
        self.email_fails = False

    async def find_deals(self, store_name):
        self.searched.append(store_name)
        if store_name in self.failing_stores:
            raise UpstreamError()
        if store_name in self.malformed_stores:
            raise MalformedResponseError()
        return {
            "storeName": store_name,
            "summary": f"Two deals found for {store_name}",
            "codes": [
                {
                    "type": "code",
                    "code": "STUDENT10",
                    "description": "10% off for students",
                    "sourceUrl": "https://example.com/student",
                    "confidence": "high",
                },
                {
                    "type": "cashback",
                    "code": "SHOPBACK",
                    "description": "5% cashback via ShopBack",
                    "sourceUrl": "https://example.com/shopback",
                    "confidence": "medium",
                },
            ],
        }

    async def draft_email(self, store_name):
        if self.email_fails:
            raise UpstreamError()
        return {"subject": f"Hello {store_name}", "body": "Any student discounts?"}


@pytest.fixture
def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'bargains.db'}")
    database.init_schema(savings_baseline=12450)
    yield database
    database.dispose()


@pytest.fixture
def users(db):
    return UserService(db)


@pytest.fixture
def quota(db):
    return QuotaService(db, plan_limits={"free": {"daily_searches": 5}, "pro": {"daily_searches": -1}})


@pytest.fixture
def subscriptions(db):
    return SubscriptionService(db)


@pytest.fixture
def stats(db):
    return StatsService(db)


@pytest.fixture
def deal_finder():
    return FakeDealFinder()


@pytest.fixture
def app(tmp_path, deal_finder):
    return create_app(f"sqlite:///{tmp_path / 'api.db'}", deal_finder=deal_finder)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
