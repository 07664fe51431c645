"""
FastAPI server for the BargainAgent discount code finder
"""

import logging
from dataclasses import dataclass
from typing import Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.model.database import Database
from src.service.deal_finder_service import DealFinderService
from src.service.quota_service import QuotaService
from src.service.stats_service import StatsService
from src.service.subscription_service import SubscriptionService
from src.service.user_service import UserService, require_user_id
from src.utils.config import Config
from src.utils.errors import (
    BargainAgentError,
    InvalidInputError,
    ServiceUnavailableError,
    StoreError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


@dataclass
class Services:
    db: Database
    users: UserService
    quota: QuotaService
    subscriptions: SubscriptionService
    stats: StatsService
    deal_finder: Optional[DealFinderService] = None


# Request bodies. Fields are optional so a missing value maps to a 400
# with our own message rather than a validation error.
class UserRequest(BaseModel):
    userId: Optional[str] = None


class SubscriptionRequest(BaseModel):
    email: Optional[str] = None
    storeName: Optional[str] = None


class SearchRequest(BaseModel):
    userId: Optional[str] = None
    storeName: Optional[str] = None


class EmailDraftRequest(BaseModel):
    storeName: Optional[str] = None


def get_services(request: Request) -> Services:
    return request.app.state.services


router = APIRouter()


# User management
@router.post("/api/user/init")
def init_user(body: UserRequest, services: Services = Depends(get_services)):
    """Create the anonymous user if needed and report today's usage"""
    user_id = require_user_id(body.userId)
    services.users.ensure_user(user_id)
    user = services.users.get_user(user_id)
    return {"user": user, "dailyCount": services.quota.daily_count(user_id)}


@router.get("/api/user/{user_id}")
def get_user(user_id: str, services: Services = Depends(get_services)):
    user = services.users.get_user(user_id)
    return {"user": user, "dailyCount": services.quota.daily_count(user_id)}


@router.post("/api/user/upgrade")
def upgrade_user(body: UserRequest, services: Services = Depends(get_services)):
    services.users.upgrade(require_user_id(body.userId))
    return {"success": True}


@router.post("/api/user/reset")
def reset_user(body: UserRequest, services: Services = Depends(get_services)):
    services.users.reset(require_user_id(body.userId))
    return {"success": True, "message": "User reset to free tier"}


@router.post("/api/user/log-search")
def log_search(body: UserRequest, services: Services = Depends(get_services)):
    new_count = services.quota.consume(require_user_id(body.userId))
    return {"success": True, "newCount": new_count}


# Subscriptions
@router.post("/api/subscribe")
def subscribe(body: SubscriptionRequest, services: Services = Depends(get_services)):
    services.subscriptions.subscribe(body.email, body.storeName)
    return {"success": True, "message": f"Subscribed to {body.storeName.strip()}"}


@router.get("/api/subscriptions")
def list_subscriptions(email: Optional[str] = None, services: Services = Depends(get_services)):
    return services.subscriptions.list_by_email(email)


@router.post("/api/unsubscribe")
def unsubscribe(body: SubscriptionRequest, services: Services = Depends(get_services)):
    services.subscriptions.unsubscribe(body.email, body.storeName)
    return {"success": True}


# Savings counter
@router.get("/api/stats")
def get_stats(services: Services = Depends(get_services)):
    return {"count": services.stats.get()}


@router.post("/api/stats/increment")
def increment_stats(services: Services = Depends(get_services)):
    services.stats.increment()
    return {"success": True}


# Search
@router.post("/api/search")
async def search_deals(body: SearchRequest, services: Services = Depends(get_services)):
    """
    Quota-gated deal search. The search counts against the quota before
    Gemini is called, so a failed search is not refunded.
    """
    user_id = require_user_id(body.userId)
    if not body.storeName or not body.storeName.strip():
        raise InvalidInputError("storeName is required")
    if services.deal_finder is None:
        raise ServiceUnavailableError()

    new_count = await run_in_threadpool(services.quota.consume, user_id)
    result = await services.deal_finder.find_deals(body.storeName.strip())

    try:
        await run_in_threadpool(services.stats.increment)
    except StoreError:
        logger.error("Failed to increment savings count after a successful search")

    return {"result": result, "newCount": new_count}


@router.post("/api/email-draft")
async def draft_email(body: EmailDraftRequest, services: Services = Depends(get_services)):
    """Draft a discount request email, falling back to a fixed template"""
    if not body.storeName or not body.storeName.strip():
        raise InvalidInputError("storeName is required")

    if services.deal_finder is not None:
        try:
            draft = await services.deal_finder.draft_email(body.storeName.strip())
            return {**draft, "fallback": False}
        except UpstreamError:
            logger.warning(f"Using fallback email template for {body.storeName}")

    return {**DealFinderService.fallback_email(), "fallback": True}


@router.get("/api/gift-cards")
async def gift_cards():
    return DealFinderService.gift_card_deals()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "bargain-agent-api"}


async def handle_bargain_agent_error(request: Request, exc: BargainAgentError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


def create_app(
    database_url: Optional[str] = None,
    deal_finder: Optional[DealFinderService] = None,
) -> FastAPI:
    app = FastAPI(
        title="BargainAgent API",
        description="Discount code finder backed by Gemini with Google Search grounding",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(BargainAgentError, handle_bargain_agent_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.include_router(router)

    db = Database(database_url)
    app.state.services = Services(
        db=db,
        users=UserService(db),
        quota=QuotaService(db),
        subscriptions=SubscriptionService(db),
        stats=StatsService(db),
        deal_finder=deal_finder,
    )

    @app.on_event("startup")
    async def startup_event():
        """Initialize the schema and the Gemini client on startup"""
        services = app.state.services
        services.db.init_schema()

        if services.deal_finder is not None:
            return
        if not Config.GEMINI_API_KEY:
            logger.error("No Gemini API key found. Please set GEMINI_API_KEY environment variable.")
            return
        try:
            services.deal_finder = DealFinderService(Config.GEMINI_API_KEY)
            logger.info("Deal finder initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize deal finder: {e}")

    @app.on_event("shutdown")
    async def shutdown_event():
        app.state.services.db.dispose()

    return app


def main():
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    uvicorn.run(create_app(), host=Config.HOST, port=Config.PORT, log_level="info")


if __name__ == "__main__":
    main()
