#!/usr/bin/env python3
"""
Command line entry point for the BargainAgent backend
"""

import argparse
import asyncio
import sys
import logging

from src.model.database import Database
from src.service.bargain_check_service import BargainCheckService
from src.service.deal_finder_service import DealFinderService
from src.service.subscription_service import SubscriptionService
from src.utils.config import Config
from src.utils.errors import BargainAgentError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bargain-agent", description="BargainAgent backend")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=Config.HOST)
    serve.add_argument("--port", type=int, default=Config.PORT)

    sub.add_parser("init-db", help="Create tables and seed counters")
    sub.add_parser("check-deals", help="Search every subscribed store once (run daily from cron)")
    return parser


def init_db(database_url=None) -> int:
    db = Database(database_url)
    try:
        return db.init_schema()
    finally:
        db.dispose()


async def check_deals(database_url=None, deal_finder=None) -> dict:
    db = Database(database_url)
    try:
        db.init_schema()
        deal_finder = deal_finder or DealFinderService(Config.GEMINI_API_KEY)
        checker = BargainCheckService(SubscriptionService(db), deal_finder)
        return await checker.run()
    finally:
        db.dispose()


def main(argv=None) -> int:
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    args = build_parser().parse_args(argv)

    try:
        if args.command == "serve":
            import uvicorn
            from src.api_server import create_app

            uvicorn.run(create_app(args.database_url), host=args.host, port=args.port, log_level="info")
        elif args.command == "init-db":
            version = init_db(args.database_url)
            logger.info(f"Schema is at version {version}")
        elif args.command == "check-deals":
            if not Config.GEMINI_API_KEY:
                logger.error("No Gemini API key found. Please set GEMINI_API_KEY environment variable.")
                return 1
            summary = asyncio.run(check_deals(args.database_url))
            failed = [store for store, item in summary.items() if not item["ok"]]
            if failed:
                logger.warning(f"Bargain check failed for: {', '.join(failed)}")
    except BargainAgentError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
