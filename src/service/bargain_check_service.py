"""
Daily bargain check.

Runs outside the API process (``bargain-agent check-deals`` from cron). Each
subscribed store is searched once and the result is handed to a notifier
together with the emails subscribed to it. Delivery is not implemented: the
default notifier only logs.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

from src.service.subscription_service import SubscriptionService
from src.utils.errors import BargainAgentError

logger = logging.getLogger(__name__)

Notifier = Callable[[str, List[str], Dict[str, Any]], None]


def log_notifier(store_name: str, emails: List[str], result: Dict[str, Any]) -> None:
    logger.info(
        f"Would notify {len(emails)} subscriber(s) of {len(result.get('codes', []))} deal(s) at {store_name}"
    )


class BargainCheckService:
    def __init__(self, subscriptions: SubscriptionService, deal_finder, notifier: Notifier = log_notifier):
        self.subscriptions = subscriptions
        self.deal_finder = deal_finder
        self.notifier = notifier

    def subscribers_by_store(self) -> Dict[str, List[str]]:
        grouped = defaultdict(list)
        for sub in self.subscriptions.list_all():
            grouped[sub["storeName"]].append(sub["email"])
        return dict(grouped)

    async def run(self) -> Dict[str, Dict[str, Any]]:
        """Search every subscribed store once. A failing store does not stop the rest."""
        logger.info("Running daily bargain check...")
        summary = {}

        for store_name, emails in sorted(self.subscribers_by_store().items()):
            logger.info(f"Checking deals for {store_name}...")
            try:
                result = await self.deal_finder.find_deals(store_name)
            except BargainAgentError as e:
                logger.error(f"Bargain check failed for {store_name}: {e}")
                summary[store_name] = {"ok": False, "subscribers": len(emails), "deals": 0}
                continue

            self.notifier(store_name, emails, result)
            summary[store_name] = {
                "ok": True,
                "subscribers": len(emails),
                "deals": len(result.get("codes", [])),
            }

        logger.info(f"Bargain check finished for {len(summary)} store(s)")
        return summary
