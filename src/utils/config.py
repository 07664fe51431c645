import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")

    DEAL_SEARCH_MODEL = os.getenv("DEAL_SEARCH_MODEL", "gemini-2.0-flash")
    EMAIL_DRAFT_MODEL = os.getenv("EMAIL_DRAFT_MODEL", "gemini-2.0-flash-lite")
    # Google Search grounding for the deal search
    DEAL_SEARCH_GROUNDING = os.getenv("DEAL_SEARCH_GROUNDING", "true").lower() in ("1", "true", "yes")
    SEARCH_REGION = os.getenv("SEARCH_REGION", "Australia")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///bargains.db")

    FREE_DAILY_SEARCH_LIMIT = int(os.getenv("FREE_DAILY_SEARCH_LIMIT", "5"))
    SAVINGS_COUNT_BASELINE = int(os.getenv("SAVINGS_COUNT_BASELINE", "12450"))

    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3000"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Comma-separated, e.g. "http://localhost:5173,https://bargains.example.com"
    CORS_ORIGINS = [
        s.strip() for s in os.getenv("CORS_ORIGINS", "*").split(",") if s.strip()
    ]

    # -1 means unlimited
    PLAN_LIMITS = {
        "free": {"daily_searches": FREE_DAILY_SEARCH_LIMIT},
        "pro": {"daily_searches": -1},
    }

    DEAL_SEARCH_PROMPT = """
    Find active deals and UPCOMING/ANNUAL sale alerts for "{store_name}" in {region}.

    STRICT VALIDATION RULES:
    1. UNiDAYS/StudentBeans: Only include if explicitly confirmed for "{store_name}". Do NOT assume they work for every store.
    2. Community Sources (Reddit, OzBargain, Forums): If a deal is found here, set its verificationStatus to "To be verified (Community Report)" unless there is a very recent (last 24h) confirmation.
    3. Official Sources: Prioritize deals from the store's official site or verified provider portals.
    4. Cashback: ONLY include offers from "ShopBack" and "TopCashback".
    5. Sale Alerts: Look for "Family & Friends Sales", "Warehouse Sales" or "Annual Clearance" events. If an event is upcoming or rumored, mark it as "sale" type.

    Search for promo codes, gift card discounts, cashback offers, provider perks and annual sale alerts.

    Return ONLY a JSON object with the keys "storeName" (string), "summary" (string) and "codes" (array).
    Each entry of "codes" has the keys "type" (one of "code", "giftcard", "cashback", "membership", "perk", "sale"),
    "code", "description", "sourceUrl", "confidence" (one of "high", "medium", "low"),
    and optionally "expiry", "verificationStatus" and "lastVerified".
    """

    EMAIL_DRAFT_PROMPT = """
    Write a polite, genuine, and persuasive email to the customer service team of "{store_name}".
    The sender is an international student in {region} who is a huge, loyal fan of the brand but is currently on a very tight student budget.
    The goal is to kindly ask if they could provide a student discount, a one-time promo code, or any hidden offers.
    Keep it professional, sweet, slightly vulnerable, and not overly demanding.

    Return the result strictly in JSON format with two keys: "subject" and "body".
    """

    FALLBACK_EMAIL_SUBJECT = "Student discount inquiry"
    FALLBACK_EMAIL_BODY = (
        "Hi there,\n\n"
        "I'm an international student and a huge fan of your brand. "
        "I'm on a tight budget and was wondering if you offer any student discounts or promo codes?\n\n"
        "Thank you!"
    )

    SEARCH_FAILED_MESSAGE = "Failed to find deals. Please try again later."
