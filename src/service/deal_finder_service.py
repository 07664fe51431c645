import json
import logging
import re
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from src.utils.config import Config
from src.utils.errors import MalformedResponseError, UpstreamError

logger = logging.getLogger(__name__)

CODE_TYPES = ("code", "giftcard", "cashback", "membership", "perk", "sale")
CONFIDENCE_LEVELS = ("high", "medium", "low")
REQUIRED_CODE_KEYS = ("type", "code", "description", "sourceUrl", "confidence")
OPTIONAL_CODE_KEYS = ("expiry", "verificationStatus", "lastVerified")

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)

# Curated gift card promotions shown next to the search box
GIFT_CARD_DEALS = [
    {
        "title": "Apple Gift Cards",
        "store": "Woolworths",
        "offer": "20x Everyday Rewards points",
        "dates": "4 Mar - 10 Mar",
        "type": "next_week",
    },
    {
        "title": "Drummond Golf & Smiggle",
        "store": "Big W",
        "offer": "20x EDR points",
        "dates": "26 Feb - 4 Mar",
        "type": "this_week",
    },
    {
        "title": "Timezone & Hoyts",
        "store": "Big W",
        "offer": "10% Off",
        "dates": "26 Feb - 4 Mar",
        "type": "this_week",
    },
    {
        "title": "TCN Gift, Him, Her, Baby",
        "store": "Coles",
        "offer": "1,000 Flybuys points on $50",
        "dates": "4 Mar - 10 Mar",
        "type": "next_week",
    },
    {
        "title": "Luxury Escapes, DoorDash",
        "store": "Coles",
        "offer": "20x Flybuys points",
        "dates": "25 Feb - 3 Mar",
        "type": "this_week",
    },
    {
        "title": "Didi & Amart",
        "store": "ShopBack",
        "offer": "10% Cashback",
        "dates": "While stocks last",
        "type": "ongoing",
    },
]


def parse_json_response(text: str) -> Any:
    """Decode a model response.

    Grounded answers cannot use JSON mode, so the JSON may come inside a
    markdown fence or after a line of prose. The first fenced block wins,
    then the outermost braces.
    """
    if not text or not text.strip():
        raise MalformedResponseError()
    text = text.strip()
    match = _FENCE_RE.search(text)
    if match:
        text = match.group(1)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise MalformedResponseError() from e
        try:
            return json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            raise MalformedResponseError() from e


def grounding_tool(model_name: str):
    """Google Search tool for the model family; 1.5 models only know the legacy one"""
    if model_name.startswith("gemini-1.5"):
        return "google_search_retrieval"
    return genai.protos.Tool(google_search=genai.protos.Tool.GoogleSearch())


def normalize_code(raw: Any) -> Optional[Dict[str, Any]]:
    """Return a clean discount code dict, or None if required keys are missing"""
    if not isinstance(raw, dict):
        return None
    if any(not raw.get(key) for key in REQUIRED_CODE_KEYS):
        return None

    code_type = str(raw["type"]).lower()
    confidence = str(raw["confidence"]).lower()
    if code_type not in CODE_TYPES or confidence not in CONFIDENCE_LEVELS:
        return None

    code = {
        "type": code_type,
        "code": str(raw["code"]),
        "description": str(raw["description"]),
        "sourceUrl": str(raw["sourceUrl"]),
        "confidence": confidence,
    }
    for key in OPTIONAL_CODE_KEYS:
        if raw.get(key):
            code[key] = str(raw[key])
    return code


def parse_bargain_result(text: str, store_name: str) -> Dict[str, Any]:
    data = parse_json_response(text)
    if not isinstance(data, dict) or not isinstance(data.get("codes"), list):
        raise MalformedResponseError()

    codes: List[Dict[str, Any]] = []
    for raw in data["codes"]:
        code = normalize_code(raw)
        if code is None:
            logger.warning(f"Dropping invalid discount code for {store_name}: {raw}")
            continue
        codes.append(code)

    return {
        "storeName": data.get("storeName") or store_name,
        "summary": str(data.get("summary") or ""),
        "codes": codes,
    }


def parse_email_draft(text: str) -> Dict[str, str]:
    data = parse_json_response(text)
    if not isinstance(data, dict) or not data.get("subject") or not data.get("body"):
        raise MalformedResponseError()
    return {"subject": str(data["subject"]), "body": str(data["body"])}


class DealFinderService:
    def __init__(self, api_key: str):
        """
        Initialize the deal finder with Gemini API
        """
        if not api_key:
            raise ValueError("Gemini API key is required")

        genai.configure(api_key=api_key)
        tools = grounding_tool(Config.DEAL_SEARCH_MODEL) if Config.DEAL_SEARCH_GROUNDING else None
        self.search_model = genai.GenerativeModel(Config.DEAL_SEARCH_MODEL, tools=tools)
        self.email_model = genai.GenerativeModel(
            Config.EMAIL_DRAFT_MODEL,
            generation_config={"response_mime_type": "application/json"},
        )
        logger.info("Deal finder initialized with Gemini API")

    async def find_deals(self, store_name: str) -> Dict[str, Any]:
        """
        Search the web for discount codes, cashback and sale alerts for a store
        """
        prompt = Config.DEAL_SEARCH_PROMPT.format(
            store_name=store_name, region=Config.SEARCH_REGION
        )
        logger.info(f"Searching deals for: {store_name}")

        try:
            response = await self.search_model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            logger.error(f"Error searching deals for {store_name}: {e}")
            raise UpstreamError() from e

        try:
            result = parse_bargain_result(text, store_name)
        except MalformedResponseError:
            logger.error(f"Received malformed data from the search engine for {store_name}")
            raise

        logger.info(f"Found {len(result['codes'])} deals for {store_name}")
        return result

    async def draft_email(self, store_name: str) -> Dict[str, str]:
        """
        Draft a student discount request email to a store's customer service
        """
        prompt = Config.EMAIL_DRAFT_PROMPT.format(
            store_name=store_name, region=Config.SEARCH_REGION
        )

        try:
            response = await self.email_model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            logger.error(f"Error drafting email for {store_name}: {e}")
            raise UpstreamError() from e

        try:
            return parse_email_draft(text)
        except MalformedResponseError:
            logger.error(f"Received malformed email draft for {store_name}")
            raise

    @staticmethod
    def fallback_email() -> Dict[str, str]:
        return {
            "subject": Config.FALLBACK_EMAIL_SUBJECT,
            "body": Config.FALLBACK_EMAIL_BODY,
        }

    @staticmethod
    def gift_card_deals() -> List[Dict[str, str]]:
        return [dict(deal) for deal in GIFT_CARD_DEALS]
