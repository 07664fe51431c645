import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import google.generativeai as genai

from src.service.deal_finder_service import (
    DealFinderService,
    grounding_tool,
    parse_bargain_result,
    parse_email_draft,
    parse_json_response,
)
from src.utils.config import Config
from src.utils.errors import MalformedResponseError, UpstreamError

NIKE_RESULT = {
    "storeName": "Nike",
    "summary": "Student and cashback offers",
    "codes": [
        {
            "type": "code",
            "code": "STUDENT10",
            "description": "10% off with UNiDAYS",
            "sourceUrl": "https://www.nike.com/au/student",
            "confidence": "HIGH",
            "expiry": "2026-12-31",
        },
        {
            "type": "sale",
            "code": "N/A",
            "description": "Family & Friends sale rumoured for March",
            "sourceUrl": "https://www.ozbargain.com.au/",
            "confidence": "low",
            "verificationStatus": "To be verified (Community Report)",
        },
        {"type": "code", "description": "missing code and url", "confidence": "high"},
        {
            "type": "coupon",
            "code": "X",
            "description": "unknown type",
            "sourceUrl": "https://example.com",
            "confidence": "high",
        },
    ],
}


def test_parse_json_response_strips_fence():
    text = "```json\n{\"a\": 1}\n```"
    assert parse_json_response(text) == {"a": 1}


@pytest.mark.parametrize("text", ["", "   ", "not json", "{\"codes\": ["])
def test_parse_json_response_malformed(text):
    with pytest.raises(MalformedResponseError):
        parse_json_response(text)


def test_parse_bargain_result_drops_invalid_codes():
    result = parse_bargain_result(json.dumps(NIKE_RESULT), "nike")
    assert result["storeName"] == "Nike"
    assert result["summary"] == "Student and cashback offers"
    assert [c["code"] for c in result["codes"]] == ["STUDENT10", "N/A"]
    assert result["codes"][0]["confidence"] == "high"
    assert result["codes"][0]["expiry"] == "2026-12-31"
    assert "expiry" not in result["codes"][1]
    assert result["codes"][1]["verificationStatus"] == "To be verified (Community Report)"


def test_parse_bargain_result_requires_codes_list():
    with pytest.raises(MalformedResponseError):
        parse_bargain_result(json.dumps({"storeName": "Nike", "summary": "x"}), "Nike")
    with pytest.raises(MalformedResponseError):
        parse_bargain_result(json.dumps([1, 2]), "Nike")


def test_parse_bargain_result_defaults_store_name():
    result = parse_bargain_result(json.dumps({"summary": "none", "codes": []}), "ASOS")
    assert result == {"storeName": "ASOS", "summary": "none", "codes": []}


def test_parse_email_draft():
    draft = parse_email_draft(json.dumps({"subject": "Hi", "body": "Please"}))
    assert draft == {"subject": "Hi", "body": "Please"}
    with pytest.raises(MalformedResponseError):
        parse_email_draft(json.dumps({"subject": "Hi"}))


def test_requires_api_key():
    with pytest.raises(ValueError):
        DealFinderService("")


@pytest.fixture
def service(mocker):
    mocker.patch("src.service.deal_finder_service.genai")
    service = DealFinderService("test-key")
    service.search_model = MagicMock()
    service.email_model = MagicMock()
    return service


def test_find_deals(service):
    service.search_model.generate_content_async = AsyncMock(
        return_value=MagicMock(text="```json\n" + json.dumps(NIKE_RESULT) + "\n```")
    )
    result = asyncio.run(service.find_deals("Nike"))
    assert len(result["codes"]) == 2
    prompt = service.search_model.generate_content_async.call_args.args[0]
    assert '"Nike"' in prompt


def test_find_deals_upstream_failure(service):
    service.search_model.generate_content_async = AsyncMock(side_effect=RuntimeError("quota"))
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(service.find_deals("Nike"))
    assert not isinstance(exc_info.value, MalformedResponseError)
    assert exc_info.value.message == "Failed to find deals. Please try again later."


def test_find_deals_malformed_response(service):
    service.search_model.generate_content_async = AsyncMock(return_value=MagicMock(text="Sorry!"))
    with pytest.raises(MalformedResponseError) as exc_info:
        asyncio.run(service.find_deals("Nike"))
    # Same message for the client as any other upstream failure
    assert exc_info.value.message == UpstreamError().message


def test_draft_email(service):
    service.email_model.generate_content_async = AsyncMock(
        return_value=MagicMock(text=json.dumps({"subject": "Student discount", "body": "Hello"}))
    )
    assert asyncio.run(service.draft_email("ASOS")) == {"subject": "Student discount", "body": "Hello"}


def test_fallback_email_and_gift_cards():
    fallback = DealFinderService.fallback_email()
    assert fallback["subject"] == "Student discount inquiry"
    assert "international student" in fallback["body"]

    deals = DealFinderService.gift_card_deals()
    assert len(deals) == 6
    deals[0]["title"] = "changed"
    assert DealFinderService.gift_card_deals()[0]["title"] == "Apple Gift Cards"


def test_parse_bargain_result_with_prose_before_fence():
    text = "Here are the current deals I found for Nike:\n```json\n" + json.dumps(NIKE_RESULT) + "\n```\nGood luck!"
    result = parse_bargain_result(text, "Nike")
    assert [c["code"] for c in result["codes"]] == ["STUDENT10", "N/A"]


def test_parse_json_response_without_fence():
    text = "Sure! " + json.dumps({"summary": "none", "codes": []}) + " Hope this helps."
    assert parse_json_response(text) == {"summary": "none", "codes": []}


def test_grounding_tool_by_model_family():
    assert grounding_tool("gemini-1.5-flash-002") == "google_search_retrieval"

    tool = grounding_tool("gemini-2.0-flash")
    pb = genai.protos.Tool.pb(tool)
    assert pb.HasField("google_search")
    assert not pb.HasField("google_search_retrieval")


def test_search_model_is_built_with_google_search(mocker, monkeypatch):
    monkeypatch.setattr(Config, "DEAL_SEARCH_MODEL", "gemini-2.0-flash")
    monkeypatch.setattr(Config, "DEAL_SEARCH_GROUNDING", True)
    mocker.patch.object(genai, "configure")
    model_cls = mocker.patch.object(genai, "GenerativeModel")

    DealFinderService("test-key")

    search_call = model_cls.call_args_list[0]
    assert search_call.args[0] == "gemini-2.0-flash"
    assert genai.protos.Tool.pb(search_call.kwargs["tools"]).HasField("google_search")


def test_search_model_without_grounding(mocker, monkeypatch):
    monkeypatch.setattr(Config, "DEAL_SEARCH_GROUNDING", False)
    mocker.patch.object(genai, "configure")
    model_cls = mocker.patch.object(genai, "GenerativeModel")

    DealFinderService("test-key")
    assert model_cls.call_args_list[0].kwargs["tools"] is None
