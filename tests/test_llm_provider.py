"""Tests for the chat model provider and output validation."""

import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import httpx
import pytest

from server.services.llm.provider import (
    FakeProvider,
    LLMError,
    OpenAIChatProvider,
    get_provider,
    parse_json_content,
    reset_provider,
)
from server.services.llm.validate import (
    repair_section_analysis,
    validate_page_summary,
    validate_section_analysis,
)


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_parse_plain_json():
    assert parse_json_content('{"a": 1}') == {"a": 1}


def test_parse_fenced_json():
    assert parse_json_content('```json\n{"a": 1}\n```') == {"a": 1}
    assert parse_json_content('```\n{"b": 2}\n```') == {"b": 2}


def test_parse_rejects_non_object():
    with pytest.raises(LLMError) as exc:
        parse_json_content("[1, 2]")
    assert exc.value.kind == "invalid_json"


def test_parse_rejects_garbage_and_empty():
    for text in ("not json", "", None):
        with pytest.raises(LLMError) as exc:
            parse_json_content(text)
        assert exc.value.kind == "invalid_json"


def test_openai_request_shape():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion('{"pageType": "pricing"}'))

    provider = OpenAIChatProvider("sk-test", transport=httpx.MockTransport(handler))
    data = asyncio.run(provider.complete_json("sys", "user", max_tokens=100, temperature=0.3))

    assert data == {"pageType": "pricing"}
    assert seen["url"] == "https://api.openai.com/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "gpt-4o-mini"
    assert seen["body"]["temperature"] == 0.3
    assert seen["body"]["max_tokens"] == 100
    assert seen["body"]["response_format"] == {"type": "json_object"}
    assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user"]


def test_openai_plain_completion_has_no_response_format():
    seen = {}

    def handler(request: httpx.Request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("A short summary."))

    provider = OpenAIChatProvider("sk-test", transport=httpx.MockTransport(handler))
    assert asyncio.run(provider.complete("sys", "user")) == "A short summary."
    assert "response_format" not in seen["body"]


def test_openai_http_error_maps_to_provider_error():
    provider = OpenAIChatProvider(
        "sk-test",
        transport=httpx.MockTransport(lambda request: httpx.Response(429, text="rate limited")),
    )
    with pytest.raises(LLMError) as exc:
        asyncio.run(provider.complete("sys", "user"))
    assert exc.value.kind == "provider_error"
    assert exc.value.details["status"] == 429


def test_openai_timeout_maps_to_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    provider = OpenAIChatProvider("sk-test", transport=httpx.MockTransport(handler))
    with pytest.raises(LLMError) as exc:
        asyncio.run(provider.complete("sys", "user"))
    assert exc.value.kind == "timeout"


def test_openai_connect_error_maps_to_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    provider = OpenAIChatProvider("sk-test", transport=httpx.MockTransport(handler))
    with pytest.raises(LLMError) as exc:
        asyncio.run(provider.complete("sys", "user"))
    assert exc.value.kind == "unavailable"


def test_openai_unexpected_shape():
    provider = OpenAIChatProvider(
        "sk-test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []})),
    )
    with pytest.raises(LLMError) as exc:
        asyncio.run(provider.complete("sys", "user"))
    assert exc.value.kind == "provider_error"


def test_fake_provider_records_calls_and_serializes_dicts():
    provider = FakeProvider(canned={"ok": True})
    assert asyncio.run(provider.complete_json("s", "u", max_tokens=5)) == {"ok": True}
    assert provider.calls == [{"system": "s", "user": "u", "max_tokens": 5, "json_mode": True}]


def test_get_provider_is_process_wide():
    reset_provider()

    class _Settings:
        llm_api_key = "sk"
        llm_model = "gpt-4o-mini"
        llm_base_url = "https://example.test/v1"
        llm_timeout_s = 5

    try:
        first = get_provider(_Settings())
        assert isinstance(first, OpenAIChatProvider)
        assert first.base_url == "https://example.test/v1"
        assert get_provider(_Settings()) is first
    finally:
        reset_provider()


# ============================================================================
# Validation
# ============================================================================

def _q(sales=False):
    q = {"question": "Q?", "options": ["A", "B"], "tags": ["t1", "t2"]}
    if sales:
        q["optionFlows"] = [{"forOption": "A"}]
    return q


def _analysis():
    return {"sectionSummary": "S", "leadQuestions": [_q(), _q()], "salesQuestions": [_q(True), _q(True)]}


def test_section_analysis_valid():
    assert validate_section_analysis(_analysis()) == (True, "")


def test_section_analysis_wrong_count():
    bad = _analysis()
    bad["salesQuestions"] = bad["salesQuestions"][:1]
    ok, reason = validate_section_analysis(bad)
    assert not ok
    assert "salesQuestions" in reason


def test_section_analysis_sales_needs_option_flows():
    bad = _analysis()
    del bad["salesQuestions"][0]["optionFlows"]
    ok, reason = validate_section_analysis(bad)
    assert not ok
    assert "optionFlows" in reason


def test_section_analysis_rejects_reject_marker():
    assert validate_section_analysis({"error": "reject"})[0] is False


def test_repair_trims_and_wraps():
    raw = _analysis()
    raw["leadQuestions"].append(_q())
    raw["salesQuestions"] = _q(True)
    raw["sectionSummary"] = "  padded  "
    fixed = repair_section_analysis(raw)
    assert len(fixed["leadQuestions"]) == 2
    assert fixed["salesQuestions"] == [_q(True)]
    assert fixed["sectionSummary"] == "padded"
    assert len(raw["leadQuestions"]) == 3


def test_page_summary_validation():
    assert validate_page_summary({"pageType": "blog"}) == (True, "")
    assert validate_page_summary({"sections": [{"sectionName": "A"}, "junk"]})[0] is True
    assert validate_page_summary({"sections": ["junk"]})[0] is False
    assert validate_page_summary({"sections": "nope"})[0] is False
    assert validate_page_summary({"error": "reject"})[0] is False
