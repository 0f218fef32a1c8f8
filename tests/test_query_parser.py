import json

import pytest

from src.ai_agent.mock_llm_client import MockLLMClient
from src.ai_agent.models import ConversationContext, EntitySet, Intent
from src.ai_agent.query_parser import QueryIntentParser, classify_intent
from utils.errors import OracleUnavailableError, ValidationError


def oracle_reply(intent, entities=None, confidence=None, fenced=True):
    payload = {"intent": intent, "entities": entities or {}}
    if confidence is not None:
        payload["confidence"] = confidence
    text = json.dumps(payload)
    return f"```json\n{text}\n```" if fenced else text


@pytest.mark.parametrize("query,expected", [
    ("Schedule a meeting with john@example.com tomorrow at 2pm", Intent.SCHEDULE),
    ("Book the conference room", Intent.SCHEDULE),
    ("Cancel my 3pm meeting", Intent.CANCEL),
    ("Delete the dentist appointment", Intent.CANCEL),
    ("Move standup and change its title", Intent.UPDATE),
    ("Am I free on Friday?", Intent.AVAILABILITY),
    ("What's on my calendar today?", Intent.QUERY),
    ("Show my unread email", Intent.EMAIL_QUERY),
    ("Find emails from sarah@example.com", Intent.EMAIL_SEARCH),
])
def test_classify_intent(query, expected):
    assert classify_intent(query) == expected


def test_fallback_schedule_query(now):
    parsed = QueryIntentParser().parse(
        "Schedule a meeting with john@example.com tomorrow at 2pm for 1 hour", now=now
    )
    assert parsed.intent == Intent.SCHEDULE
    assert parsed.entities.attendees == ["john@example.com"]
    assert parsed.entities.duration == 60
    assert parsed.entities.date_time == "2026-10-20T14:00:00+00:00"
    assert parsed.confidence == 0.6
    assert parsed.source == "rules"


def test_fallback_rename(now):
    parsed = QueryIntentParser().parse("Change test meeting to Project Review", now=now)
    assert parsed.intent == Intent.UPDATE
    assert parsed.entities.current_title == "test meeting"
    assert parsed.entities.new_title == "Project Review"
    wire = parsed.to_dict()["entities"]
    assert wire["currentTitle"] == "test meeting"
    assert wire["newTitle"] == "Project Review"


def test_rename_pair_only_for_update(now):
    parsed = QueryIntentParser().parse("Schedule review to discuss roadmap", now=now)
    assert parsed.intent == Intent.SCHEDULE
    assert parsed.entities.current_title is None
    assert parsed.entities.new_title is None


@pytest.mark.parametrize("query", ["", "asdf qwerty", "???", "x" * 5000])
def test_fallback_never_fails_for_text(now, query):
    parsed = QueryIntentParser().parse(query, now=now)
    assert parsed.intent in Intent.ALL
    assert parsed.confidence == 0.6


@pytest.mark.parametrize("query", [None, 42, ["schedule"]])
def test_non_string_query_is_rejected(query):
    with pytest.raises(ValidationError):
        QueryIntentParser().parse(query)


def test_context_merges_follow_up(now):
    context = {
        "originalQuery": "Schedule a meeting with bob@example.com",
        "intent": "schedule",
        "entities": {"attendees": ["bob@example.com"], "title": "Roadmap"},
        "missingInfo": ["dateTime"],
    }
    parsed = QueryIntentParser().parse("tomorrow at 3pm", context=context, now=now)
    assert parsed.intent == Intent.SCHEDULE
    assert parsed.entities.attendees == ["bob@example.com"]
    assert parsed.entities.title == "Roadmap"
    assert parsed.entities.date_time == "2026-10-20T15:00:00+00:00"


def test_context_new_intent_wins(now):
    context = ConversationContext("Schedule lunch", "schedule", EntitySet(title="lunch"))
    parsed = QueryIntentParser().parse("actually cancel it", context=context, now=now)
    assert parsed.intent == Intent.CANCEL
    assert parsed.entities.title == "lunch"


def test_malformed_context_is_rejected():
    with pytest.raises(ValidationError):
        QueryIntentParser().parse("tomorrow", context={"entities": "oops"})
    with pytest.raises(ValidationError):
        QueryIntentParser().parse("tomorrow", context="schedule")


@pytest.mark.parametrize("entities", [
    {"attendees": "john@example.com"},
    {"attendees": ["john@example.com", 7]},
    {"duration": "60"},
    {"duration": True},
    {"title": ["Roadmap"]},
])
def test_mistyped_context_entities_are_rejected(now, entities):
    context = {"originalQuery": "Schedule a meeting", "intent": "schedule", "entities": entities}
    with pytest.raises(ValidationError) as excinfo:
        QueryIntentParser().parse("tomorrow at 3pm", context=context, now=now)
    assert len(excinfo.value.details) == 1


def test_oracle_result_is_used(now):
    oracle = MockLLMClient([oracle_reply("schedule", {
        "title": "Design review",
        "dateTime": "2026-10-20T15:00:00+00:00",
        "duration": 45,
        "attendees": ["ann@example.com"],
    }, confidence=0.95)])
    parsed = QueryIntentParser(oracle).parse("set up design review with ann", now=now)

    assert parsed.source == "oracle"
    assert parsed.intent == Intent.SCHEDULE
    assert parsed.confidence == 0.95
    assert parsed.entities.title == "Design review"
    assert parsed.entities.duration == 45
    assert parsed.entities.attendees == ["ann@example.com"]
    assert parsed.entities.date_time == "2026-10-20T15:00:00+00:00"

    call = oracle.calls[0]
    assert call["temperature"] == 0.1
    assert call["messages"][0]["role"] == "system"
    assert "2026-10-19" in call["messages"][0]["content"]
    assert call["messages"][1] == {"role": "user", "content": "set up design review with ann"}


def test_oracle_entities_are_sanitized(now):
    oracle = MockLLMClient([oracle_reply("email-search", {
        "title": "null",
        "duration": "-5",
        "attendees": ["a@example.com", 7, ""],
        "dateTime": "tomorrow at 2pm",
        "location": {"room": 4},
    }, confidence=3, fenced=False)])
    parsed = QueryIntentParser(oracle).parse("emails about tomorrow", now=now)

    assert parsed.intent == Intent.EMAIL_SEARCH
    assert parsed.confidence == 1.0
    assert parsed.entities.title is None
    assert parsed.entities.duration is None
    assert parsed.entities.location is None
    assert parsed.entities.attendees == ["a@example.com"]
    assert parsed.entities.date_time == "2026-10-20T14:00:00+00:00"


def test_oracle_default_confidence(now):
    oracle = MockLLMClient([oracle_reply("query")])
    assert QueryIntentParser(oracle).parse("what's up", now=now).confidence == 0.9


@pytest.mark.parametrize("reply", [
    "I think you want to schedule something",
    oracle_reply("teleport"),
    json.dumps({"intent": "schedule", "entities": ["not", "an", "object"]}),
    json.dumps(["schedule"]),
    OracleUnavailableError("connection refused"),
    RuntimeError("unexpected client failure"),
])
def test_unusable_oracle_falls_back_to_rules(now, reply):
    parser = QueryIntentParser(MockLLMClient([reply]))
    parsed = parser.parse("Cancel my meeting tomorrow at 10am", now=now)
    assert parsed.source == "rules"
    assert parsed.intent == Intent.CANCEL
    assert parsed.confidence == 0.6
    assert parsed.entities.date_time == "2026-10-20T10:00:00+00:00"


def test_exhausted_oracle_falls_back(now):
    parsed = QueryIntentParser(MockLLMClient()).parse("Am I busy tomorrow?", now=now)
    assert parsed.source == "rules"
    assert parsed.intent == Intent.AVAILABILITY


def test_oracle_missing_date_time_is_backfilled(now):
    oracle = MockLLMClient([oracle_reply("schedule", {"title": "1:1"})])
    parsed = QueryIntentParser(oracle).parse("Schedule a 1:1 tomorrow at 2pm", now=now)
    assert parsed.source == "oracle"
    assert parsed.entities.date_time == "2026-10-20T14:00:00+00:00"


def test_oracle_prompt_carries_context(now):
    oracle = MockLLMClient([oracle_reply("schedule", {"dateTime": "2026-10-20T15:00:00Z"})])
    context = ConversationContext(
        "Schedule a meeting with bob@example.com", "schedule",
        EntitySet(attendees=["bob@example.com"]), ["dateTime"],
    )
    QueryIntentParser(oracle).parse("tomorrow at 3pm", context=context, now=now)

    system_prompt = oracle.calls[0]["messages"][0]["content"]
    assert "Schedule a meeting with bob@example.com" in system_prompt
    assert "bob@example.com" in system_prompt
    assert "dateTime" in system_prompt
