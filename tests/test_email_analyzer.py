import json

import pytest

from src.ai_agent.email_analyzer import EmailSchedulingAnalyzer, RuleBasedEmailResolver
from src.ai_agent.mock_llm_client import MockLLMClient
from utils.errors import OracleUnavailableError, ValidationError


@pytest.fixture
def analyzer():
    return EmailSchedulingAnalyzer()


def test_weekly_sync_request(analyzer, now):
    analysis = analyzer.analyze("Can we schedule our weekly sync for this Friday at 10am?", now)

    assert analysis.has_scheduling_intent is True
    assert analysis.confidence > 0.4
    assert analysis.source == "rules"

    details = analysis.details
    assert details.urgency == "medium"
    assert details.proposed_times == ["this Friday at 10am"]
    assert details.meeting_topic == "our weekly sync"
    assert details.meeting_type == "one-on-one"
    assert details.estimated_duration == 60
    assert details.response_required is True
    assert details.action_items == []


def test_email_without_scheduling_intent(analyzer, now):
    analysis = analyzer.analyze("Thanks for the report, looks good to me.", now)
    assert analysis.has_scheduling_intent is False
    assert analysis.details is None
    assert analysis.to_dict()["schedulingDetails"] is None


def test_urgent_email(analyzer, now):
    analysis = analyzer.analyze("URGENT: can we meet tomorrow to discuss the outage?", now)
    assert analysis.has_scheduling_intent is True
    assert analysis.details.urgency == "high"


def test_fallback_urgency_is_never_low(analyzer, now):
    analysis = analyzer.analyze("No rush at all, maybe we could meet sometime next month?", now)
    assert analysis.has_scheduling_intent is True
    assert analysis.details.urgency == "medium"


def test_subject_line_becomes_topic(analyzer, now):
    email = "Subject: Q4 planning\n\nAre you free on Thursday afternoon for a meeting?"
    details = analyzer.analyze(email, now).details
    assert details.meeting_topic == "Q4 planning"
    assert details.proposed_times == ["Thursday afternoon"]


@pytest.mark.parametrize("email,expected", [
    ("Could we set up a meeting on November 3 to go over the budget?", ["November 3"]),
    ("Can we book a call on 2026-11-03 to review the contract?", ["2026-11-03"]),
])
def test_explicit_dates_are_proposed_times(analyzer, now, email, expected):
    analysis = analyzer.analyze(email, now)
    assert analysis.has_scheduling_intent is True
    assert analysis.details.proposed_times == expected


def test_interview_details(analyzer, now):
    email = ("Could we schedule an interview with jane@corp.com next Tuesday at 2pm "
             "for 45 minutes? Please cc hr@corp.com.")
    details = analyzer.analyze(email, now).details
    assert details.meeting_type == "interview"
    assert details.estimated_duration == 45
    assert details.participants == ["jane@corp.com", "hr@corp.com"]


@pytest.mark.parametrize("text,expected", [
    ("Can we schedule a 10 hours workshop tomorrow?", 480),
    ("Can we schedule a 5 minutes check-in tomorrow?", 15),
])
def test_estimated_duration_is_clamped(analyzer, now, text, expected):
    assert analyzer.analyze(text, now).details.estimated_duration == expected


def test_team_meeting_type(analyzer, now):
    details = analyzer.analyze("Let's schedule the team standup for Monday morning", now).details
    assert details.meeting_type == "team-meeting"


def test_rule_scores_are_clamped():
    confidence, has_time, has_questions = RuleBasedEmailResolver().score(
        "Can we schedule a meeting call to discuss your availability on the calendar tomorrow?"
    )
    assert confidence == 1.0
    assert has_time is True
    assert has_questions is True


@pytest.mark.parametrize("email", [
    "hello",
    "Can we meet?",
    "Are you available Friday at 3pm?",
    "Invoice attached",
    "Reschedule our interview to next week please",
])
def test_details_present_exactly_with_intent(analyzer, now, email):
    analysis = analyzer.analyze(email, now)
    assert (analysis.details is not None) == analysis.has_scheduling_intent
    assert 0.0 <= analysis.confidence <= 1.0
    if analysis.details:
        assert 15 <= analysis.details.estimated_duration <= 480


@pytest.mark.parametrize("email", [None, 3, {"body": "hi"}])
def test_non_string_email_is_rejected(analyzer, email):
    with pytest.raises(ValidationError):
        analyzer.analyze(email)


def test_oracle_analysis_is_sanitized(now):
    reply = "Sure! Here is the analysis:\n" + json.dumps({
        "hasSchedulingIntent": True,
        "confidence": 1.7,
        "proposedTimes": ["Friday 3pm", 4],
        "meetingTopic": None,
        "participants": ["a@b.com", 5],
        "urgency": "critical",
        "meetingType": "standup",
        "estimatedDuration": 1000,
        "actionItems": "send deck",
        "responseRequired": "yes",
    }) + "\nLet me know if you need more."
    oracle = MockLLMClient([reply])

    analysis = EmailSchedulingAnalyzer(oracle).analyze("Friday 3pm work for you?", now)

    assert analysis.source == "oracle"
    assert analysis.has_scheduling_intent is True
    assert analysis.confidence == 1.0
    details = analysis.details
    assert details.proposed_times == ["Friday 3pm"]
    assert details.meeting_topic == "Meeting discussion"
    assert details.participants == ["a@b.com"]
    assert details.urgency == "medium"
    assert details.meeting_type == "one-on-one"
    assert details.estimated_duration == 480
    assert details.action_items == []
    assert details.response_required is True

    assert oracle.calls[0]["temperature"] == 0.2
    assert "Friday 3pm work for you?" in oracle.calls[0]["messages"][0]["content"]


def test_oracle_without_intent_has_no_details(now):
    oracle = MockLLMClient(['{"hasSchedulingIntent": false, "confidence": 0.1}'])
    analysis = EmailSchedulingAnalyzer(oracle).analyze("Can we meet tomorrow?", now)
    assert analysis.source == "oracle"
    assert analysis.has_scheduling_intent is False
    assert analysis.details is None


@pytest.mark.parametrize("reply", [
    "no json here",
    "{broken json}",
    OracleUnavailableError("timeout"),
])
def test_oracle_failure_falls_back_to_rules(now, reply):
    analysis = EmailSchedulingAnalyzer(MockLLMClient([reply])).analyze(
        "Can we schedule our weekly sync for this Friday at 10am?", now
    )
    assert analysis.source == "rules"
    assert analysis.has_scheduling_intent is True
