import pytest

from src.nlp.entity_extractor import extract_duration, extract_emails, extract_rename_pair, extract_title


@pytest.mark.parametrize("text,expected", [
    ("Book a call for 1 hour", 60),
    ("Block 2 hrs for the review", 120),
    ("quick 3h workshop", 180),
    ("sync for 30 minutes", 30),
    ("a 45 min chat", 45),
    ("15m standup", 15),
    ("2 hours or 30 minutes", 120),
    ("no length given", None),
    ("", None),
])
def test_extract_duration(text, expected):
    assert extract_duration(text) == expected


def test_duration_ignores_clock_times():
    assert extract_duration("meet at 2pm tomorrow") is None


@pytest.mark.parametrize("text,expected", [
    ("a 1.5 hours review", None),
    ("2.5 hrs, or else 90 minutes", 90),
])
def test_duration_ignores_fractional_amounts(text, expected):
    assert extract_duration(text) == expected


def test_extract_emails_keeps_order_and_drops_duplicates():
    text = "Invite bob@example.com, alice@corp.io and bob@example.com again"
    assert extract_emails(text) == ["bob@example.com", "alice@corp.io"]


def test_extract_emails_none_when_absent():
    assert extract_emails("nobody to invite") is None


@pytest.mark.parametrize("text,expected", [
    ('Create "Quarterly Planning" on Friday', "Quarterly Planning"),
    ("Set up a meeting about budget review, please", "budget review"),
    ("schedule a design sync at 3pm", "design sync"),
    ("Schedule standup for tomorrow", "standup"),
    ("what is on my calendar", None),
])
def test_extract_title(text, expected):
    assert extract_title(text) == expected


def test_extract_rename_pair():
    assert extract_rename_pair("Change test meeting to Project Review") == ("test meeting", "Project Review")


def test_extract_rename_pair_strips_quotes_and_punctuation():
    assert extract_rename_pair('rename "Standup" to "Daily Sync".') == ("Standup", "Daily Sync")


def test_extract_rename_pair_none_without_target():
    assert extract_rename_pair("change my meeting") is None
